from typing import Dict, List

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import create_document, get_db, parse_object_id, serialize_doc, utcnow
from errors import NotFound, envelope
from logger import logger
from schemas import Cart, CartItemRequest
from security import get_current_user

router = APIRouter(prefix="/api/shop/cart", tags=["shop"], dependencies=[Depends(get_current_user)])

PRODUCT_FIELDS = {"image": 1, "title": 1, "price": 1, "salePrice": 1}


def load_products(db: Database, items: List[dict]) -> Dict[str, dict]:
    """Current product documents for the cart's items, keyed by product id string."""
    ids = [ObjectId(it["productId"]) for it in items if ObjectId.is_valid(str(it["productId"]))]
    if not ids:
        return {}
    return {str(p["_id"]): p for p in db["product"].find({"_id": {"$in": ids}}, PRODUCT_FIELDS)}


def project_item(item: dict, product: dict = None) -> dict:
    if product is None:
        return {
            "productId": item["productId"],
            "image": None,
            "title": "Product not found",
            "price": None,
            "salePrice": None,
            "quantity": item["quantity"],
        }
    return {
        "productId": str(product["_id"]),
        "image": product.get("image"),
        "title": product.get("title"),
        "price": product.get("price"),
        "salePrice": product.get("salePrice"),
        "quantity": item["quantity"],
    }


def project_cart(db: Database, cart: dict) -> dict:
    products = load_products(db, cart["items"])
    data = serialize_doc({k: v for k, v in cart.items() if k != "items"})
    data["items"] = [project_item(it, products.get(it["productId"])) for it in cart["items"]]
    return data


def save_items(db: Database, cart: dict):
    cart["updatedAt"] = utcnow()
    db["cart"].update_one({"_id": cart["_id"]}, {"$set": {"items": cart["items"], "updatedAt": cart["updatedAt"]}})


@router.post("")
def add_to_cart(payload: CartItemRequest, db: Database = Depends(get_db)):
    user_id, product_id, quantity = payload.user_id, payload.product_id, payload.quantity
    logger.info("CART_ADD_ITEM_REQUESTED", {"userId": user_id, "productId": product_id, "quantity": quantity})

    if not db["product"].find_one({"_id": parse_object_id(product_id, "product id")}, {"_id": 1}):
        logger.warning("CART_ADD_ITEM_PRODUCT_NOT_FOUND", {"productId": product_id})
        raise NotFound("Product not found")

    cart = db["cart"].find_one({"userId": user_id})
    if not cart:
        logger.info("CART_CREATED_FOR_USER", {"userId": user_id})
        cart = create_document(db, "cart", Cart(user_id=user_id))

    for item in cart["items"]:
        if item["productId"] == product_id:
            item["quantity"] += quantity
            logger.info("CART_ITEM_QUANTITY_INCREMENTED", {
                "userId": user_id,
                "productId": product_id,
                "quantity": item["quantity"],
            })
            break
    else:
        cart["items"].append({"productId": product_id, "quantity": quantity})
        logger.info("CART_ITEM_ADDED", {"userId": user_id, "productId": product_id, "quantity": quantity})

    save_items(db, cart)
    return envelope(project_cart(db, cart))


@router.get("/{user_id}")
def fetch_cart_items(user_id: str, db: Database = Depends(get_db)):
    logger.info("CART_FETCH_REQUESTED", {"userId": user_id})
    cart = db["cart"].find_one({"userId": user_id})
    if not cart:
        logger.warning("CART_NOT_FOUND", {"userId": user_id})
        raise NotFound("Cart not found!")

    products = load_products(db, cart["items"])
    valid_items = [it for it in cart["items"] if it["productId"] in products]
    if len(valid_items) < len(cart["items"]):
        logger.warning("CART_INVALID_ITEMS_CLEANED", {
            "userId": user_id,
            "removed": len(cart["items"]) - len(valid_items),
        })
        cart["items"] = valid_items
        save_items(db, cart)

    data = project_cart(db, cart)
    logger.info("CART_FETCH_SUCCESS", {"userId": user_id, "itemCount": len(data["items"])})
    return envelope(data)


@router.put("")
def update_cart_item_qty(payload: CartItemRequest, db: Database = Depends(get_db)):
    user_id, product_id, quantity = payload.user_id, payload.product_id, payload.quantity
    logger.info("CART_UPDATE_ITEM_REQUESTED", {"userId": user_id, "productId": product_id, "quantity": quantity})

    cart = db["cart"].find_one({"userId": user_id})
    if not cart:
        logger.warning("CART_UPDATE_CART_NOT_FOUND", {"userId": user_id})
        raise NotFound("Cart not found!")

    item = next((it for it in cart["items"] if it["productId"] == product_id), None)
    if item is None:
        logger.warning("CART_UPDATE_ITEM_NOT_FOUND", {"userId": user_id, "productId": product_id})
        raise NotFound("Cart item not present!")

    item["quantity"] = quantity
    save_items(db, cart)

    logger.info("CART_UPDATE_ITEM_SUCCESS", {"userId": user_id, "productId": product_id, "quantity": quantity})
    return envelope(project_cart(db, cart))


@router.delete("/{user_id}/{product_id}")
def delete_cart_item(user_id: str, product_id: str, db: Database = Depends(get_db)):
    logger.info("CART_DELETE_ITEM_REQUESTED", {"userId": user_id, "productId": product_id})
    cart = db["cart"].find_one({"userId": user_id})
    if not cart:
        logger.warning("CART_DELETE_CART_NOT_FOUND", {"userId": user_id})
        raise NotFound("Cart not found!")

    remaining = [it for it in cart["items"] if it["productId"] != product_id]
    if len(remaining) == len(cart["items"]):
        logger.warning("CART_DELETE_ITEM_NOT_FOUND", {"userId": user_id, "productId": product_id})
    cart["items"] = remaining
    save_items(db, cart)

    logger.info("CART_DELETE_ITEM_SUCCESS", {
        "userId": user_id,
        "productId": product_id,
        "remainingItems": len(remaining),
    })
    return envelope(project_cart(db, cart))
