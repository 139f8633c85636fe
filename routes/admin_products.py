from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import NotFound, ValidationError, envelope
from logger import logger
from schemas import Product, ProductUpdate
from security import require_admin

router = APIRouter(prefix="/api/admin/products", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("")
def add_product(payload: Product, db: Database = Depends(get_db)):
    logger.info("PRODUCT_CREATE_REQUESTED", {
        "title": payload.title,
        "category": payload.category,
        "brand": payload.brand,
    })
    product = payload.model_copy(update={"average_review": 0, "review_count": 0, "review_total": 0})
    doc = create_document(db, "product", product)
    logger.info("PRODUCT_CREATE_SUCCESS", {"productId": str(doc["_id"])})
    return envelope(serialize_doc(doc), status_code=201)


@router.get("")
def fetch_all_products(db: Database = Depends(get_db)):
    products = get_documents(db, "product")
    logger.info("PRODUCT_FETCH_ALL_SUCCESS", {"count": len(products)})
    return envelope([serialize_doc(p) for p in products])


@router.put("/{product_id}")
def edit_product(product_id: str, payload: ProductUpdate, db: Database = Depends(get_db)):
    logger.info("PRODUCT_UPDATE_REQUESTED", {"productId": product_id})
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    if any(v is None for v in changes.values()):
        raise ValidationError()
    changes["updatedAt"] = utcnow()

    product = db["product"].find_one_and_update(
        {"_id": parse_object_id(product_id, "product id")},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        logger.warning("PRODUCT_UPDATE_NOT_FOUND", {"productId": product_id})
        raise NotFound("Product not found")

    logger.info("PRODUCT_UPDATE_SUCCESS", {"productId": product_id})
    return envelope(serialize_doc(product))


@router.delete("/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db)):
    logger.info("PRODUCT_DELETE_REQUESTED", {"productId": product_id})
    product = db["product"].find_one_and_delete({"_id": parse_object_id(product_id, "product id")})
    if not product:
        logger.warning("PRODUCT_DELETE_NOT_FOUND", {"productId": product_id})
        raise NotFound("Product not found")

    logger.info("PRODUCT_DELETE_SUCCESS", {"productId": product_id})
    return envelope(message="Product deleted successfully")
