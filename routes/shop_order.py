"""
Order placement: create an order behind a PayPal payment, then capture it.

Capture moves the order through pending -> capturing -> confirmed|failed.
The capturing claim is a conditional update, so two concurrent captures of
the same order cannot both apply side effects, and a confirmed order is
returned as-is on retry. Stock is taken with conditional decrements
(totalStock >= quantity) and given back if a later line item or the
payment execution fails. Any error after the claim leaves the order
failed, never capturing. paymentExecutedAt marks an order whose payment
went through; retrying it only finishes the confirm write.
"""
from typing import List

from bson import ObjectId
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import Conflict, InsufficientStock, NotFound, ShopError, ValidationError, envelope
from logger import logger
from paypal import PayPalClient, get_payment_gateway
from schemas import CapturePaymentRequest, CreateOrderRequest, Order
from security import get_current_user
from settings import Settings, get_settings

router = APIRouter(prefix="/api/shop/order", tags=["shop"], dependencies=[Depends(get_current_user)])

CAPTURABLE_STATUSES = ["pending", "failed"]


def order_total(items: List[dict]) -> float:
    return round(sum(item["price"] * item["quantity"] for item in items), 2)


def reserve_stock(db: Database, item: dict, order_id: str):
    quantity = item["quantity"]
    product_id = item["productId"]
    if not ObjectId.is_valid(product_id):
        raise NotFound("Product not found during stock update")
    product_oid = ObjectId(product_id)

    taken = db["product"].find_one_and_update(
        {"_id": product_oid, "totalStock": {"$gte": quantity}},
        {"$inc": {"totalStock": -quantity}},
    )
    if taken:
        return

    product = db["product"].find_one({"_id": product_oid}, {"title": 1, "totalStock": 1})
    if not product:
        logger.error("ORDER_STOCK_PRODUCT_NOT_FOUND", {"orderId": order_id, "productId": product_id})
        raise NotFound("Product not found during stock update")

    logger.warning("ORDER_INSUFFICIENT_STOCK", {
        "orderId": order_id,
        "productId": product_id,
        "available": product.get("totalStock", 0),
        "required": quantity,
    })
    raise InsufficientStock(product.get("title", product_id), product.get("totalStock", 0), quantity)


def release_stock(db: Database, items: List[dict], order_id: str):
    for item in items:
        db["product"].update_one(
            {"_id": ObjectId(item["productId"])},
            {"$inc": {"totalStock": item["quantity"]}},
        )
    if items:
        logger.warning("ORDER_STOCK_RELEASED", {"orderId": order_id, "lineItems": len(items)})


@router.post("", status_code=201)
def create_order(
    payload: CreateOrderRequest,
    db: Database = Depends(get_db),
    gateway: PayPalClient = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
):
    logger.info("ORDER_CREATE_REQUESTED", {
        "userId": payload.user_id,
        "cartId": payload.cart_id,
        "totalAmount": payload.total_amount,
    })
    items = [item.model_dump(by_alias=True) for item in payload.cart_items]
    total = order_total(items)
    if abs(total - payload.total_amount) > 0.01:
        logger.warning("ORDER_TOTAL_MISMATCH", {"submitted": payload.total_amount, "computed": total})
        raise ValidationError("Order total does not match its items")

    try:
        approval = gateway.create_payment(
            items,
            total,
            return_url=f"{settings.client_base_url}/shop/paypal-return",
            cancel_url=f"{settings.client_base_url}/shop/paypal-cancel",
        )
    except ShopError:
        logger.error("PAYPAL_PAYMENT_CREATE_FAILED", {"userId": payload.user_id, "cartId": payload.cart_id})
        raise

    now = utcnow()
    order = Order(
        user_id=payload.user_id,
        cart_id=payload.cart_id,
        cart_items=payload.cart_items,
        address_info=payload.address_info,
        payment_method=payload.payment_method,
        total_amount=total,
        order_date=now,
        order_update_date=now,
        payment_id=approval.payment_id,
    )
    doc = create_document(db, "order", order)
    order_id = str(doc["_id"])

    logger.info("ORDER_CREATED_AWAITING_PAYMENT", {
        "orderId": order_id,
        "userId": payload.user_id,
        "totalAmount": total,
    })
    return envelope(status_code=201, approvalURL=approval.approval_url, orderId=order_id)


@router.post("/capture")
def capture_payment(
    payload: CapturePaymentRequest,
    db: Database = Depends(get_db),
    gateway: PayPalClient = Depends(get_payment_gateway),
):
    order_id = payload.order_id
    logger.info("ORDER_PAYMENT_CAPTURE_REQUESTED", {"orderId": order_id})
    order_oid = parse_object_id(order_id, "order id")

    order = db["order"].find_one({"_id": order_oid})
    if not order:
        logger.warning("ORDER_PAYMENT_CAPTURE_ORDER_NOT_FOUND", {"orderId": order_id})
        raise NotFound("Order cannot be found")

    if order.get("orderStatus") == "confirmed" and order.get("paymentStatus") == "paid":
        logger.info("ORDER_PAYMENT_ALREADY_CAPTURED", {"orderId": order_id})
        return envelope(serialize_doc(order), message="Order confirmed")

    if order.get("paymentId") and order["paymentId"] != payload.payment_id:
        logger.warning("ORDER_PAYMENT_ID_MISMATCH", {"orderId": order_id, "paymentId": payload.payment_id})
        raise ValidationError("Payment does not belong to this order")

    claimed = db["order"].find_one_and_update(
        {"_id": order_oid, "orderStatus": {"$in": CAPTURABLE_STATUSES}},
        {"$set": {"orderStatus": "capturing", "orderUpdateDate": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not claimed:
        logger.warning("ORDER_PAYMENT_CAPTURE_IN_PROGRESS", {"orderId": order_id, "status": order.get("orderStatus")})
        raise Conflict("Payment capture already in progress for this order")

    reserved = []
    executed = bool(claimed.get("paymentExecutedAt"))
    confirmed = None
    reason = "Capture interrupted"
    try:
        if executed:
            logger.info("ORDER_PAYMENT_ALREADY_EXECUTED", {"orderId": order_id})
        else:
            for item in claimed["cartItems"]:
                reserve_stock(db, item, order_id)
                reserved.append(item)
            gateway.execute_payment(payload.payment_id, payload.payer_id)
            executed = True
            db["order"].update_one(
                {"_id": order_oid},
                {"$set": {"paymentExecutedAt": utcnow(), "payerId": payload.payer_id}},
            )

        now = utcnow()
        confirmed = db["order"].find_one_and_update(
            {"_id": order_oid},
            {
                "$set": {
                    "paymentStatus": "paid",
                    "orderStatus": "confirmed",
                    "paymentId": payload.payment_id,
                    "payerId": payload.payer_id,
                    "orderUpdateDate": now,
                    "updatedAt": now,
                },
                "$unset": {"failureReason": ""},
            },
            return_document=ReturnDocument.AFTER,
        )
    except Exception as e:
        reason = e.message if isinstance(e, ShopError) else str(e)
        logger.error("ORDER_PAYMENT_CAPTURE_FAILED", {"orderId": order_id, "error": reason, "paymentExecuted": executed})
        # stock stays taken once the buyer has been charged
        if not executed:
            release_stock(db, reserved, order_id)
        raise
    finally:
        if confirmed is None:
            db["order"].update_one(
                {"_id": order_oid, "orderStatus": "capturing"},
                {"$set": {"orderStatus": "failed", "failureReason": reason, "orderUpdateDate": utcnow()}},
            )

    if ObjectId.is_valid(claimed["cartId"]):
        db["cart"].delete_one({"_id": ObjectId(claimed["cartId"])})

    logger.info("ORDER_CONFIRMED_AND_CART_CLEARED", {"orderId": order_id, "userId": claimed["userId"]})
    return envelope(serialize_doc(confirmed), message="Order confirmed")


@router.get("/list/{user_id}")
def get_all_orders_by_user(user_id: str, db: Database = Depends(get_db)):
    orders = get_documents(db, "order", {"userId": user_id}, sort=[("orderDate", -1)])
    if not orders:
        logger.warning("USER_ORDERS_EMPTY", {"userId": user_id})
        raise NotFound("No orders found!")

    logger.info("USER_ORDERS_FETCH_SUCCESS", {"userId": user_id, "count": len(orders)})
    return envelope([serialize_doc(o) for o in orders])


@router.get("/details/{order_id}")
def get_order_details(order_id: str, db: Database = Depends(get_db)):
    order = db["order"].find_one({"_id": parse_object_id(order_id, "order id")})
    if not order:
        logger.warning("ORDER_DETAILS_NOT_FOUND", {"orderId": order_id})
        raise NotFound("Order not found!")
    return envelope(serialize_doc(order))
