from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import NotFound, envelope
from logger import logger
from schemas import OrderStatusUpdate
from security import require_admin

router = APIRouter(prefix="/api/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("")
def get_all_orders_of_all_users(db: Database = Depends(get_db)):
    orders = get_documents(db, "order", sort=[("orderDate", -1)])
    if not orders:
        logger.warning("ADMIN_GET_ALL_ORDERS_EMPTY")
        raise NotFound("No orders found!")

    logger.info("ADMIN_GET_ALL_ORDERS_SUCCESS", {"count": len(orders)})
    return envelope([serialize_doc(o) for o in orders])


@router.get("/{order_id}")
def get_order_details_for_admin(order_id: str, db: Database = Depends(get_db)):
    order = db["order"].find_one({"_id": parse_object_id(order_id, "order id")})
    if not order:
        logger.warning("ADMIN_GET_ORDER_DETAILS_NOT_FOUND", {"orderId": order_id})
        raise NotFound("Order not found!")
    return envelope(serialize_doc(order))


@router.put("/{order_id}")
def update_order_status(order_id: str, payload: OrderStatusUpdate, db: Database = Depends(get_db)):
    logger.info("ADMIN_UPDATE_ORDER_STATUS_REQUESTED", {"orderId": order_id, "newStatus": payload.order_status})
    now = utcnow()
    result = db["order"].update_one(
        {"_id": parse_object_id(order_id, "order id")},
        {"$set": {"orderStatus": payload.order_status, "orderUpdateDate": now, "updatedAt": now}},
    )
    if result.matched_count == 0:
        logger.warning("ADMIN_UPDATE_ORDER_STATUS_NOT_FOUND", {"orderId": order_id})
        raise NotFound("Order not found!")

    logger.info("ADMIN_UPDATE_ORDER_STATUS_SUCCESS", {"orderId": order_id, "newStatus": payload.order_status})
    return envelope(message="Order status is updated successfully!")
