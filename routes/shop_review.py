from typing import Optional

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import Conflict, Forbidden, NotFound, envelope
from logger import logger
from schemas import Review
from security import get_current_user

router = APIRouter(prefix="/api/shop/review", tags=["shop"])

ALREADY_REVIEWED = "You already reviewed this product!"


def record_rating(db: Database, product_oid, review_value: int) -> Optional[dict]:
    """
    Fold one rating into the product's running mean.

    reviewCount/reviewTotal are incremented atomically, then averageReview
    is rewritten from that snapshot only while reviewCount still matches it.
    A review that lands in between owns the newer snapshot and writes the
    average itself, so a stale mean never overwrites a fresh one.
    """
    product = db["product"].find_one_and_update(
        {"_id": product_oid},
        {"$inc": {"reviewCount": 1, "reviewTotal": review_value}},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        return None
    average = product["reviewTotal"] / product["reviewCount"]
    written = db["product"].update_one(
        {"_id": product_oid, "reviewCount": product["reviewCount"]},
        {"$set": {"averageReview": average, "updatedAt": utcnow()}},
    )
    if not written.matched_count:
        logger.info("REVIEW_AVERAGE_SUPERSEDED", {"productId": str(product_oid), "reviewCount": product["reviewCount"]})
    product["averageReview"] = average
    return product


@router.post("", dependencies=[Depends(get_current_user)])
def add_product_review(payload: Review, db: Database = Depends(get_db)):
    product_id, user_id = payload.product_id, payload.user_id
    logger.info("REVIEW_ADD_REQUESTED", {
        "productId": product_id,
        "userId": user_id,
        "reviewValue": payload.review_value,
    })
    product_oid = parse_object_id(product_id, "product id")

    if not db["order"].find_one({"userId": user_id, "cartItems.productId": product_id}, {"_id": 1}):
        logger.warning("REVIEW_ADD_NOT_PURCHASED", {"productId": product_id, "userId": user_id})
        raise Forbidden("You need to purchase product to review it.")

    if db["review"].find_one({"productId": product_id, "userId": user_id}, {"_id": 1}):
        logger.warning("REVIEW_ADD_ALREADY_EXISTS", {"productId": product_id, "userId": user_id})
        raise Conflict(ALREADY_REVIEWED)

    if not db["product"].find_one({"_id": product_oid}, {"_id": 1}):
        logger.warning("REVIEW_ADD_PRODUCT_NOT_FOUND", {"productId": product_id})
        raise NotFound("Product not found!")

    try:
        review = create_document(db, "review", payload)
    except DuplicateKeyError:
        logger.warning("REVIEW_ADD_ALREADY_EXISTS", {"productId": product_id, "userId": user_id})
        raise Conflict(ALREADY_REVIEWED)

    product = record_rating(db, product_oid, payload.review_value)
    logger.info("REVIEW_ADD_SUCCESS", {
        "productId": product_id,
        "userId": user_id,
        "totalReviews": product["reviewCount"] if product else None,
        "averageReview": product["averageReview"] if product else None,
    })
    return envelope(serialize_doc(review), status_code=201)


@router.get("/{product_id}")
def get_product_reviews(product_id: str, db: Database = Depends(get_db)):
    reviews = get_documents(db, "review", {"productId": product_id}, sort=[("createdAt", -1)])
    logger.info("REVIEW_FETCH_SUCCESS", {"productId": product_id, "count": len(reviews)})
    return envelope([serialize_doc(r) for r in reviews])
