import re

from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import get_db, get_documents, serialize_doc
from errors import ValidationError, envelope
from logger import logger

router = APIRouter(prefix="/api/shop/search", tags=["shop"])

SEARCH_FIELDS = ("title", "description", "category", "brand")


@router.get("/{keyword}")
def search_products(keyword: str, db: Database = Depends(get_db)):
    logger.info("PRODUCT_SEARCH_REQUESTED", {"keyword": keyword})
    if not keyword.strip():
        logger.warning("PRODUCT_SEARCH_INVALID_KEYWORD", {"keyword": keyword})
        raise ValidationError("Keyword is required and must be in string format")

    pattern = re.escape(keyword.strip())
    query = {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]}
    results = get_documents(db, "product", query)

    logger.info("PRODUCT_SEARCH_SUCCESS", {"keyword": keyword, "count": len(results)})
    return envelope([serialize_doc(p) for p in results])
