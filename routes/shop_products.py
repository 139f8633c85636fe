from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import get_db, get_documents, parse_object_id, serialize_doc
from errors import NotFound, envelope
from logger import logger

router = APIRouter(prefix="/api/shop/products", tags=["shop"])

SORT_OPTIONS: Dict[str, Tuple[str, int]] = {
    "price-lowtohigh": ("price", 1),
    "price-hightolow": ("price", -1),
    "title-atoz": ("title", 1),
    "title-ztoa": ("title", -1),
}
DEFAULT_SORT = "price-lowtohigh"


def _split(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


@router.get("")
def get_filtered_products(
    category: Optional[str] = None,
    brand: Optional[str] = None,
    sortBy: str = DEFAULT_SORT,
    db: Database = Depends(get_db),
):
    logger.info("PRODUCT_FILTER_REQUESTED", {"category": category, "brand": brand, "sortBy": sortBy})
    filters = {}
    categories = _split(category)
    if categories:
        filters["category"] = {"$in": categories}
    brands = _split(brand)
    if brands:
        filters["brand"] = {"$in": brands}

    sort = SORT_OPTIONS.get(sortBy, SORT_OPTIONS[DEFAULT_SORT])
    products = get_documents(db, "product", filters, sort=[sort])

    logger.info("PRODUCT_FILTER_SUCCESS", {"count": len(products)})
    return envelope([serialize_doc(p) for p in products])


@router.get("/{product_id}")
def get_product_details(product_id: str, db: Database = Depends(get_db)):
    product = db["product"].find_one({"_id": parse_object_id(product_id, "product id")})
    if not product:
        logger.warning("PRODUCT_DETAILS_NOT_FOUND", {"productId": product_id})
        raise NotFound("Product not found!")
    return envelope(serialize_doc(product))
