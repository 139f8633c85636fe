"""
MongoDB access helpers.

Collections are named after the lowercase model name ("user", "product",
"cart", "order", "address", "review", "feature"). Handlers receive the
database through the get_db dependency so tests can swap it out.
"""
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from errors import ValidationError
from settings import get_settings


@lru_cache()
def get_client() -> MongoClient:
    settings = get_settings()
    return MongoClient(settings.database_url, serverSelectionTimeoutMS=5000, tz_aware=True)


def get_db() -> Database:
    return get_client()[get_settings().database_name]


def ensure_indexes(db: Database):
    db["user"].create_index([("email", ASCENDING)], unique=True)
    db["review"].create_index([("productId", ASCENDING), ("userId", ASCENDING)], unique=True)
    db["cart"].create_index([("userId", ASCENDING)])
    db["order"].create_index([("userId", ASCENDING)])
    db["address"].create_index([("userId", ASCENDING)])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_object_id(value: Any, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise ValidationError(f"Invalid {label}")
    return ObjectId(str(value))


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Make a stored document JSON-ready: _id -> id, ObjectIds and datetimes as strings."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        else:
            out[key] = _jsonable(value)
    return out


def _jsonable(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert with createdAt/updatedAt stamps and return the stored document."""
    if isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True)
    else:
        doc = dict(data)
    now = utcnow()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
