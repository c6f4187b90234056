"""
MongoDB access for the BlockBuster API.

`db` is None when DATABASE_URL is not set; routes reach the database
through the `get_db` dependency so tests can swap in another handle.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db = None

if DATABASE_URL:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]

CATALOG_COLLECTIONS = ("city", "venue", "movie", "event", "restaurant", "store", "activity")


def get_db():
    if db is None:
        raise HTTPException(500, "Database not configured")
    return db


def ensure_indexes(database) -> None:
    for name in CATALOG_COLLECTIONS:
        database[name].create_index([("slug", ASCENDING)], unique=True)
    database["user"].create_index([("clerkId", ASCENDING)], unique=True)
    database["booking"].create_index([("paymentOrderId", ASCENDING)], unique=True, sparse=True)
    database["booking"].create_index([("userId", ASCENDING)])
    database["screening"].create_index([("movie", ASCENDING), ("venue", ASCENDING)], unique=True)
    logger.info("Indexes ensured on %s", database.name)


def now_utc():
    return datetime.now(timezone.utc)


def oid(s: Any) -> ObjectId:
    if isinstance(s, ObjectId):
        return s
    try:
        return ObjectId(s)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid id")


def serialize(value: Any) -> Any:
    """Make a Mongo document JSON friendly: `_id` becomes `id`, ObjectIds become strings."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            out["id" if k == "_id" else k] = serialize(v)
        return out
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def serialize_all(docs: Iterable[dict]) -> List[dict]:
    return [serialize(d) for d in docs]


def create_document(database, collection_name: str, data) -> ObjectId:
    """Insert a model or dict, stamping created_at/updated_at."""
    if isinstance(data, BaseModel):
        payload = data.model_dump(exclude_none=True)
    else:
        payload = dict(data)
    payload.pop("id", None)
    payload["created_at"] = now_utc()
    payload["updated_at"] = payload["created_at"]
    res = database[collection_name].insert_one(payload)
    return res.inserted_id
