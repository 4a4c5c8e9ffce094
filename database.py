"""
MongoDB access helpers.

A single client is created at import time; pymongo connects lazily, so
importing this module never touches the network. Tests swap ``db`` for an
in-memory database.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient

from config import DATABASE_NAME, DATABASE_URL

logger = structlog.get_logger(__name__)

client = MongoClient(DATABASE_URL)
db = client[DATABASE_NAME]


def now() -> datetime:
    # naive UTC, matching what pymongo hands back on reads
    return datetime.now(timezone.utc).replace(tzinfo=None)


def collection(name: str):
    return db[name]


def to_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def create_document(collection_name: str, data: Any) -> Dict[str, Any]:
    """Insert a document (dict or pydantic model) with timestamps and return it as stored."""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    doc = dict(data)
    stamp = now()
    doc.setdefault("created_at", stamp)
    doc["updated_at"] = stamp
    inserted_id = db[collection_name].insert_one(doc).inserted_id
    doc["_id"] = inserted_id
    return doc


def sort_spec(sort: Optional[Dict[str, Any]], default: Tuple[str, int] = ("created_at", DESCENDING)) -> List[Tuple[str, int]]:
    if not sort or not sort.get("field"):
        return [default]
    direction = ASCENDING if sort.get("order") == "ASC" else DESCENDING
    return [(sort["field"], direction)]


def find_page(collection_name: str, filter_dict: Dict[str, Any], page: int = 1, per_page: int = 10, sort: Optional[Dict[str, Any]] = None):
    """Return ``(documents, total, page, per_page)``; total ignores pagination."""
    page = max(1, int(page or 1))
    per_page = max(1, int(per_page or 10))
    total = db[collection_name].count_documents(filter_dict)
    cursor = (
        db[collection_name]
        .find(filter_dict)
        .sort(sort_spec(sort))
        .skip((page - 1) * per_page)
        .limit(per_page)
    )
    return list(cursor), total, page, per_page


UNIQUE_INDEXES = [
    ("user", "email"),
    ("product", "slug"),
    ("product", "sku"),
    ("category", "name"),
    ("order", "order_number"),
    ("coupon", "code"),
    ("newsletter_subscription", "email"),
    ("store_settings", "singleton_key"),
]


def ensure_indexes() -> None:
    for collection_name, field in UNIQUE_INDEXES:
        db[collection_name].create_index([(field, ASCENDING)], unique=True)
    db["review"].create_index([("product_id", ASCENDING), ("user_id", ASCENDING)])
    db["order"].create_index([("user_id", ASCENDING), ("created_at", ASCENDING)])
    db["shipping_rate"].create_index([("zone_id", ASCENDING)])
    logger.info("indexes ensured", collections=len(UNIQUE_INDEXES))
