"""Products and categories."""

import re
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, find_page, now, to_object_id
from errors import Conflict, NotFound, ValidationFailed, guarded
from schemas import Category as CategorySchema, Product as ProductSchema
from security import require_admin
from serialize import serialize_category, serialize_product

logger = structlog.get_logger(__name__)

ITEMS_PER_PAGE = 12
OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def _with_category(product: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not product:
        return None
    out = serialize_product(product)
    category_oid = to_object_id(product.get("category_id"))
    category = collection("category").find_one({"_id": category_oid}) if category_oid else None
    out["category"] = serialize_category(category)
    return out


def _resolve_category_id(value: str) -> Optional[str]:
    if OBJECT_ID_RE.match(value):
        return value
    found = collection("category").find_one({"name": {"$regex": f"^{re.escape(value)}$", "$options": "i"}})
    return str(found["_id"]) if found else None


def build_product_filter(filters: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Translate the provided filter keys into a Mongo query.

    Returns None when a category name was given that matches nothing, so the
    caller can answer with an empty page.
    """
    query: Dict[str, Any] = {}
    filters = filters or {}

    if filters.get("min_price") is not None or filters.get("max_price") is not None:
        price: Dict[str, Any] = {}
        if filters.get("min_price") is not None:
            price["$gte"] = filters["min_price"]
        if filters.get("max_price") is not None:
            price["$lte"] = filters["max_price"]
        query["price"] = price

    if filters.get("category"):
        category_id = _resolve_category_id(filters["category"])
        if category_id is None:
            return None
        query["category_id"] = category_id

    if filters.get("search"):
        term = re.escape(filters["search"])
        query["$or"] = [
            {"name": {"$regex": term, "$options": "i"}},
            {"description": {"$regex": term, "$options": "i"}},
        ]

    if filters.get("tags"):
        query["tags"] = {"$in": list(filters["tags"])}

    if filters.get("featured") is not None:
        query["featured"] = filters["featured"]

    if filters.get("status"):
        query["status"] = filters["status"]

    return query


# ----------------------------------------------------------------------------
# Product queries
# ----------------------------------------------------------------------------

@guarded("Failed to fetch products")
def list_products(page: int = 1, per_page: int = ITEMS_PER_PAGE, filters: Optional[Dict[str, Any]] = None, sort: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    query = build_product_filter(filters)
    if query is None:
        return {"items": [], "total": 0, "page": page, "per_page": per_page}
    docs, total, page, per_page = find_page("product", query, page, per_page, sort)
    return {"items": [_with_category(d) for d in docs], "total": total, "page": page, "per_page": per_page}


@guarded("Failed to fetch product")
def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(product_id)
    if oid is None:
        return None
    return _with_category(collection("product").find_one({"_id": oid}))


@guarded("Failed to fetch product")
def get_product_by_slug(slug: str) -> Optional[Dict[str, Any]]:
    return _with_category(collection("product").find_one({"slug": slug}))


@guarded("Failed to fetch related products")
def related_products(product_id: str, limit: int = 4) -> List[Dict[str, Any]]:
    oid = to_object_id(product_id)
    current = collection("product").find_one({"_id": oid}) if oid else None
    if not current:
        return []
    cursor = collection("product").find({
        "category_id": current.get("category_id"),
        "_id": {"$ne": oid},
        "status": "ACTIVE",
    }).limit(limit)
    return [_with_category(p) for p in cursor]


@guarded("Failed to fetch featured products")
def featured_products(limit: int = 8) -> List[Dict[str, Any]]:
    cursor = collection("product").find({"featured": True, "status": "ACTIVE"}).sort("created_at", DESCENDING).limit(limit)
    return [_with_category(p) for p in cursor]


# ----------------------------------------------------------------------------
# Product mutations
# ----------------------------------------------------------------------------

def _check_product_unique(slug: Optional[str], sku: Optional[str], exclude=None) -> None:
    base = {"_id": {"$ne": exclude}} if exclude is not None else {}
    if slug and collection("product").find_one({**base, "slug": slug}):
        raise Conflict("Product slug already exists")
    if sku and collection("product").find_one({**base, "sku": sku}):
        raise Conflict("Product SKU already exists")


@guarded("Failed to create product")
def create_product(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    product = ProductSchema(**data)
    _check_product_unique(product.slug, product.sku)
    doc = create_document("product", product)
    logger.info("product created", product_id=str(doc["_id"]), slug=product.slug)
    return _with_category(doc)


@guarded("Failed to update product")
def update_product(user: Optional[Dict[str, Any]], product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    oid = to_object_id(product_id)
    existing = collection("product").find_one({"_id": oid}) if oid else None
    if not existing:
        raise NotFound("Product not found")
    # rating aggregates are owned by the review collection
    merged = {**existing, **data}
    merged.pop("_id", None)
    product = ProductSchema(**merged)
    _check_product_unique(data.get("slug"), data.get("sku"), exclude=oid)
    update = product.model_dump(exclude={"average_rating", "total_reviews"})
    update["updated_at"] = now()
    doc = collection("product").find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    return _with_category(doc)


@guarded("Failed to delete product")
def delete_product(user: Optional[Dict[str, Any]], product_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(product_id)
    if oid is None:
        return False
    return collection("product").delete_one({"_id": oid}).deleted_count > 0


# ----------------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------------

@guarded("Failed to fetch categories")
def list_categories() -> List[Dict[str, Any]]:
    return [serialize_category(c) for c in collection("category").find({}).sort("name", 1)]


@guarded("Failed to fetch category")
def get_category(category_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(category_id)
    if oid is None:
        return None
    return serialize_category(collection("category").find_one({"_id": oid}))


def _check_category_unique(name: str, exclude=None) -> None:
    query: Dict[str, Any] = {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
    if exclude is not None:
        query["_id"] = {"$ne": exclude}
    if collection("category").find_one(query):
        raise Conflict("Category name already exists")


@guarded("Failed to create category")
def create_category(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    category = CategorySchema(**data)
    category.name = category.name.strip()
    if not category.name:
        raise ValidationFailed("Category name is required")
    _check_category_unique(category.name)
    return serialize_category(create_document("category", category))


@guarded("Failed to update category")
def update_category(user: Optional[Dict[str, Any]], category_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    oid = to_object_id(category_id)
    existing = collection("category").find_one({"_id": oid}) if oid else None
    if not existing:
        raise NotFound("Category not found")
    merged = {**existing, **{k: v for k, v in data.items() if v is not None}}
    merged.pop("_id", None)
    update = CategorySchema(**merged).model_dump()
    update["name"] = update["name"].strip()
    if not update["name"]:
        raise ValidationFailed("Category name is required")
    _check_category_unique(update["name"], exclude=oid)
    update["updated_at"] = now()
    doc = collection("category").find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    return serialize_category(doc)


@guarded("Failed to delete category")
def delete_category(user: Optional[Dict[str, Any]], category_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(category_id)
    if oid is None:
        return False
    return collection("category").delete_one({"_id": oid}).deleted_count > 0
