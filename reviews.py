"""Product reviews and the product rating aggregate."""

from typing import Any, Dict, Optional

import structlog
from pymongo import ReturnDocument

from database import collection, create_document, find_page, now, to_object_id
from errors import Conflict, Forbidden, NotFound, ValidationFailed, guarded
from schemas import Review as ReviewSchema
from security import is_admin, require_user
from serialize import serialize_product, serialize_review, serialize_user

logger = structlog.get_logger(__name__)


def recompute_product_rating(product_id: str) -> Dict[str, Any]:
    """Recompute ``average_rating``/``total_reviews`` from every review of the product.

    Always derived from the full review set, so a racing writer is corrected
    by the next call.
    """
    ratings = [r.get("rating", 0) for r in collection("review").find({"product_id": product_id}, {"rating": 1})]
    total = len(ratings)
    average = round(sum(ratings) / total, 1) if total else 0.0
    oid = to_object_id(product_id)
    if oid is not None:
        collection("product").update_one(
            {"_id": oid},
            {"$set": {"average_rating": average, "total_reviews": total, "updated_at": now()}},
        )
    return {"average_rating": average, "total_reviews": total}


def _lookup(name: str, ident: Optional[str]):
    oid = to_object_id(ident)
    return collection(name).find_one({"_id": oid}) if oid else None


def _with_relations(review: Optional[Dict[str, Any]], include_product: bool = True) -> Optional[Dict[str, Any]]:
    if not review:
        return None
    out = serialize_review(review)
    out["user"] = serialize_user(_lookup("user", review.get("user_id")))
    out["product"] = serialize_product(_lookup("product", review.get("product_id"))) if include_product else None
    return out


def _validate_rating(rating: Any) -> int:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationFailed("Rating must be an integer between 1 and 5")
    return rating


# ----------------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------------

def build_review_filter(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    filters = filters or {}
    for key in ("product_id", "user_id", "rating"):
        if filters.get(key):
            query[key] = filters[key]
    if filters.get("is_verified") is not None:
        query["is_verified"] = filters["is_verified"]
    return query


@guarded("Failed to fetch reviews")
def list_reviews(page: int = 1, per_page: int = 10, filters: Optional[Dict[str, Any]] = None, sort: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    docs, total, page, per_page = find_page("review", build_review_filter(filters), page, per_page, sort)
    return {"items": [_with_relations(r) for r in docs], "total": total, "page": page, "per_page": per_page}


@guarded("Failed to fetch review")
def get_review(review_id: str) -> Optional[Dict[str, Any]]:
    return _with_relations(_lookup("review", review_id))


@guarded("Failed to fetch product reviews")
def product_reviews(product_id: str, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
    docs, total, page, per_page = find_page("review", {"product_id": product_id}, page, per_page)
    return {"items": [_with_relations(r, include_product=False) for r in docs], "total": total, "page": page, "per_page": per_page}


# ----------------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------------

@guarded("Failed to create review")
def create_review(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_user(user)
    user_id = str(user["_id"])
    product_id = data.get("product_id")
    _validate_rating(data.get("rating"))

    if not _lookup("product", product_id):
        raise NotFound("Product not found")
    if collection("review").find_one({"user_id": user_id, "product_id": product_id}):
        raise Conflict("You have already reviewed this product")

    review = ReviewSchema(
        rating=data["rating"],
        comment=data.get("comment"),
        user_id=user_id,
        product_id=product_id,
        order_id=data.get("order_id"),
        is_verified=bool(data.get("order_id")),
    )
    doc = create_document("review", review)
    recompute_product_rating(product_id)
    logger.info("review created", review_id=str(doc["_id"]), product_id=product_id)
    return _with_relations(doc)


def _owned_review(user: Optional[Dict[str, Any]], review_id: str) -> Dict[str, Any]:
    require_user(user)
    review = _lookup("review", review_id)
    if not review:
        raise NotFound("Review not found")
    if review.get("user_id") != str(user["_id"]) and not is_admin(user):
        raise Forbidden("You can only modify your own reviews")
    return review


@guarded("Failed to update review")
def update_review(user: Optional[Dict[str, Any]], review_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    review = _owned_review(user, review_id)
    update: Dict[str, Any] = {}
    if data.get("rating") is not None:
        update["rating"] = _validate_rating(data["rating"])
    if "comment" in data:
        update["comment"] = data["comment"]
    if data.get("order_id"):
        update["order_id"] = data["order_id"]
        update["is_verified"] = True
    # product_id is immutable once reviewed
    update["updated_at"] = now()
    doc = collection("review").find_one_and_update({"_id": review["_id"]}, {"$set": update}, return_document=ReturnDocument.AFTER)
    recompute_product_rating(review["product_id"])
    return _with_relations(doc)


@guarded("Failed to delete review")
def delete_review(user: Optional[Dict[str, Any]], review_id: str) -> bool:
    review = _owned_review(user, review_id)
    deleted = collection("review").delete_one({"_id": review["_id"]}).deleted_count > 0
    if deleted:
        recompute_product_rating(review["product_id"])
    return deleted
