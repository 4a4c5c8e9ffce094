"""Discount coupons."""

from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, now, to_object_id
from errors import Conflict, NotFound, ValidationFailed, guarded
from schemas import Coupon as CouponSchema, DiscountType
from security import require_admin
from serialize import serialize_coupon

logger = structlog.get_logger(__name__)


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


@guarded("Failed to fetch coupons")
def list_coupons() -> List[Dict[str, Any]]:
    return [serialize_coupon(c) for c in collection("coupon").find({}).sort("created_at", DESCENDING)]


@guarded("Failed to fetch coupon")
def get_coupon(coupon_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(coupon_id)
    if oid is None:
        return None
    return serialize_coupon(collection("coupon").find_one({"_id": oid}))


@guarded("Failed to fetch coupon")
def coupon_by_code(code: str) -> Optional[Dict[str, Any]]:
    return serialize_coupon(collection("coupon").find_one({"code": normalize_code(code), "is_active": True}))


def _check_code_free(code: str, exclude=None) -> None:
    query: Dict[str, Any] = {"code": code}
    if exclude is not None:
        query["_id"] = {"$ne": exclude}
    if collection("coupon").find_one(query):
        raise Conflict("Coupon code already exists")


def _check_window(coupon: CouponSchema) -> None:
    if coupon.start_date and coupon.end_date and coupon.end_date < coupon.start_date:
        raise ValidationFailed("End date must be after start date")
    if coupon.discount_type == DiscountType.PERCENTAGE.value and coupon.discount_value > 100:
        raise ValidationFailed("Percentage discount cannot exceed 100")


@guarded("Failed to create coupon")
def create_coupon(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    code = normalize_code(data.get("code"))
    if not code:
        raise ValidationFailed("Coupon code is required")
    coupon = CouponSchema(**{**data, "code": code, "used_count": 0})
    _check_window(coupon)
    _check_code_free(code)
    doc = create_document("coupon", coupon)
    logger.info("coupon created", code=code)
    return serialize_coupon(doc)


@guarded("Failed to update coupon")
def update_coupon(user: Optional[Dict[str, Any]], coupon_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    oid = to_object_id(coupon_id)
    existing = collection("coupon").find_one({"_id": oid}) if oid else None
    if not existing:
        raise NotFound("Coupon not found")
    update = dict(data)
    if update.get("code") is not None:
        update["code"] = normalize_code(update["code"])
        _check_code_free(update["code"], exclude=oid)
    merged = {**existing, **update}
    merged.pop("_id", None)
    coupon = CouponSchema(**merged)
    _check_window(coupon)
    fields = coupon.model_dump(exclude={"used_count"})
    fields["updated_at"] = now()
    doc = collection("coupon").find_one_and_update({"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER)
    return serialize_coupon(doc)


@guarded("Failed to delete coupon")
def delete_coupon(user: Optional[Dict[str, Any]], coupon_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(coupon_id)
    if oid is None:
        return False
    return collection("coupon").delete_one({"_id": oid}).deleted_count > 0


@guarded("Failed to validate coupon")
def validate_coupon(code: str, subtotal: float) -> Dict[str, Any]:
    """Work out what ``code`` is worth against ``subtotal``.

    Returns ``{"valid", "message", "discount", "free_shipping", "coupon"}``;
    an unusable coupon is reported through ``valid``/``message`` rather than
    raised, since the checkout shows the reason inline.
    """
    coupon = collection("coupon").find_one({"code": normalize_code(code)})

    def rejected(message: str) -> Dict[str, Any]:
        return {"valid": False, "message": message, "discount": 0.0, "free_shipping": False, "coupon": serialize_coupon(coupon)}

    if not coupon or not coupon.get("is_active", True):
        return rejected("Invalid coupon code")
    current = now()
    if coupon.get("start_date") and coupon["start_date"] > current:
        return rejected("Coupon is not active yet")
    if coupon.get("end_date") and coupon["end_date"] < current:
        return rejected("Coupon has expired")
    if coupon.get("usage_limit") is not None and coupon.get("used_count", 0) >= coupon["usage_limit"]:
        return rejected("Coupon usage limit reached")
    if coupon.get("min_order_amount") and subtotal < coupon["min_order_amount"]:
        return rejected(f"Minimum order amount is {coupon['min_order_amount']:.2f}")

    discount_type = coupon.get("discount_type")
    value = float(coupon.get("discount_value") or 0)
    discount = 0.0
    if discount_type == DiscountType.PERCENTAGE.value:
        discount = subtotal * value / 100
    elif discount_type == DiscountType.FIXED_AMOUNT.value:
        discount = value
    if coupon.get("max_discount_amount") is not None:
        discount = min(discount, float(coupon["max_discount_amount"]))
    discount = round(min(discount, subtotal), 2)

    return {
        "valid": True,
        "message": "Coupon applied",
        "discount": discount,
        "free_shipping": discount_type == DiscountType.FREE_SHIPPING.value,
        "coupon": serialize_coupon(coupon),
    }
