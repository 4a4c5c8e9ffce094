"""
Serialization adapters: MongoDB documents -> wire-safe dicts.

Every adapter accepts a stored document (or ``None``) and returns ``None`` or
a plain dict holding only strings, numbers, booleans, lists and dicts. The
document id is exposed under both ``_id`` and ``id``. Adapters never raise on
odd shapes; validation belongs to the callers.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId


def _iso(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return None


def _id(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return [serialize_document(v) for v in value]
    return []


def serialize_document(doc: Any) -> Any:
    """Generic fallback: walk dicts/lists, stringify ObjectIds and dates."""
    if doc is None:
        return None
    if isinstance(doc, (list, tuple)):
        return [serialize_document(v) for v in doc]
    if isinstance(doc, dict):
        out: Dict[str, Any] = {}
        for key, value in doc.items():
            if key == "_id" and value is not None:
                out["_id"] = str(value)
                out["id"] = str(value)
            else:
                out[key] = serialize_document(value)
        return out
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, (datetime, date)):
        return _iso(doc)
    return doc


def _base(doc: Dict[str, Any]) -> Dict[str, Any]:
    ident = _id(doc.get("_id"))
    return {
        "_id": ident,
        "id": ident,
        "created_at": _iso(doc.get("created_at")),
        "updated_at": _iso(doc.get("updated_at")),
    }


def serialize_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not user:
        return None
    return {
        **_base(user),
        "name": user.get("name"),
        "email": user.get("email"),
        "email_verified": _iso(user.get("email_verified")),
        "image": user.get("image"),
        "phone": user.get("phone"),
        "address": user.get("address"),
        "city": user.get("city"),
        "state": user.get("state"),
        "zip_code": user.get("zip_code"),
        "country": user.get("country"),
        "date_of_birth": _iso(user.get("date_of_birth")),
        "role": user.get("role") or "USER",
        "status": user.get("status") or "active",
        "tags": _list(user.get("tags")),
        "last_login_at": _iso(user.get("last_login_at")),
    }


def serialize_category(category: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not category:
        return None
    return {
        **_base(category),
        "name": category.get("name"),
        "description": category.get("description"),
        "image": category.get("image"),
    }


def _serialize_image(image: Any) -> Any:
    if isinstance(image, str):
        # legacy records stored bare URLs
        return {"url": image, "public_id": "", "alt": None, "is_primary": False}
    if not isinstance(image, dict):
        return None
    return {
        "url": image.get("url"),
        "public_id": image.get("public_id"),
        "alt": image.get("alt"),
        "is_primary": bool(image.get("is_primary")),
    }


def serialize_product(product: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not product:
        return None
    images = [_serialize_image(i) for i in product.get("images") or []]
    dimensions = product.get("dimensions")
    return {
        **_base(product),
        "name": product.get("name"),
        "slug": product.get("slug"),
        "description": product.get("description") or "",
        "short_description": product.get("short_description"),
        "price": _float(product.get("price")),
        "compare_price": _float(product.get("compare_price")),
        "discount_percentage": _float(product.get("discount_percentage"), 0.0),
        "images": [i for i in images if i is not None],
        "category_id": _id(product.get("category_id")),
        "stock": _int(product.get("stock"), 0),
        "low_stock_threshold": _int(product.get("low_stock_threshold"), 10),
        "sku": product.get("sku"),
        "weight": _float(product.get("weight")),
        "dimensions": {
            "length": _float(dimensions.get("length")),
            "width": _float(dimensions.get("width")),
            "height": _float(dimensions.get("height")),
        } if isinstance(dimensions, dict) else None,
        "tags": _list(product.get("tags")),
        "meta_title": product.get("meta_title"),
        "meta_description": product.get("meta_description"),
        "status": product.get("status") or "ACTIVE",
        "featured": bool(product.get("featured")),
        "average_rating": _float(product.get("average_rating"), 0.0),
        "total_reviews": _int(product.get("total_reviews"), 0),
    }


def _serialize_order_item(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "product_id": _id(item.get("product_id")),
        "name": item.get("name"),
        "price": _float(item.get("price")),
        "compare_price": _float(item.get("compare_price")),
        "quantity": _int(item.get("quantity")),
        "image": item.get("image") or "",
        "sku": item.get("sku") or "",
    }


ADDRESS_FIELDS = ("first_name", "last_name", "email", "phone", "address", "city", "state", "zip_code", "country")


def serialize_order(order: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not order:
        return None
    address = order.get("shipping_address") or {}
    payment = order.get("payment_method") or {}
    if isinstance(payment, str):
        payment = {"type": payment}
    return {
        **_base(order),
        "user_id": _id(order.get("user_id")),
        "is_guest": bool(order.get("is_guest")),
        "order_number": order.get("order_number"),
        "status": order.get("status") or "PENDING",
        "payment_status": order.get("payment_status") or "PENDING",
        "items": [_serialize_order_item(i) for i in order.get("items") or [] if isinstance(i, dict)],
        "shipping_address": {f: address.get(f) or "" for f in ADDRESS_FIELDS},
        "payment_method": {
            "type": payment.get("type") or "",
            "last_four_digits": payment.get("last_four_digits"),
        },
        "subtotal": _float(order.get("subtotal"), 0.0),
        "shipping_cost": _float(order.get("shipping_cost"), 0.0),
        "tax_amount": _float(order.get("tax_amount"), 0.0),
        "total_amount": _float(order.get("total_amount"), 0.0),
        "savings": _float(order.get("savings")),
        "shipping_method": order.get("shipping_method") or "",
        "order_notes": order.get("order_notes"),
        "tracking_number": order.get("tracking_number"),
        "razorpay_order_id": order.get("razorpay_order_id"),
        "razorpay_payment_id": order.get("razorpay_payment_id"),
        "shipped_at": _iso(order.get("shipped_at")),
        "delivered_at": _iso(order.get("delivered_at")),
        "refund_id": order.get("refund_id"),
        "refund_amount": _float(order.get("refund_amount")),
        "refund_reason": order.get("refund_reason"),
        "refunded_at": _iso(order.get("refunded_at")),
    }


def serialize_review(review: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not review:
        return None
    return {
        **_base(review),
        "rating": _int(review.get("rating")),
        "comment": review.get("comment"),
        "user_id": _id(review.get("user_id")),
        "product_id": _id(review.get("product_id")),
        "is_verified": bool(review.get("is_verified")),
    }


def serialize_coupon(coupon: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not coupon:
        return None
    return {
        **_base(coupon),
        "code": coupon.get("code"),
        "name": coupon.get("name"),
        "description": coupon.get("description"),
        "discount_type": coupon.get("discount_type"),
        "discount_value": _float(coupon.get("discount_value"), 0.0),
        "min_order_amount": _float(coupon.get("min_order_amount")),
        "max_discount_amount": _float(coupon.get("max_discount_amount")),
        "usage_limit": _int(coupon.get("usage_limit")),
        "used_count": _int(coupon.get("used_count"), 0),
        "is_active": bool(coupon.get("is_active", True)),
        "start_date": _iso(coupon.get("start_date")),
        "end_date": _iso(coupon.get("end_date")),
    }


def serialize_newsletter_subscription(sub: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not sub:
        return None
    return {
        "_id": _id(sub.get("_id")),
        "id": _id(sub.get("_id")),
        "email": sub.get("email"),
        "name": sub.get("name"),
        "is_active": bool(sub.get("is_active", True)),
        "subscribed_at": _iso(sub.get("subscribed_at") or sub.get("created_at")),
        "unsubscribed_at": _iso(sub.get("unsubscribed_at")),
        "source": sub.get("source") or "website",
        "tags": _list(sub.get("tags")),
    }


def serialize_newsletter_campaign(campaign: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not campaign:
        return None
    recipients = _int(campaign.get("recipient_count"), 0) or 0
    opens = _int(campaign.get("open_count"), 0) or 0
    clicks = _int(campaign.get("click_count"), 0) or 0
    return {
        **_base(campaign),
        "subject": campaign.get("subject"),
        "content": campaign.get("content"),
        "status": campaign.get("status") or "draft",
        "created_by": _id(campaign.get("created_by")),
        "recipient_count": recipients,
        "open_count": opens,
        "click_count": clicks,
        "open_rate": round(opens / recipients * 100, 2) if recipients else None,
        "click_rate": round(clicks / opens * 100, 2) if opens else None,
        "sent_at": _iso(campaign.get("sent_at")),
        "scheduled_at": _iso(campaign.get("scheduled_at")),
    }


def serialize_shipping_zone(zone: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not zone:
        return None
    return {
        **_base(zone),
        "name": zone.get("name"),
        "countries": _list(zone.get("countries")),
        "states": _list(zone.get("states")),
        "is_default": bool(zone.get("is_default")),
    }


def serialize_shipping_rate(rate: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not rate:
        return None
    return {
        **_base(rate),
        "zone_id": _id(rate.get("zone_id")),
        "name": rate.get("name"),
        "description": rate.get("description"),
        "method": rate.get("method"),
        "cost": _float(rate.get("cost"), 0.0),
        "min_order_amount": _float(rate.get("min_order_amount")),
        "max_order_amount": _float(rate.get("max_order_amount")),
        "min_weight": _float(rate.get("min_weight")),
        "max_weight": _float(rate.get("max_weight")),
        "estimated_days": rate.get("estimated_days") or "3-5",
        "is_active": bool(rate.get("is_active", True)),
    }


SETTINGS_TEXT_FIELDS = (
    "store_description", "store_logo", "favicon", "store_phone", "store_address",
    "business_name", "business_address", "business_phone", "business_email",
    "tax_id", "vat_number", "registration_number",
    "facebook_url", "twitter_url", "instagram_url", "linkedin_url",
    "privacy_policy", "terms_of_service", "return_policy", "shipping_policy",
)


def serialize_store_settings(settings: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not settings:
        return None
    payment_methods = settings.get("payment_methods") or {}
    out = {
        **_base(settings),
        "store_name": settings.get("store_name"),
        "store_email": settings.get("store_email"),
        "payment_methods": {"razorpay": bool(payment_methods.get("razorpay", True))},
        "currency": settings.get("currency"),
        "timezone": settings.get("timezone"),
        "language": settings.get("language"),
        "date_format": settings.get("date_format"),
    }
    for field in SETTINGS_TEXT_FIELDS:
        out[field] = settings.get(field)
    return out


def serialize_report(report: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not report:
        return None
    base = _base(report)
    return {
        **base,
        "name": report.get("name"),
        "type": report.get("type"),
        "generated_by": _id(report.get("generated_by")),
        "generated_at": base["created_at"],
        "period": report.get("period"),
        "status": report.get("status") or "generating",
        "download_url": report.get("download_url"),
    }
