"""Order creation and lifecycle management."""

import secrets
import time
from typing import Any, Dict, Optional

import structlog
from pymongo import ReturnDocument

from checkout import missing_shipping_fields
from config import ALLOW_GUEST_CHECKOUT
from database import collection, create_document, find_page, now, to_object_id
from errors import AuthenticationRequired, NotFound, ValidationFailed, guarded
from schemas import Order as OrderSchema, OrderStatus
from security import guest_identity, require_admin
from serialize import serialize_order, serialize_user

logger = structlog.get_logger(__name__)

FLAT_SHIPPING_COST = 10.0
TAX_RATE = 0.10


def _owner(user_id: Optional[str]) -> Optional[Dict[str, Any]]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return collection("user").find_one({"_id": oid})


def _with_user(order: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not order:
        return None
    out = serialize_order(order)
    out["user"] = serialize_user(_owner(order.get("user_id")))
    return out


def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


def compute_totals(items) -> Dict[str, float]:
    subtotal = sum(float(i["price"]) * int(i["quantity"]) for i in items)
    savings = sum(
        (float(i["compare_price"]) - float(i["price"])) * int(i["quantity"])
        for i in items
        if i.get("compare_price") and float(i["compare_price"]) > float(i["price"])
    )
    tax_amount = round(subtotal * TAX_RATE, 2)
    return {
        "subtotal": round(subtotal, 2),
        "shipping_cost": FLAT_SHIPPING_COST,
        "tax_amount": tax_amount,
        "total_amount": round(subtotal + FLAT_SHIPPING_COST + tax_amount, 2),
        "savings": round(savings, 2),
    }


# ----------------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------------

def build_order_filter(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    filters = filters or {}
    if filters.get("status"):
        query["status"] = filters["status"]
    if filters.get("payment_status"):
        query["payment_status"] = filters["payment_status"]
    if filters.get("user_id"):
        query["user_id"] = filters["user_id"]
    if filters.get("date_from") or filters.get("date_to"):
        created: Dict[str, Any] = {}
        if filters.get("date_from"):
            created["$gte"] = filters["date_from"]
        if filters.get("date_to"):
            created["$lte"] = filters["date_to"]
        query["created_at"] = created
    return query


@guarded("Failed to fetch orders")
def list_orders(page: int = 1, per_page: int = 10, filters: Optional[Dict[str, Any]] = None, sort: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    docs, total, page, per_page = find_page("order", build_order_filter(filters), page, per_page, sort)
    # one user lookup per order
    return {"items": [_with_user(o) for o in docs], "total": total, "page": page, "per_page": per_page}


@guarded("Failed to fetch order")
def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(order_id)
    if oid is None:
        return None
    return _with_user(collection("order").find_one({"_id": oid}))


@guarded("Failed to fetch user orders")
def user_orders(user_id: str, page: int = 1, per_page: int = 10) -> Dict[str, Any]:
    docs, total, page, per_page = find_page("order", {"user_id": user_id}, page, per_page)
    return {"items": [_with_user(o) for o in docs], "total": total, "page": page, "per_page": per_page}


# ----------------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------------

@guarded("Failed to create order")
def create_order(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    items = data.get("items") or []
    if not items:
        raise ValidationFailed("Order items are required")
    if not data.get("shipping_address"):
        raise ValidationFailed("Shipping address is required")
    missing = missing_shipping_fields(data["shipping_address"])
    if missing:
        raise ValidationFailed("Missing shipping address fields: " + ", ".join(missing))
    if not data.get("payment_method"):
        raise ValidationFailed("Payment method is required")

    if user:
        user_id, is_guest = str(user["_id"]), False
    elif ALLOW_GUEST_CHECKOUT:
        user_id, is_guest = guest_identity(), True
    else:
        raise AuthenticationRequired()

    order = OrderSchema(
        user_id=user_id,
        is_guest=is_guest,
        order_number=generate_order_number(),
        status=OrderStatus.PENDING,
        payment_status="PENDING",
        items=items,
        shipping_address=data["shipping_address"],
        payment_method=data["payment_method"],
        shipping_method=data.get("shipping_method") or "standard",
        order_notes=data.get("order_notes"),
        **compute_totals(items),
    )
    doc = create_document("order", order)
    logger.info("order created", order_number=order.order_number, guest=is_guest, total=order.total_amount)
    out = serialize_order(doc)
    out["user"] = serialize_user(user) if user else None
    return out


def _update_order(order_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
    oid = to_object_id(order_id)
    if oid is None:
        raise NotFound("Order not found")
    update["updated_at"] = now()
    doc = collection("order").find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    if not doc:
        raise NotFound("Order not found")
    return doc


@guarded("Failed to update order status")
def update_order_status(user: Optional[Dict[str, Any]], order_id: str, status: str) -> Dict[str, Any]:
    require_admin(user)
    update: Dict[str, Any] = {"status": status}
    if status == OrderStatus.SHIPPED.value:
        update["shipped_at"] = now()
    elif status == OrderStatus.DELIVERED.value:
        update["delivered_at"] = now()
    doc = _update_order(order_id, update)
    logger.info("order status changed", order_id=order_id, status=status)
    return _with_user(doc)


@guarded("Failed to update order tracking")
def update_order_tracking(user: Optional[Dict[str, Any]], order_id: str, tracking_number: str) -> Dict[str, Any]:
    require_admin(user)
    tracking_number = (tracking_number or "").strip()
    if not tracking_number:
        raise ValidationFailed("Tracking number is required")
    doc = _update_order(order_id, {
        "tracking_number": tracking_number,
        "status": OrderStatus.SHIPPED.value,
        "shipped_at": now(),
    })
    return _with_user(doc)


@guarded("Failed to refund order")
def refund_order(user: Optional[Dict[str, Any]], order_id: str, amount: Optional[float] = None, reason: Optional[str] = None) -> Dict[str, Any]:
    require_admin(user)
    oid = to_object_id(order_id)
    order = collection("order").find_one({"_id": oid}) if oid else None
    if not order:
        raise NotFound("Order not found")
    if order.get("status") == OrderStatus.REFUNDED.value:
        raise ValidationFailed("Order already refunded")

    total = float(order.get("total_amount") or 0)
    refund_amount = total if amount is None else float(amount)
    if refund_amount <= 0 or refund_amount > total:
        raise ValidationFailed("Refund amount must be between 0 and the order total")

    # gateway refunds are issued outside this service; only the ledger is updated here
    doc = _update_order(order_id, {
        "status": OrderStatus.REFUNDED.value,
        "payment_status": "REFUNDED",
        "refund_amount": round(refund_amount, 2),
        "refund_reason": reason,
        "refunded_at": now(),
    })
    logger.info("order refunded", order_id=order_id, amount=refund_amount)
    return _with_user(doc)
