"""
REST admin endpoints for the customer and order pages.

Every route loads the session user and performs its own admin check before
touching any data. ``StoreError`` responses are rendered as
``{"error": message}`` by the handlers registered in ``main``.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

import orders
import users
from errors import AdminRequired, AuthenticationRequired
from security import get_optional_user, is_admin

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def ensure_admin(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not user:
        raise AuthenticationRequired("Unauthorized")
    if not is_admin(user):
        raise AdminRequired("Forbidden")
    return user


# ----------------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------------

class CustomerUpdateRequest(BaseModel):
    status: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None


class TagRequest(BaseModel):
    tag: Optional[str] = None


class TrackingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tracking_number: Optional[str] = Field(None, alias="trackingNumber")


class RefundRequest(BaseModel):
    amount: Optional[float] = None
    reason: Optional[str] = None


# ----------------------------------------------------------------------------
# Customers
# ----------------------------------------------------------------------------

@router.get("/customers")
def list_customers(
    role: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    page: int = 1,
    limit: int = 50,
    user=Depends(get_optional_user),
) -> List[Dict[str, Any]]:
    ensure_admin(user)
    return users.list_customers(role=role, status=status, page=page, limit=limit)


@router.get("/customers/{customer_id}")
def get_customer(customer_id: str, user=Depends(get_optional_user)):
    ensure_admin(user)
    return users.get_customer(customer_id)


@router.patch("/customers/{customer_id}")
def update_customer(customer_id: str, body: CustomerUpdateRequest, user=Depends(get_optional_user)):
    ensure_admin(user)
    customer = users.update_customer(customer_id, body.model_dump())
    logger.info("customer updated", customer_id=customer_id, by=str(user["_id"]))
    return customer


@router.post("/customers/{customer_id}/tags")
def add_customer_tag(customer_id: str, body: TagRequest, user=Depends(get_optional_user)):
    ensure_admin(user)
    tags = users.add_customer_tag(customer_id, (body.tag or "").strip())
    return {"message": "Tag added successfully", "tags": tags}


@router.delete("/customers/{customer_id}/tags")
def remove_customer_tag(customer_id: str, tag: Optional[str] = Query(None), user=Depends(get_optional_user)):
    ensure_admin(user)
    tags = users.remove_customer_tag(customer_id, tag or "")
    return {"message": "Tag removed successfully", "tags": tags}


# ----------------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------------

@router.post("/orders/{order_id}/tracking")
def add_tracking(order_id: str, body: TrackingRequest, user=Depends(get_optional_user)):
    ensure_admin(user)
    order = orders.update_order_tracking(user, order_id, body.tracking_number or "")
    logger.info("order shipped", order_id=order_id, tracking_number=order["tracking_number"])
    return {
        "id": order["id"],
        "tracking_number": order["tracking_number"],
        "status": order["status"],
        "message": "Tracking number added",
    }


@router.post("/orders/{order_id}/refund")
def refund(order_id: str, body: RefundRequest, user=Depends(get_optional_user)):
    ensure_admin(user)
    order = orders.refund_order(user, order_id, body.amount, body.reason)
    return {
        "id": order["id"],
        "status": order["status"],
        "refund_amount": order["refund_amount"],
        "message": "Order refunded",
    }
