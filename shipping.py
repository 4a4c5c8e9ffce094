"""Shipping zones and the rates attached to them."""

from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING, ReturnDocument

from database import collection, create_document, now, to_object_id
from errors import NotFound, ValidationFailed, guarded
from schemas import ShippingMethod, ShippingRate as RateSchema, ShippingZone as ZoneSchema
from security import require_admin
from serialize import serialize_shipping_rate, serialize_shipping_zone

logger = structlog.get_logger(__name__)

UNKNOWN_ZONE = "Unknown Zone"
ZONE_FIELDS = ("name", "countries", "states", "is_default")
RATE_FIELDS = (
    "zone_id", "name", "description", "method", "cost", "min_order_amount",
    "max_order_amount", "min_weight", "max_weight", "estimated_days", "is_active",
)


def _zone(zone_id: Optional[str]) -> Optional[Dict[str, Any]]:
    oid = to_object_id(zone_id)
    return collection("shipping_zone").find_one({"_id": oid}) if oid else None


def _with_zone_name(rate: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not rate:
        return None
    zone = _zone(rate.get("zone_id"))
    return {**serialize_shipping_rate(rate), "zone_name": zone["name"] if zone else UNKNOWN_ZONE}


def _settle_default(zone_id) -> None:
    """Leave ``zone_id`` as the only default zone. Called after the write."""
    collection("shipping_zone").update_many(
        {"_id": {"$ne": zone_id}, "is_default": True},
        {"$set": {"is_default": False, "updated_at": now()}},
    )


# ----------------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------------

@guarded("Failed to fetch shipping zones")
def list_zones() -> List[Dict[str, Any]]:
    cursor = collection("shipping_zone").find({}).sort([("is_default", DESCENDING), ("created_at", DESCENDING)])
    return [serialize_shipping_zone(z) for z in cursor]


@guarded("Failed to fetch shipping rates")
def list_rates() -> List[Dict[str, Any]]:
    cursor = collection("shipping_rate").find({}).sort("created_at", DESCENDING)
    return [_with_zone_name(r) for r in cursor]


# ----------------------------------------------------------------------------
# Zones
# ----------------------------------------------------------------------------

@guarded("Failed to create shipping zone")
def create_zone(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    zone = ZoneSchema(**{k: data[k] for k in ZONE_FIELDS if data.get(k) is not None})
    doc = create_document("shipping_zone", zone)
    if zone.is_default:
        _settle_default(doc["_id"])
    logger.info("shipping zone created", zone_id=str(doc["_id"]), default=zone.is_default)
    return serialize_shipping_zone(doc)


@guarded("Failed to update shipping zone")
def update_zone(user: Optional[Dict[str, Any]], zone_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    existing = _zone(zone_id)
    if not existing:
        raise NotFound("Zone not found")
    update = {k: data[k] for k in ZONE_FIELDS if data.get(k) is not None}
    merged = {**existing, **update}
    merged.pop("_id", None)
    ZoneSchema(**merged)
    update["updated_at"] = now()
    doc = collection("shipping_zone").find_one_and_update(
        {"_id": existing["_id"]}, {"$set": update}, return_document=ReturnDocument.AFTER
    )
    if update.get("is_default"):
        _settle_default(doc["_id"])
    return serialize_shipping_zone(doc)


@guarded("Failed to delete shipping zone")
def delete_zone(user: Optional[Dict[str, Any]], zone_id: str) -> bool:
    require_admin(user)
    zone = _zone(zone_id)
    if not zone:
        return False
    if zone.get("is_default"):
        raise ValidationFailed("Cannot delete default zone")
    removed = collection("shipping_rate").delete_many({"zone_id": str(zone["_id"])}).deleted_count
    deleted = collection("shipping_zone").delete_one({"_id": zone["_id"]}).deleted_count > 0
    logger.info("shipping zone deleted", zone_id=zone_id, rates_removed=removed)
    return deleted


# ----------------------------------------------------------------------------
# Rates
# ----------------------------------------------------------------------------

def _check_method(method: Any) -> None:
    if method is not None and method not in {m.value for m in ShippingMethod}:
        raise ValidationFailed("Invalid shipping method")


@guarded("Failed to create shipping rate")
def create_rate(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    zone = _zone(data.get("zone_id"))
    if not zone:
        raise NotFound("Shipping zone not found")
    _check_method(data.get("method"))
    rate = RateSchema(**{k: data[k] for k in RATE_FIELDS if data.get(k) is not None})
    doc = create_document("shipping_rate", rate)
    return {**serialize_shipping_rate(doc), "zone_name": zone["name"]}


@guarded("Failed to update shipping rate")
def update_rate(user: Optional[Dict[str, Any]], rate_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    oid = to_object_id(rate_id)
    existing = collection("shipping_rate").find_one({"_id": oid}) if oid else None
    if not existing:
        raise NotFound("Rate not found")
    update = {k: data[k] for k in RATE_FIELDS if data.get(k) is not None}
    _check_method(update.get("method"))
    if "zone_id" in update and not _zone(update["zone_id"]):
        raise NotFound("Shipping zone not found")
    merged = {**existing, **update}
    merged.pop("_id", None)
    RateSchema(**merged)
    update["updated_at"] = now()
    doc = collection("shipping_rate").find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    return _with_zone_name(doc)


@guarded("Failed to delete shipping rate")
def delete_rate(user: Optional[Dict[str, Any]], rate_id: str) -> bool:
    require_admin(user)
    oid = to_object_id(rate_id)
    if oid is None:
        return False
    return collection("shipping_rate").delete_one({"_id": oid}).deleted_count > 0
