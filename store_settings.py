"""The store settings singleton."""

from typing import Any, Dict, Optional

import structlog
from pymongo import ReturnDocument

from config import DEFAULT_CURRENCY, STORE_EMAIL, STORE_NAME
from database import collection, now
from errors import guarded
from schemas import StoreSettings as SettingsSchema
from security import require_admin
from serialize import SETTINGS_TEXT_FIELDS, serialize_store_settings

logger = structlog.get_logger(__name__)

SINGLETON = {"singleton_key": "store"}
REQUIRED_DEFAULTS = {
    "store_name": STORE_NAME,
    "store_email": STORE_EMAIL,
    "currency": DEFAULT_CURRENCY,
    "timezone": "UTC",
    "language": "en",
    "date_format": "MM/DD/YYYY",
}
EDITABLE_FIELDS = tuple(REQUIRED_DEFAULTS) + SETTINGS_TEXT_FIELDS


def _defaults() -> Dict[str, Any]:
    defaults = SettingsSchema(**REQUIRED_DEFAULTS).model_dump()
    stamp = now()
    defaults["created_at"] = stamp
    defaults["updated_at"] = stamp
    return defaults


def _load_or_create() -> Dict[str, Any]:
    """Return the settings document, upserting it on the unique sentinel key."""
    return collection("store_settings").find_one_and_update(
        SINGLETON,
        {"$setOnInsert": {k: v for k, v in _defaults().items() if k not in SINGLETON}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )


def _fill_required(settings: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in REQUIRED_DEFAULTS.items():
        if not settings.get(key):
            settings[key] = value
    if not settings.get("payment_methods"):
        settings["payment_methods"] = {"razorpay": True}
    return settings


@guarded("Failed to fetch settings")
def get_settings() -> Dict[str, Any]:
    return serialize_store_settings(_fill_required(_load_or_create()))


@guarded("Failed to update settings")
def update_settings(user: Optional[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    require_admin(user)
    _load_or_create()
    update = {k: data[k] for k in EDITABLE_FIELDS if k in data and data[k] is not None}
    # payment methods merge key by key
    for method, enabled in (data.get("payment_methods") or {}).items():
        if enabled is not None:
            update[f"payment_methods.{method}"] = bool(enabled)
    merged = {**REQUIRED_DEFAULTS, **{k: v for k, v in update.items() if "." not in k}}
    SettingsSchema(**merged)
    update["updated_at"] = now()
    doc = collection("store_settings").find_one_and_update(SINGLETON, {"$set": update}, return_document=ReturnDocument.AFTER)
    logger.info("store settings updated", fields=sorted(k for k in update if k != "updated_at"))
    return serialize_store_settings(_fill_required(doc))
