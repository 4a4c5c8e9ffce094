"""Server-side checkout quote: shipping tier, tax and total for a cart subtotal."""

import math
from typing import Any, Dict, List, Optional

from errors import ValidationFailed

FREE_SHIPPING_THRESHOLD = 2000
CHECKOUT_TAX_RATE = 0.18

SHIPPING_OPTIONS = {
    "standard": {"id": "standard", "name": "Standard Shipping", "price": 50.0, "days": "5-7 business days"},
    "express": {"id": "express", "name": "Express Shipping", "price": 150.0, "days": "2-3 business days"},
    "overnight": {"id": "overnight", "name": "Overnight Shipping", "price": 300.0, "days": "1 business day"},
}

REQUIRED_SHIPPING_FIELDS = ("first_name", "last_name", "email", "phone", "address", "city", "state", "zip_code")


def missing_shipping_fields(address: Optional[Dict[str, Any]]) -> List[str]:
    address = address or {}
    return [f for f in REQUIRED_SHIPPING_FIELDS if not str(address.get(f) or "").strip()]


def quote(subtotal: float, method: str = "standard") -> Dict[str, Any]:
    option = SHIPPING_OPTIONS.get(method)
    if option is None:
        raise ValidationFailed(f"Unknown shipping method: {method}")
    if subtotal < 0:
        raise ValidationFailed("Subtotal cannot be negative")

    shipping_cost = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else option["price"]
    # whole currency units, halves rounded up
    tax_amount = float(math.floor(subtotal * CHECKOUT_TAX_RATE + 0.5))
    return {
        "method": method,
        "subtotal": subtotal,
        "shipping_cost": shipping_cost,
        "tax_amount": tax_amount,
        "total_amount": round(subtotal + shipping_cost + tax_amount, 2),
        "free_shipping": shipping_cost == 0.0,
        "estimated_days": option["days"],
    }
