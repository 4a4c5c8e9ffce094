from datetime import timedelta

import pytest

import coupons
from conftest import error_message, gql
from database import now
from errors import AdminRequired, Conflict, ValidationFailed

CREATE_COUPON = """
mutation($input: CouponInput!) {
  createCoupon(input: $input) { id code discountType discountValue usedCount }
}
"""


def coupon_input(**overrides):
    data = {"code": "save10", "name": "Save 10", "discountType": "PERCENTAGE", "discountValue": 10, "isActive": True}
    data.update(overrides)
    return data


def test_code_is_stored_upper_case_and_found_by_code(client, admin_token):
    created = gql(client, CREATE_COUPON, {"input": coupon_input()}, admin_token)["data"]["createCoupon"]
    assert created["code"] == "SAVE10"
    assert created["usedCount"] == 0

    found = gql(client, 'query { couponByCode(code: "SAVE10") { id code discountType discountValue } }')
    assert found["data"]["couponByCode"] == {
        "id": created["id"],
        "code": "SAVE10",
        "discountType": "PERCENTAGE",
        "discountValue": 10.0,
    }
    lower = gql(client, 'query { couponByCode(code: "save10") { id } }')
    assert lower["data"]["couponByCode"]["id"] == created["id"]


def test_duplicate_code_conflicts(client, admin_token):
    gql(client, CREATE_COUPON, {"input": coupon_input()}, admin_token)
    result = gql(client, CREATE_COUPON, {"input": coupon_input(code="SAVE10 ")}, admin_token)
    assert error_message(result) == "Coupon code already exists"


def test_shopper_cannot_create_coupon(client, shopper_token, db):
    result = gql(client, CREATE_COUPON, {"input": coupon_input()}, shopper_token)
    assert error_message(result) == "Admin access required"
    assert db["coupon"].count_documents({}) == 0


def test_inactive_coupon_is_not_found_by_code(admin):
    coupons.create_coupon(admin, {"code": "OLD", "name": "Old", "discount_type": "FIXED_AMOUNT", "discount_value": 5, "is_active": False})
    assert coupons.coupon_by_code("old") is None


def test_percentage_over_hundred_is_rejected(admin):
    with pytest.raises(ValidationFailed):
        coupons.create_coupon(admin, {"code": "BIG", "name": "Big", "discount_type": "PERCENTAGE", "discount_value": 150})


def test_update_keeps_usage_counter(admin, db):
    coupon = coupons.create_coupon(admin, {"code": "KEEP", "name": "Keep", "discount_type": "FIXED_AMOUNT", "discount_value": 5})
    db["coupon"].update_one({"code": "KEEP"}, {"$set": {"used_count": 7}})
    updated = coupons.update_coupon(admin, coupon["id"], {"name": "Renamed", "used_count": 0})
    assert updated["name"] == "Renamed"
    assert updated["used_count"] == 7

def test_shopper_cannot_delete_coupon(admin, shopper):
    coupon = coupons.create_coupon(admin, {"code": "STAY", "name": "Stay", "discount_type": "FIXED_AMOUNT", "discount_value": 5})
    with pytest.raises(AdminRequired):
        coupons.delete_coupon(shopper, coupon["id"])
    assert coupons.get_coupon(coupon["id"])["code"] == "STAY"


def test_update_to_taken_code_conflicts(admin):
    coupons.create_coupon(admin, {"code": "ONE", "name": "One", "discount_type": "FIXED_AMOUNT", "discount_value": 1})
    two = coupons.create_coupon(admin, {"code": "TWO", "name": "Two", "discount_type": "FIXED_AMOUNT", "discount_value": 2})
    with pytest.raises(Conflict):
        coupons.update_coupon(admin, two["id"], {"code": "one"})


def test_validate_percentage_with_cap(admin):
    coupons.create_coupon(admin, {
        "code": "TENOFF", "name": "Ten", "discount_type": "PERCENTAGE",
        "discount_value": 10, "max_discount_amount": 15,
    })
    assert coupons.validate_coupon("tenoff", 100)["discount"] == 10.0
    capped = coupons.validate_coupon("tenoff", 500)
    assert capped["valid"] is True
    assert capped["discount"] == 15.0


def test_validate_rejections(admin):
    current = now()
    coupons.create_coupon(admin, {"code": "LATER", "name": "Later", "discount_type": "FIXED_AMOUNT", "discount_value": 5, "start_date": current + timedelta(days=2)})
    coupons.create_coupon(admin, {"code": "GONE", "name": "Gone", "discount_type": "FIXED_AMOUNT", "discount_value": 5, "end_date": current - timedelta(days=1)})
    coupons.create_coupon(admin, {"code": "MIN", "name": "Min", "discount_type": "FIXED_AMOUNT", "discount_value": 5, "min_order_amount": 50})
    coupons.create_coupon(admin, {"code": "USED", "name": "Used", "discount_type": "FIXED_AMOUNT", "discount_value": 5, "usage_limit": 0})

    assert coupons.validate_coupon("NOPE", 10)["message"] == "Invalid coupon code"
    assert coupons.validate_coupon("LATER", 10)["message"] == "Coupon is not active yet"
    assert coupons.validate_coupon("GONE", 10)["message"] == "Coupon has expired"
    assert coupons.validate_coupon("USED", 10)["message"] == "Coupon usage limit reached"
    below = coupons.validate_coupon("MIN", 10)
    assert below["valid"] is False
    assert below["message"] == "Minimum order amount is 50.00"


def test_fixed_discount_never_exceeds_subtotal_and_free_shipping(admin):
    coupons.create_coupon(admin, {"code": "FIFTY", "name": "Fifty", "discount_type": "FIXED_AMOUNT", "discount_value": 50})
    coupons.create_coupon(admin, {"code": "SHIPFREE", "name": "Ship", "discount_type": "FREE_SHIPPING", "discount_value": 0})
    assert coupons.validate_coupon("FIFTY", 20)["discount"] == 20.0
    free = coupons.validate_coupon("SHIPFREE", 20)
    assert free["free_shipping"] is True
    assert free["discount"] == 0.0


def test_validate_coupon_query(client, admin):
    coupons.create_coupon(admin, {"code": "SAVE5", "name": "Five", "discount_type": "FIXED_AMOUNT", "discount_value": 5})
    result = gql(client, 'query { validateCoupon(code: "save5", subtotal: 40) { valid message discount coupon { code } } }')
    assert result["data"]["validateCoupon"] == {"valid": True, "message": "Coupon applied", "discount": 5.0, "coupon": {"code": "SAVE5"}}
