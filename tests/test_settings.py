import pytest

import store_settings
from conftest import error_message, gql
from errors import AdminRequired


def test_first_read_creates_defaults_once(db):
    first = store_settings.get_settings()
    second = store_settings.get_settings()

    assert first["store_name"] == store_settings.REQUIRED_DEFAULTS["store_name"]
    assert first["currency"] == store_settings.REQUIRED_DEFAULTS["currency"]
    assert first["timezone"] == "UTC"
    assert first["payment_methods"] == {"razorpay": True}
    assert first["id"] == second["id"]
    assert db["store_settings"].count_documents({}) == 1


def test_blank_required_fields_fall_back_to_defaults(db):
    db["store_settings"].insert_one({"singleton_key": "store", "store_name": "", "language": None})
    settings = store_settings.get_settings()
    assert settings["store_name"] == store_settings.REQUIRED_DEFAULTS["store_name"]
    assert settings["language"] == "en"
    assert settings["payment_methods"]["razorpay"] is True


def test_update_merges_payment_methods(admin, db):
    store_settings.get_settings()
    db["store_settings"].update_one({"singleton_key": "store"}, {"$set": {"payment_methods.cod": True}})

    updated = store_settings.update_settings(admin, {"store_name": "Corner Shop", "payment_methods": {"razorpay": False}})

    assert updated["store_name"] == "Corner Shop"
    assert updated["payment_methods"]["razorpay"] is False
    stored = db["store_settings"].find_one({"singleton_key": "store"})
    assert stored["payment_methods"] == {"razorpay": False, "cod": True}
    assert db["store_settings"].count_documents({}) == 1


def test_update_requires_admin(shopper):
    with pytest.raises(AdminRequired):
        store_settings.update_settings(shopper, {"store_name": "Mine"})


def test_settings_over_graphql(client, admin_token, shopper_token):
    mutation = """
    mutation($input: SettingsInput!) {
      updateSettings(input: $input) { storeName currency paymentMethods { razorpay } taxId }
    }
    """
    payload = {"input": {
        "storeName": "Corner Shop",
        "storeEmail": "hello@example.com",
        "paymentMethods": {"razorpay": True},
        "currency": "USD",
        "timezone": "UTC",
        "language": "en",
        "dateFormat": "DD/MM/YYYY",
        "taxId": "TAX-1",
    }}
    denied = gql(client, mutation, payload, shopper_token)
    assert error_message(denied) == "Admin access required"

    result = gql(client, mutation, payload, admin_token)
    assert result["data"]["updateSettings"] == {
        "storeName": "Corner Shop",
        "currency": "USD",
        "paymentMethods": {"razorpay": True},
        "taxId": "TAX-1",
    }

    read = gql(client, "query { settings { storeName storeEmail dateFormat } }")
    assert read["data"]["settings"] == {"storeName": "Corner Shop", "storeEmail": "hello@example.com", "dateFormat": "DD/MM/YYYY"}
