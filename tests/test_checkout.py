import pytest

from checkout import missing_shipping_fields, quote
from errors import ValidationFailed


def test_standard_quote():
    result = quote(1000.0)
    assert result["shipping_cost"] == 50.0
    assert result["tax_amount"] == 180.0
    assert result["total_amount"] == 1230.0
    assert result["free_shipping"] is False


def test_free_shipping_only_above_threshold():
    assert quote(2000.0)["shipping_cost"] == 50.0
    above = quote(2000.5, "overnight")
    assert above["shipping_cost"] == 0.0
    assert above["free_shipping"] is True


def test_tax_rounds_half_up_to_whole_units():
    # 0.18 * 25 = 4.5
    assert quote(25.0)["tax_amount"] == 5.0
    assert quote(24.0)["tax_amount"] == 4.0


def test_unknown_method_and_negative_subtotal():
    with pytest.raises(ValidationFailed):
        quote(10.0, "drone")
    with pytest.raises(ValidationFailed):
        quote(-1.0)


def test_missing_shipping_fields():
    assert missing_shipping_fields(None)[0] == "first_name"
    complete = {f: "x" for f in ("first_name", "last_name", "email", "phone", "address", "city", "state", "zip_code")}
    assert missing_shipping_fields(complete) == []
    assert missing_shipping_fields({**complete, "phone": " "}) == ["phone"]
