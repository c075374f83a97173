from decimal import Decimal

import pytest

from app.core.exceptions import InvalidRequest
from app.schemas.booking import AddOn
from app.services.pricing_calculator import (
    DiscountResolver,
    calculate_booking_price,
    quantize_money,
    to_decimal,
)


def test_base_times_hours():
    price = calculate_booking_price(base_price=Decimal("40"), duration_hours=Decimal("3"))
    assert price.base_amount == Decimal("120.00")
    assert price.total_amount == Decimal("120.00")
    assert price.add_on_total == Decimal("0.00")


def test_add_ons_travel_fee_and_discount_are_summed():
    price = calculate_booking_price(
        base_price="35.50",
        duration_hours="2.5",
        add_ons=[AddOn(name="Fridge", price=Decimal("15")), {"name": "Oven", "price": 20}],
        travel_fee=Decimal("7.25"),
        discount_amount=Decimal("10"),
    )
    assert price.base_amount == Decimal("88.75")
    assert price.add_on_total == Decimal("35.00")
    assert price.travel_fee_amount == Decimal("7.25")
    assert price.total_amount == Decimal("121.00")


def test_total_never_goes_negative():
    price = calculate_booking_price(base_price=10, duration_hours=2, discount_amount=50)
    assert price.total_amount == Decimal("0.00")


def test_fractional_cents_round_half_up():
    price = calculate_booking_price(base_price=Decimal("33.335"), duration_hours=1)
    assert price.base_amount == Decimal("33.34")


def test_float_inputs_do_not_leak_binary_error():
    assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")
    assert quantize_money(Decimal("2.005")) == Decimal("2.01")


def test_as_dict_uses_public_keys():
    breakdown = calculate_booking_price(40, 3, travel_fee=5).as_dict()
    assert breakdown == {
        "base_amount": 120.0,
        "add_on_total": 0.0,
        "travel_fee": 5.0,
        "discount_amount": 0.0,
        "total_amount": 125.0,
    }


class TestDiscountResolver:
    def test_no_code_is_zero(self):
        assert DiscountResolver(enabled=False).resolve(None) == Decimal("0")
        assert DiscountResolver(enabled=False).resolve("") == Decimal("0")

    def test_code_rejected_while_disabled(self):
        with pytest.raises(InvalidRequest) as exc_info:
            DiscountResolver(enabled=False).resolve("SPRING10")
        assert exc_info.value.code == "DISCOUNT_CODE_NOT_SUPPORTED"
        assert exc_info.value.details["field"] == "discount_code"

    def test_enabled_without_catalogue_is_zero(self):
        assert DiscountResolver(enabled=True).resolve("SPRING10") == Decimal("0")
