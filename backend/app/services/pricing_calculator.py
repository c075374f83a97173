"""Booking price calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from app.core.config import settings
from app.core.constants import MONEY_QUANTUM
from app.core.exceptions import InvalidRequest

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")


def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert a numeric input to Decimal without going through binary floats."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    """Line items of a booking price, all rounded to cents."""

    base_amount: Decimal
    add_on_total: Decimal
    travel_fee_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal

    def as_dict(self) -> dict[str, float]:
        return {
            "base_amount": float(self.base_amount),
            "add_on_total": float(self.add_on_total),
            "travel_fee": float(self.travel_fee_amount),
            "discount_amount": float(self.discount_amount),
            "total_amount": float(self.total_amount),
        }


def _add_on_price(add_on: Any) -> Decimal:
    if isinstance(add_on, Mapping):
        return to_decimal(add_on.get("price"))
    return to_decimal(getattr(add_on, "price", None))


def calculate_booking_price(
    base_price: Number,
    duration_hours: Number,
    add_ons: Optional[Iterable[Any]] = None,
    travel_fee: Number = ZERO,
    discount_amount: Number = ZERO,
) -> PriceBreakdown:
    """
    Price a booking.

    total = base_price * duration_hours + sum(add-on prices) + travel_fee - discount,
    clamped at zero. Deterministic and side-effect free.
    """
    base_amount = quantize_money(to_decimal(base_price) * to_decimal(duration_hours))
    add_on_total = quantize_money(sum((_add_on_price(a) for a in add_ons or ()), ZERO))
    travel = quantize_money(to_decimal(travel_fee))
    discount = quantize_money(to_decimal(discount_amount))

    total = base_amount + add_on_total + travel - discount
    if total < ZERO:
        total = ZERO

    return PriceBreakdown(
        base_amount=base_amount,
        add_on_total=add_on_total,
        travel_fee_amount=travel,
        discount_amount=discount,
        total_amount=quantize_money(total),
    )


class DiscountResolver:
    """
    Turns a customer-supplied discount code into an amount.

    Discount codes are not offered yet. While ``discount_codes_enabled`` is
    off, a request that carries a code is rejected rather than silently priced
    at full rate.
    """

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.discount_codes_enabled if enabled is None else enabled

    def resolve(self, code: Optional[str]) -> Decimal:
        if not code:
            return ZERO
        if not self.enabled:
            raise InvalidRequest(
                "Discount codes are not supported yet",
                field="discount_code",
                code="DISCOUNT_CODE_NOT_SUPPORTED",
            )
        # No code catalogue exists; every code is worth nothing until one does.
        logger.info("Discount code %s resolved to zero (no catalogue configured)", code)
        return ZERO
