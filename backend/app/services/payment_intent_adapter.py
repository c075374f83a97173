"""
Stripe payment intent adapter.

Creates and reads payment intents for bookings. Processor failures surface as
PaymentSetupFailed; the caller owns any compensation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from ..core.config import settings
from ..core.exceptions import PaymentSetupFailed
from .base import BaseService
from .pricing_calculator import Number, to_decimal

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class PaymentIntentResult:
    intent_id: str
    client_secret: Optional[str]
    status: str

    @property
    def settled(self) -> bool:
        return self.status == SUCCEEDED

    @classmethod
    def from_stripe(cls, intent: Any) -> "PaymentIntentResult":
        return cls(
            intent_id=intent.id,
            client_secret=getattr(intent, "client_secret", None),
            status=intent.status,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "payment_intent_id": self.intent_id,
            "client_secret": self.client_secret,
            "status": self.status,
        }


def to_cents(total: Number) -> int:
    """Convert a dollar total to integer cents, rounding half away from zero once."""
    return int((to_decimal(total) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentIntentAdapter(BaseService):
    """Thin wrapper over the Stripe PaymentIntent API."""

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        super().__init__(None)
        key = api_key if api_key is not None else settings.stripe_secret_key.get_secret_value()
        self.currency = currency or settings.stripe_currency or "usd"
        self.configured = bool(key)
        if key:
            stripe.api_key = key
        else:
            self.logger.warning("Stripe secret key not configured - payment intents will fail")
        # Failed calls are never retried; the booking is rolled back instead.
        stripe.default_http_client = stripe.RequestsClient(timeout=settings.stripe_timeout_seconds)
        stripe.max_network_retries = 0

    @BaseService.measure_operation("stripe.create_intent")
    def create_intent(
        self,
        amount_cents: int,
        customer_payment_profile: Optional[str],
        payment_method_id: Optional[str],
        auto_confirm: bool,
        metadata: Mapping[str, Any],
        description: Optional[str] = None,
    ) -> PaymentIntentResult:
        stripe_kwargs: Dict[str, Any] = {
            "amount": amount_cents,
            "currency": self.currency,
            "confirmation_method": "automatic" if auto_confirm else "manual",
            "confirm": bool(auto_confirm),
            # Stripe metadata values must be strings
            "metadata": {key: str(value) for key, value in metadata.items()},
        }
        if customer_payment_profile:
            stripe_kwargs["customer"] = customer_payment_profile
        if payment_method_id:
            stripe_kwargs["payment_method"] = payment_method_id
        if description:
            stripe_kwargs["description"] = description

        try:
            intent = stripe.PaymentIntent.create(**stripe_kwargs)
        except stripe.StripeError as exc:
            self.logger.error(
                f"Stripe payment intent creation failed: {exc}",
                extra={"booking_id": metadata.get("booking_id"), "amount_cents": amount_cents},
                exc_info=True,
            )
            raise PaymentSetupFailed() from exc

        result = PaymentIntentResult.from_stripe(intent)
        self.log_operation(
            "payment_intent_created",
            payment_intent_id=result.intent_id,
            payment_intent_status=result.status,
            amount_cents=amount_cents,
        )
        return result

    @BaseService.measure_operation("stripe.retrieve_intent")
    def retrieve_intent(self, intent_id: str) -> PaymentIntentResult:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as exc:
            self.logger.error(f"Failed to retrieve payment intent {intent_id}: {exc}")
            raise PaymentSetupFailed("Failed to retrieve payment") from exc
        return PaymentIntentResult.from_stripe(intent)
