"""
Subscription tier quotas for booking creation.

Each tier allows a fixed number of bookings per rolling period. The count is
taken over every booking the customer created in the window, cancelled ones
included.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import TIER_DISPLAY_NAMES, TIER_MONTHLY_LIMITS, UNLIMITED_TIER_THRESHOLD
from ..core.enums import SubscriptionTier
from ..core.exceptions import QuotaCheckFailed, QuotaExceeded, RepositoryException
from ..core.timezone_utils import utc_now
from ..repositories.factory import RepositoryFactory
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.provider_repository import ProviderRepository


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    tier: str
    limit: int
    used: int
    remaining: int
    period_start: datetime
    period_end: datetime

    @property
    def is_unlimited(self) -> bool:
        return self.limit >= UNLIMITED_TIER_THRESHOLD


class QuotaChecker(BaseService):
    """Decides whether a customer may create another booking under their tier."""

    def __init__(
        self,
        db: Optional[Session],
        booking_repository: Optional["BookingRepository"] = None,
        provider_repository: Optional["ProviderRepository"] = None,
        period_days: Optional[int] = None,
    ):
        super().__init__(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.period_days = period_days or settings.quota_period_days

    def effective_tier(self, identity_id: str) -> str:
        """
        Tier that governs an identity's booking allowance.

        A customer who also owns a provider profile books under that profile's
        subscription tier; everyone else is on the free tier.
        """
        try:
            provider = self.provider_repository.get_by_owner(identity_id)
        except RepositoryException as exc:
            self.logger.error(f"Failed to resolve tier for {identity_id}: {exc}", exc_info=True)
            raise QuotaCheckFailed() from exc
        if provider is not None and provider.subscription_tier:
            return str(provider.subscription_tier)
        return SubscriptionTier.FREE.value

    @BaseService.measure_operation("quota.check")
    def check(self, customer_id: str, tier: str, now: Optional[datetime] = None) -> QuotaDecision:
        limit = TIER_MONTHLY_LIMITS.get(tier)
        if limit is None:
            self.logger.error(f"Unknown subscription tier '{tier}' for customer {customer_id}")
            raise QuotaCheckFailed(f"Unknown subscription tier: {tier}")

        period_end = now or utc_now()
        period_start = period_end - timedelta(days=self.period_days)
        try:
            used = self.booking_repository.count_customer_bookings_since(customer_id, period_start)
        except RepositoryException as exc:
            self.logger.error(
                f"Failed to count bookings for customer {customer_id}: {exc}", exc_info=True
            )
            raise QuotaCheckFailed() from exc

        return QuotaDecision(
            allowed=used < limit,
            tier=tier,
            limit=limit,
            used=used,
            remaining=max(0, limit - used),
            period_start=period_start,
            period_end=period_end,
        )

    def ensure_allowed(
        self, customer_id: str, tier: str, now: Optional[datetime] = None
    ) -> QuotaDecision:
        """Raise QuotaExceeded when the customer has used up their allowance."""
        decision = self.check(customer_id, tier, now)
        if not decision.allowed:
            self.log_operation(
                "quota_exceeded", customer_id=customer_id, tier=tier, used=decision.used
            )
            raise QuotaExceeded(tier, decision.limit, TIER_MONTHLY_LIMITS)
        return decision

    @BaseService.measure_operation("quota.usage")
    def usage(self, identity_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Tier usage summary shown to the customer."""
        tier = self.effective_tier(identity_id)
        decision = self.check(identity_id, tier, now)
        return {
            "tier": tier,
            "tier_name": TIER_DISPLAY_NAMES.get(tier, tier.title()),
            "limit": decision.limit,
            "used": decision.used,
            "remaining": decision.remaining,
            "is_unlimited": decision.is_unlimited,
            "is_at_limit": not decision.allowed,
            "period_start": decision.period_start,
            "period_end": decision.period_end,
        }
