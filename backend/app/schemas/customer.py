"""Customer-facing account schemas."""

from datetime import datetime

from .base import StandardizedModel


class TierUsageResponse(StandardizedModel):
    tier: str
    tier_name: str
    limit: int
    used: int
    remaining: int
    is_unlimited: bool
    is_at_limit: bool
    period_start: datetime
    period_end: datetime
