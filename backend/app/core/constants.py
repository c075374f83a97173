"""Application-wide constants for the booking platform."""

from __future__ import annotations

from decimal import Decimal

BRAND_NAME = "BossOfClean"

# Subscription tiers -> monthly booking allowance
TIER_MONTHLY_LIMITS: dict[str, int] = {
    "free": 1,
    "basic": 5,
    "pro": 15,
    "enterprise": 999999,  # effectively unlimited
}

TIER_DISPLAY_NAMES: dict[str, str] = {
    "free": "Free",
    "basic": "Basic",
    "pro": "Pro",
    "enterprise": "Enterprise",
}

# Allowances at or above this are reported as unlimited
UNLIMITED_TIER_THRESHOLD = 999999

# Booking reference format: BC + 8 clock digits + 2 random chars
BOOKING_REFERENCE_PREFIX = "BC"
BOOKING_REFERENCE_CLOCK_DIGITS = 8
BOOKING_REFERENCE_SUFFIX_LENGTH = 2

CONFIRMATION_CODE_LENGTH = 6

DEFAULT_RESPONSE_TIME_HOURS = 24
IMMEDIATE_RESPONSE = "Immediate"

DECLINED_BY_PROVIDER_REASON = "Declined by cleaner"
EXPIRED_PENDING_REASON = "Expired: provider did not respond"

MONEY_QUANTUM = Decimal("0.01")

# Text constraints
MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 2000
