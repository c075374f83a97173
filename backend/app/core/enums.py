# backend/app/core/enums.py
"""
Core enums for the booking platform.

Values are stored as plain strings in the database, so every enum here is a
``str`` subclass and compares equal to its persisted value.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def active(cls) -> tuple["BookingStatus", ...]:
        """Statuses that still hold a provider's slot."""
        return (cls.PENDING, cls.CONFIRMED, cls.IN_PROGRESS)

    @classmethod
    def terminal(cls) -> tuple["BookingStatus", ...]:
        return (cls.COMPLETED, cls.CANCELLED)


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    INVOICE = "invoice"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class ApprovalStatus(str, Enum):
    """Provider vetting state, owned by the provider directory."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class BookingRole(str, Enum):
    """Role a caller plays relative to a specific booking."""

    CUSTOMER = "customer"
    PROVIDER = "provider"


class BookingAction(str, Enum):
    """Mutations accepted by the status transition engine."""

    CONFIRM = "confirm"
    DECLINE = "decline"
    CANCEL = "cancel"
    START = "start"
    COMPLETE = "complete"
