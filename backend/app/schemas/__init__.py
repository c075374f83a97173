# backend/app/schemas/__init__.py
"""Pydantic schemas for the booking API."""

from .booking import (
    AddOn,
    BookingCreatedResponse,
    BookingCreateRequest,
    BookingEnvelope,
    BookingResponse,
    PaymentInfo,
    TransitionRequest,
)
from .customer import TierUsageResponse

__all__ = [
    "AddOn",
    "BookingCreateRequest",
    "BookingCreatedResponse",
    "BookingEnvelope",
    "BookingResponse",
    "PaymentInfo",
    "TierUsageResponse",
    "TransitionRequest",
]
