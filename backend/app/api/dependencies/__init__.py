# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_identity
from .database import get_db
from .services import (
    get_booking_service,
    get_booking_transition_service,
    get_notification_service,
    get_payment_adapter,
    get_quota_checker,
)

__all__ = [
    "get_current_identity",
    "get_db",
    "get_booking_service",
    "get_booking_transition_service",
    "get_notification_service",
    "get_payment_adapter",
    "get_quota_checker",
]
