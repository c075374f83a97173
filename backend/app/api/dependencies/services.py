# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Factory functions that build service instances on the request's session.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.booking_transition_service import BookingTransitionService
from ...services.notification_service import NotificationService
from ...services.payment_intent_adapter import PaymentIntentAdapter
from ...services.quota_checker import QuotaChecker
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """Notification channels hold no per-request state, so one instance is shared."""
    return NotificationService()


@lru_cache(maxsize=1)
def get_payment_adapter() -> PaymentIntentAdapter:
    return PaymentIntentAdapter()


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    payment_adapter: PaymentIntentAdapter = Depends(get_payment_adapter),
) -> BookingService:
    return BookingService(
        db,
        payment_adapter=payment_adapter,
        notification_service=notification_service,
    )


def get_booking_transition_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingTransitionService:
    return BookingTransitionService(db, notification_service=notification_service)


def get_quota_checker(db: Session = Depends(get_db)) -> QuotaChecker:
    return QuotaChecker(db)
