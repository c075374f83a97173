# backend/app/tasks/booking_tasks.py
"""
Booking lifecycle maintenance tasks.
"""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException, ServiceException
from app.services.booking_transition_service import BookingTransitionService
from app.tasks.celery_app import celery_app
from app.core.timezone_utils import utc_now

logger = logging.getLogger(__name__)


@celery_app.task(  # type: ignore[misc]
    bind=True,
    max_retries=3,
    name="app.tasks.booking_tasks.expire_stale_pending_bookings",
)
def expire_stale_pending_bookings(self: Any) -> Dict[str, Any]:
    """
    Cancel pending bookings the cleaner never answered.

    Runs on the beat schedule. Each booking is expired in its own
    transaction, so a retry only picks up what is still pending.
    """
    from app.database import SessionLocal

    db: Session = SessionLocal()
    try:
        service = BookingTransitionService(db)
        expired = service.expire_stale_pending()
        logger.info(f"Stale pending sweep expired {expired} booking(s)")
        return {"expired": expired, "processed_at": utc_now().isoformat()}
    except (RepositoryException, ServiceException) as exc:
        logger.error(f"Stale pending sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=300)
    finally:
        db.close()
