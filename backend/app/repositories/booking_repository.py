# backend/app/repositories/booking_repository.py
"""
Booking Repository.

Data access for booking transactions:
- slot occupancy lookups for conflict detection
- per-customer counts for tier quotas
- reference lookups and party-scoped reads
- stale pending discovery for the expiry sweep
"""

from datetime import date, datetime, time
import logging
from typing import Any, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import BookingTransaction
from ..models.provider import Provider
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = [s.value for s in BookingStatus.active()]


class BookingRepository(BaseRepository[BookingTransaction]):
    """Repository for booking transaction data access."""

    def __init__(self, db: Session):
        super().__init__(db, BookingTransaction)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> BookingTransaction:
        """Create a booking, exposing integrity errors for slot conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def find_active_in_slot(
        self, cleaner_id: str, service_date: date, service_time: time
    ) -> Optional[BookingTransaction]:
        """Return the booking holding this slot, if any."""
        query = self._build_query().filter(
            BookingTransaction.cleaner_id == cleaner_id,
            BookingTransaction.service_date == service_date,
            BookingTransaction.service_time == service_time,
            BookingTransaction.status.in_(_ACTIVE_STATUSES),
        )
        results = self._execute_query(query.limit(1))
        return results[0] if results else None

    def get_for_update(self, booking_id: str) -> Optional[BookingTransaction]:
        """Load a booking with a row lock so concurrent transitions serialize."""
        query = self._build_query().filter(BookingTransaction.id == booking_id).with_for_update()
        results = self._execute_query(query)
        return results[0] if results else None

    def count_customer_bookings_since(self, customer_id: str, since: datetime) -> int:
        """
        Count every booking the customer created since ``since``.

        Cancelled bookings still count toward the allowance.
        """
        query = self.db.query(func.count(BookingTransaction.id)).filter(
            BookingTransaction.customer_id == customer_id,
            BookingTransaction.created_at >= since,
        )
        return int(self._execute_scalar(query) or 0)

    def get_for_party(
        self,
        identity_id: str,
        *,
        booking_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> Optional[BookingTransaction]:
        """
        Fetch a booking visible to ``identity_id``.

        Visible means the caller is the customer or owns the provider profile.
        """
        query = self._build_query().outerjoin(
            Provider, Provider.id == BookingTransaction.cleaner_id
        )
        if booking_id is not None:
            query = query.filter(BookingTransaction.id == booking_id)
        else:
            query = query.filter(BookingTransaction.booking_reference == reference)
        query = query.filter(
            or_(
                BookingTransaction.customer_id == identity_id,
                Provider.owner_identity_id == identity_id,
            )
        )
        results = self._execute_query(query.limit(1))
        return results[0] if results else None

    def find_stale_pending(self, created_before: datetime, limit: int = 500) -> List[BookingTransaction]:
        query = (
            self._build_query()
            .filter(
                BookingTransaction.status == BookingStatus.PENDING.value,
                BookingTransaction.created_at < created_before,
            )
            .order_by(BookingTransaction.created_at.asc())
            .limit(limit)
        )
        return self._execute_query(query)
