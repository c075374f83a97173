"""
Slot conflict detection.

A cleaner's slot (date + start time) can be held by at most one non-terminal
booking. The pre-insert lookup gives callers a clean error in the common case;
the partial unique index on booking_transactions closes the race between two
concurrent creators, and its violation is translated here as well.
"""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import SlotTaken
from ..models.booking import ACTIVE_SLOT_INDEX
from ..repositories.factory import RepositoryFactory
from .base import BaseService

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository

# SQLite reports the violated columns instead of the index name
_SLOT_COLUMNS = (
    "booking_transactions.cleaner_id",
    "booking_transactions.service_date",
    "booking_transactions.service_time",
)


def is_slot_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
    if constraint_name:
        return constraint_name == ACTIVE_SLOT_INDEX

    text = str(orig if orig is not None else exc)
    if ACTIVE_SLOT_INDEX in text:
        return True
    return "UNIQUE" in text.upper() and all(col in text for col in _SLOT_COLUMNS)


class SlotConflictDetector(BaseService):
    def __init__(
        self,
        db: Optional[Session],
        booking_repository: Optional["BookingRepository"] = None,
    ):
        super().__init__(db)
        self.booking_repository = booking_repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("slot.ensure_free")
    def ensure_slot_free(self, cleaner_id: str, service_date: date, service_time: time) -> None:
        existing = self.booking_repository.find_active_in_slot(
            cleaner_id, service_date, service_time
        )
        if existing is not None:
            self.logger.info(
                f"Slot {service_date} {service_time} for cleaner {cleaner_id} "
                f"already held by booking {existing.id}"
            )
            raise SlotTaken(cleaner_id, service_date, service_time)

    def translate_integrity_error(
        self,
        exc: IntegrityError,
        cleaner_id: str,
        service_date: date,
        service_time: time,
    ) -> Optional[SlotTaken]:
        """SlotTaken when the violation is the active-slot index, otherwise None."""
        if not is_slot_violation(exc):
            return None
        self.logger.info(
            f"Concurrent booking lost the race for cleaner {cleaner_id} at "
            f"{service_date} {service_time}"
        )
        return SlotTaken(cleaner_id, service_date, service_time)
