from datetime import time
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError
from tests.factories import add_booking

from app.core.exceptions import SlotTaken
from app.models import ACTIVE_SLOT_INDEX, BookingTransaction
from app.services.slot_conflict_detector import SlotConflictDetector, is_slot_violation


def test_free_slot_passes(db, provider, service_day):
    SlotConflictDetector(db).ensure_slot_free(provider.id, service_day, time(10, 0))


@pytest.mark.parametrize("status", ["pending", "confirmed", "in_progress"])
def test_active_booking_holds_slot(db, customer, provider, service_day, status):
    add_booking(db, customer, provider, service_day, status=status)
    with pytest.raises(SlotTaken) as exc_info:
        SlotConflictDetector(db).ensure_slot_free(provider.id, service_day, time(10, 0))
    assert exc_info.value.status_code == 409


@pytest.mark.parametrize("status", ["completed", "cancelled"])
def test_terminal_booking_releases_slot(db, customer, provider, service_day, status):
    add_booking(db, customer, provider, service_day, status=status)
    SlotConflictDetector(db).ensure_slot_free(provider.id, service_day, time(10, 0))


def test_other_start_time_is_a_different_slot(db, customer, provider, service_day):
    add_booking(db, customer, provider, service_day)
    SlotConflictDetector(db).ensure_slot_free(provider.id, service_day, time(14, 0))


def test_unique_index_rejects_second_active_booking(db, customer, other_customer, provider, service_day):
    add_booking(db, customer, provider, service_day)

    db.add(
        BookingTransaction(
            customer_id=other_customer.id,
            cleaner_id=provider.id,
            service_type="standard",
            service_date=service_day,
            service_time=time(10, 0),
            duration_hours=3,
            address="1 Elm St",
            city="New York",
            zip_code="10001",
            base_price=40,
            total_amount=120,
        )
    )
    with pytest.raises(IntegrityError) as exc_info:
        db.flush()
    db.rollback()

    detector = SlotConflictDetector(db)
    assert is_slot_violation(exc_info.value)
    conflict = detector.translate_integrity_error(
        exc_info.value, provider.id, service_day, time(10, 0)
    )
    assert isinstance(conflict, SlotTaken)


def test_unique_index_ignores_cancelled_rows(db, customer, other_customer, provider, service_day):
    add_booking(db, customer, provider, service_day, status="cancelled")
    add_booking(db, other_customer, provider, service_day)
    assert db.query(BookingTransaction).count() == 2


def test_other_integrity_errors_are_not_slot_conflicts():
    orig = MagicMock()
    orig.diag.constraint_name = "booking_transactions_booking_reference_key"
    exc = IntegrityError("INSERT ...", {}, orig)
    assert not is_slot_violation(exc)
    assert SlotConflictDetector(None, booking_repository=MagicMock()).translate_integrity_error(
        exc, "c", None, None
    ) is None


def test_postgres_constraint_name_is_recognised():
    orig = MagicMock()
    orig.diag.constraint_name = ACTIVE_SLOT_INDEX
    assert is_slot_violation(IntegrityError("INSERT ...", {}, orig))
