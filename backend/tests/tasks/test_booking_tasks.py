from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from celery.exceptions import Retry
from tests.factories import add_booking

from app.core.config import settings
from app.core.exceptions import RepositoryException
from app.models import BookingTransaction
from app.tasks.beat_schedule import EXPIRE_PENDING_TASK, get_beat_schedule
from app.tasks.booking_tasks import expire_stale_pending_bookings


def test_sweep_task_expires_stale_pending(db, session_factory, customer, provider, service_day):
    stale = add_booking(
        db, customer, provider, service_day, created_at=datetime.now(timezone.utc) - timedelta(days=3)
    )

    with patch("app.database.SessionLocal", session_factory):
        result = expire_stale_pending_bookings.run()

    assert result["expired"] == 1
    assert "processed_at" in result
    db.expire_all()
    assert db.get(BookingTransaction, stale.id).status == "cancelled"


def test_sweep_task_retries_on_repository_error(session_factory):
    with patch("app.database.SessionLocal", session_factory), patch(
        "app.tasks.booking_tasks.BookingTransitionService.expire_stale_pending",
        side_effect=RepositoryException("database unavailable"),
    ), patch.object(expire_stale_pending_bookings, "retry", side_effect=Retry()) as retry:
        with pytest.raises(Retry):
            expire_stale_pending_bookings.run()

    assert retry.call_args.kwargs["countdown"] == 300


def test_beat_schedule_runs_sweep_on_interval():
    schedule = get_beat_schedule(interval_minutes=15)
    entry = schedule["expire-stale-pending-bookings"]
    assert entry["task"] == EXPIRE_PENDING_TASK
    assert entry["schedule"] == timedelta(minutes=15)
    assert entry["options"]["expires"] == 900


def test_beat_schedule_is_empty_when_ttl_disabled():
    with patch.object(settings, "pending_booking_ttl_hours", 0):
        assert get_beat_schedule() == {}
