from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from tests.factories import SERVICE_ZIP, make_provider

from app.core.exceptions import (
    DateNotInFuture,
    DurationTooShort,
    ProviderUnavailable,
    ServiceAreaMismatch,
    ServiceTypeMismatch,
)
from app.services.availability_validator import AvailabilityValidator


def _validate(db, cleaner_id, **overrides):
    params = {
        "cleaner_id": cleaner_id,
        "zip_code": SERVICE_ZIP,
        "service_type": "standard",
        "duration_hours": Decimal("3"),
        "service_date": date.today() + timedelta(days=3),
        "service_time": time(9, 0),
    }
    params.update(overrides)
    return AvailabilityValidator(db).validate(**params)


def test_returns_provider_when_everything_matches(db, provider):
    assert _validate(db, provider.id).id == provider.id


def test_unknown_provider(db):
    with pytest.raises(ProviderUnavailable) as exc_info:
        _validate(db, "01HZZZZZZZZZZZZZZZZZZZZZZZ")
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize("approval_status", ["pending", "rejected", "suspended"])
def test_unapproved_provider(db, approval_status):
    unapproved = make_provider(db, email=f"{approval_status}@example.com", approval_status=approval_status)
    with pytest.raises(ProviderUnavailable):
        _validate(db, unapproved.id)


def test_zip_outside_service_area(db, provider):
    with pytest.raises(ServiceAreaMismatch) as exc_info:
        _validate(db, provider.id, zip_code="94105")
    assert exc_info.value.details == {"zip_code": "94105"}


def test_service_not_offered(db, provider):
    with pytest.raises(ServiceTypeMismatch):
        _validate(db, provider.id, service_type="move_out")


def test_duration_below_minimum_reports_minimum(db, provider):
    with pytest.raises(DurationTooShort) as exc_info:
        _validate(db, provider.id, duration_hours=Decimal("1.5"))
    assert exc_info.value.details["minimum_hours"] == 2
    assert exc_info.value.details["requested_hours"] == 1.5
    assert exc_info.value.status_code == 400


def test_duration_at_minimum_is_allowed(db, provider):
    assert _validate(db, provider.id, duration_hours=Decimal("2")) is not None


def test_past_date_rejected(db, provider):
    with pytest.raises(DateNotInFuture):
        _validate(db, provider.id, service_date=date.today() - timedelta(days=1))


def test_slot_start_equal_to_now_is_rejected(db, provider):
    # 10:00 New York on a winter day is 15:00 UTC
    now = datetime(2030, 1, 15, 15, 0, tzinfo=timezone.utc)
    with pytest.raises(DateNotInFuture):
        _validate(db, provider.id, service_date=date(2030, 1, 15), service_time=time(10, 0), now=now)


def test_wall_clock_is_interpreted_in_marketplace_timezone(db, provider):
    now = datetime(2030, 1, 15, 14, 59, tzinfo=timezone.utc)
    result = _validate(
        db, provider.id, service_date=date(2030, 1, 15), service_time=time(10, 0), now=now
    )
    assert result.id == provider.id


def test_checks_run_in_order(db):
    unapproved = make_provider(db, email="late@example.com", approval_status="pending")
    # Every later check would also fail; the provider check wins.
    with pytest.raises(ProviderUnavailable):
        _validate(
            db,
            unapproved.id,
            zip_code="00000",
            service_type="nope",
            duration_hours=Decimal("0.5"),
            service_date=date.today() - timedelta(days=10),
        )
