from datetime import date, datetime, time

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import (
    DurationTooShort,
    InvalidRequest,
    InvalidTransition,
    QuotaExceeded,
    SlotTaken,
)
from app.core.timezone_utils import ensure_utc, localize_service_start
from app.core.ulid_helper import (
    generate_booking_reference,
    generate_confirmation_code,
    generate_ulid,
    is_valid_ulid,
)


class TestIdentifiers:
    def test_ulid(self):
        value = generate_ulid()
        assert len(value) == 26
        assert is_valid_ulid(value)
        assert not is_valid_ulid("not-a-ulid")

    def test_booking_reference_uses_clock_digits(self):
        reference = generate_booking_reference(clock=lambda: 1712345678.0)
        assert reference.startswith("BC45678000")
        assert len(reference) == 12
        assert reference[-2:].isalnum() and reference[-2:].upper() == reference[-2:]

    def test_booking_reference_pads_short_clock(self):
        assert generate_booking_reference(clock=lambda: 0.5)[:10] == "BC00000500"

    def test_confirmation_code(self):
        code = generate_confirmation_code()
        assert len(code) == 6
        assert code.isalnum() and code.upper() == code


class TestExceptionShapes:
    def test_http_detail(self):
        http_exc = SlotTaken("c1", date(2030, 1, 5), time(10, 0)).to_http_exception()
        assert http_exc.status_code == 409
        assert http_exc.detail == {
            "message": "This time slot is already booked",
            "code": "SLOT_TAKEN",
            "details": {"cleaner_id": "c1", "service_date": "2030-01-05", "service_time": "10:00:00"},
        }

    def test_missing_field(self):
        exc = InvalidRequest.missing("address")
        assert exc.status_code == 400
        assert exc.message == "Missing required field: address"
        assert exc.details == {"field": "address"}

    @pytest.mark.parametrize("reason, expected", [("role", 403), ("state", 409)])
    def test_invalid_transition_status(self, reason, expected):
        exc = InvalidTransition("nope", reason=reason, action="confirm", current_status="pending")
        assert exc.status_code == expected
        assert exc.details["current_status"] == "pending"

    def test_quota_message_is_singular_for_one(self):
        exc = QuotaExceeded("free", 1, {"free": 1})
        assert "allows 1 booking per month" in exc.message
        assert exc.status_code == 403

    def test_duration_message(self):
        assert DurationTooShort(2, 1.5).message == "Minimum booking duration is 2 hours"


class TestTimezones:
    def test_localize_respects_dst(self):
        summer = localize_service_start(date(2030, 7, 1), time(10, 0), "America/New_York")
        winter = localize_service_start(date(2030, 1, 7), time(10, 0), "America/New_York")
        assert summer.utcoffset().total_seconds() == -4 * 3600
        assert winter.utcoffset().total_seconds() == -5 * 3600

    def test_ensure_utc_attaches_zone(self):
        assert ensure_utc(datetime(2030, 1, 1, 12, 0)).tzinfo is not None


def test_settings_reject_unknown_timezone():
    with pytest.raises(ValidationError):
        Settings(marketplace_timezone="Mars/Olympus")
