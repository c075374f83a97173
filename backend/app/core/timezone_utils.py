"""
Timezone utilities for the booking platform.

Service dates and times are entered as wall-clock values in the marketplace
timezone. Audit timestamps are always stored in UTC.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

import pytz

from app.core.config import settings


def get_marketplace_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the pytz zone used to interpret service dates and times."""
    return pytz.timezone(name or settings.marketplace_timezone)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    SQLite hands timestamps back without tzinfo even though they were written
    in UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def localize_service_start(
    service_date: date,
    service_time: time,
    tz_name: Optional[str] = None,
) -> datetime:
    """
    Combine a service date and wall-clock time into an aware datetime.

    Uses ``localize`` rather than ``replace(tzinfo=...)`` so DST offsets are
    resolved for the given date.
    """
    tz = get_marketplace_timezone(tz_name)
    return tz.localize(datetime.combine(service_date, service_time))
