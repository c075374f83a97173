# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration.
"""

from datetime import timedelta
from typing import Any, Optional

from app.core.config import settings

EXPIRE_PENDING_TASK = "app.tasks.booking_tasks.expire_stale_pending_bookings"


def get_beat_schedule(interval_minutes: Optional[int] = None) -> dict[str, dict[str, Any]]:
    """
    Build the beat schedule.

    The stale pending sweep is left out entirely when the pending TTL is 0.
    """
    schedule: dict[str, dict[str, Any]] = {}
    if settings.pending_booking_ttl_hours <= 0:
        return schedule

    minutes = interval_minutes or settings.pending_sweep_interval_minutes
    schedule["expire-stale-pending-bookings"] = {
        "task": EXPIRE_PENDING_TASK,
        "schedule": timedelta(minutes=minutes),
        "options": {"expires": minutes * 60},
    }
    return schedule
