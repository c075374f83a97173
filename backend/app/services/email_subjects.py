"""
Centralized email subject builders.

Keep subjects in code (not templates) for versioning and logging.
Bodies remain in Jinja templates.
"""

from app.core.constants import BRAND_NAME


class EmailSubject:
    """Utility class with static builders for email subjects."""

    @staticmethod
    def booking_received(reference: str, instant: bool) -> str:
        if instant:
            return f"Your {BRAND_NAME} booking {reference} is confirmed"
        return f"We sent your booking request {reference} to your cleaner"

    @staticmethod
    def new_booking(reference: str) -> str:
        return f"New booking request {reference}"

    @staticmethod
    def booking_confirmed(reference: str) -> str:
        return f"Booking {reference} confirmed"

    @staticmethod
    def booking_cancelled(reference: str) -> str:
        return f"Booking {reference} was cancelled"
