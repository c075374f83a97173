"""
Template registry for strongly-typed access to Jinja templates.

Use with TemplateService to avoid stringly-typed paths.
"""

from enum import Enum


class TemplateRegistry(str, Enum):
    # Booking notifications
    BOOKING_REQUEST_CUSTOMER = "email/booking/request_customer.html"
    BOOKING_NEW_PROVIDER = "email/booking/new_booking_provider.html"
    BOOKING_CONFIRMED_CUSTOMER = "email/booking/confirmed_customer.html"
    BOOKING_CANCELLED = "email/booking/cancelled.html"
