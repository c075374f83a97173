from unittest.mock import MagicMock

import pytest
from tests.factories import add_booking

from app.core.exceptions import ServiceException
from app.services.notification_service import NotificationService
from app.services.sms_service import SMSStatus
from app.services.template_registry import TemplateRegistry
from app.services.template_service import TemplateService


@pytest.fixture
def email_service() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sms_service() -> MagicMock:
    sms = MagicMock()
    sms.send_sms_with_status.return_value = ({"sid": "SM1"}, SMSStatus.SUCCESS)
    return sms


@pytest.fixture
def notifications(email_service, sms_service) -> NotificationService:
    return NotificationService(email_service=email_service, sms_service=sms_service)


def _recipients(email_service):
    return [call.kwargs["to_email"] for call in email_service.send_email.call_args_list]


def test_created_notifies_customer_and_cleaner(
    db, notifications, email_service, sms_service, customer, provider, service_day
):
    booking = add_booking(db, customer, provider, service_day)

    results = notifications.notify_booking_created(booking, provider, customer)

    assert results == {"customer_email": True, "provider_email": True, "provider_sms": True}
    assert _recipients(email_service) == [customer.email, provider.business_email]
    customer_call = email_service.send_email.call_args_list[0].kwargs
    assert booking.booking_reference in customer_call["subject"]
    assert "Sparkle Cleaning" in customer_call["html_content"]
    to_number, message = sms_service.send_sms_with_status.call_args.args
    assert to_number == provider.business_phone
    assert booking.booking_reference in message


def test_email_failure_is_swallowed_and_other_channels_continue(
    db, notifications, email_service, sms_service, customer, provider, service_day
):
    email_service.send_email.side_effect = ServiceException("Email sending failed")
    booking = add_booking(db, customer, provider, service_day)

    results = notifications.notify_booking_created(booking, provider, customer)

    assert results["customer_email"] is False
    assert results["provider_email"] is False
    assert results["provider_sms"] is True


def test_sms_error_status_is_reported(db, notifications, sms_service, customer, provider, service_day):
    sms_service.send_sms_with_status.return_value = (None, SMSStatus.ERROR)
    booking = add_booking(db, customer, provider, service_day)
    assert notifications.notify_booking_created(booking, provider, customer)["provider_sms"] is False


def test_confirmation_email_carries_code(db, notifications, email_service, customer, provider, service_day):
    booking = add_booking(db, customer, provider, service_day, status="confirmed", confirmation_code="K7Q2ZP")

    notifications.notify_booking_confirmed(booking, provider, customer)

    html = email_service.send_email.call_args.kwargs["html_content"]
    assert "K7Q2ZP" in html


@pytest.mark.parametrize(
    "cancelled_by, expected",
    [
        ("customer", ["sparkle.owner@example.com"]),
        ("provider", ["casey.customer@example.com"]),
        (None, ["casey.customer@example.com", "sparkle.owner@example.com"]),
    ],
)
def test_cancellation_goes_to_the_other_party(
    db, notifications, email_service, customer, provider, service_day, cancelled_by, expected
):
    booking = add_booking(
        db, customer, provider, service_day, status="cancelled", cancellation_reason="Schedule change"
    )
    notifications.notify_booking_cancelled(booking, provider, customer, cancelled_by)
    assert _recipients(email_service) == expected


def test_templates_render_with_brand_context(db, customer, provider, service_day):
    booking = add_booking(db, customer, provider, service_day)
    html = TemplateService().render_template(
        TemplateRegistry.BOOKING_NEW_PROVIDER,
        {
            "booking": booking,
            "reference": booking.booking_reference,
            "cleaner_name": provider.business_name,
            "customer_name": customer.full_name,
            "service_date": booking.service_date,
            "service_time": booking.service_time,
            "address": "12 Main St, New York",
            "instant_booking": False,
        },
    )
    assert "BossOfClean" in html
    assert "$120.00" in html
    assert "10:00 AM" in html
    assert "Please confirm or decline" in html
