"""
BookingService.create_booking end to end against SQLite, with Stripe and
notifications replaced by doubles.
"""

from datetime import time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from tests.factories import add_booking, booking_request, make_provider

from app.core.exceptions import (
    DurationTooShort,
    InternalError,
    InvalidRequest,
    NotFound,
    PaymentSetupFailed,
    QuotaExceeded,
    RepositoryException,
    SlotTaken,
    Unauthenticated,
)
from app.models import BookingTransaction
from app.schemas.booking import AddOn
from app.services.booking_service import (
    INSTANT_NEXT_STEPS,
    REQUEST_NEXT_STEPS,
    BookingService,
    estimated_response,
)
from app.services.payment_intent_adapter import PaymentIntentResult


@pytest.fixture
def booking_service(db, payment_adapter, notification_service) -> BookingService:
    return BookingService(
        db, payment_adapter=payment_adapter, notification_service=notification_service
    )


class TestCreateBooking:
    def test_request_booking_is_pending_with_priced_total(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        result = booking_service.create_booking(customer, booking_request(provider.id, service_day))

        assert result["success"] is True
        assert result["status"] == "pending"
        assert result["payment_status"] == "pending"
        assert result["total_amount"] == Decimal("120.00")
        assert result["cleaner_name"] == "Sparkle Cleaning"
        assert result["address"] == "12 Main St, New York"
        assert result["estimated_response"] == "24 hours"
        assert result["next_steps"] == REQUEST_NEXT_STEPS
        assert result["instant_booking"] is False
        assert result["payment"] is None
        assert result["reference"].startswith("BC")
        payment_adapter.create_intent.assert_not_called()

        stored = db.get(BookingTransaction, result["id"])
        assert stored.customer_id == customer.id
        assert stored.customer_tier == "free"
        assert stored.total_amount == Decimal("120.00")
        assert stored.confirmation_code is None

    def test_card_booking_attaches_payment_intent(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        result = booking_service.create_booking(
            customer,
            booking_request(
                provider.id,
                service_day,
                payment_method="stripe",
                stripe_payment_method_id="pm_card_visa",
            ),
        )

        kwargs = payment_adapter.create_intent.call_args.kwargs
        assert kwargs["amount_cents"] == 12000
        assert kwargs["auto_confirm"] is False
        assert kwargs["customer_payment_profile"] == "cus_test_customer"
        assert kwargs["payment_method_id"] == "pm_card_visa"
        assert kwargs["metadata"]["booking_id"] == result["id"]
        assert kwargs["metadata"]["booking_reference"] == result["reference"]

        assert result["payment"] == {
            "payment_intent_id": "pi_test_123",
            "client_secret": "pi_test_123_secret",
            "status": "requires_payment_method",
        }
        assert result["status"] == "pending"
        assert db.get(BookingTransaction, result["id"]).payment_intent_id == "pi_test_123"

    def test_instant_booking_with_settled_payment_is_confirmed(
        self, db, booking_service, customer, instant_provider, service_day, payment_adapter
    ):
        payment_adapter.create_intent.return_value = PaymentIntentResult(
            "pi_paid", "pi_paid_secret", "succeeded"
        )

        result = booking_service.create_booking(
            customer, booking_request(instant_provider.id, service_day, payment_method="stripe")
        )

        assert payment_adapter.create_intent.call_args.kwargs["auto_confirm"] is True
        assert result["status"] == "confirmed"
        assert result["payment_status"] == "paid"
        assert result["estimated_response"] == "Immediate"
        assert result["next_steps"] == INSTANT_NEXT_STEPS
        stored = db.get(BookingTransaction, result["id"])
        assert stored.confirmed_at is not None
        assert len(stored.confirmation_code) == 6

    def test_instant_booking_with_unsettled_payment_stays_pending(
        self, booking_service, customer, instant_provider, service_day
    ):
        result = booking_service.create_booking(
            customer, booking_request(instant_provider.id, service_day, payment_method="stripe")
        )
        assert result["status"] == "pending"
        assert result["payment_status"] == "pending"

    def test_add_ons_and_travel_fee_are_priced(self, db, booking_service, customer, service_day):
        far = make_provider(db, email="far@example.com", travel_fee=Decimal("15.00"))
        result = booking_service.create_booking(
            customer,
            booking_request(
                far.id,
                service_day,
                add_ons=[AddOn(name="Inside fridge", price=Decimal("25"))],
            ),
        )
        assert result["pricing"] == {
            "base_amount": 120.0,
            "add_on_total": 25.0,
            "travel_fee": 15.0,
            "discount_amount": 0.0,
            "total_amount": 160.0,
        }
        stored = db.get(BookingTransaction, result["id"])
        assert stored.add_ons == [{"name": "Inside fridge", "price": 25.0}]

    def test_zero_total_skips_payment(
        self, booking_service, customer, provider, service_day, payment_adapter
    ):
        result = booking_service.create_booking(
            customer,
            booking_request(provider.id, service_day, base_price=Decimal("0"), payment_method="stripe"),
        )
        assert result["total_amount"] == Decimal("0.00")
        payment_adapter.create_intent.assert_not_called()

    def test_unauthenticated(self, booking_service, provider, service_day):
        with pytest.raises(Unauthenticated):
            booking_service.create_booking(None, booking_request(provider.id, service_day))

    @pytest.mark.parametrize("field", ["cleaner_id", "service_date", "zip_code", "base_price"])
    def test_missing_field_is_named(self, booking_service, customer, provider, service_day, field):
        with pytest.raises(InvalidRequest) as exc_info:
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, **{field: None})
            )
        assert exc_info.value.details["field"] == field
        assert exc_info.value.code == "MISSING_FIELD"

    def test_discount_code_rejected(self, db, booking_service, customer, provider, service_day):
        with pytest.raises(InvalidRequest):
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, discount_code="WELCOME")
            )
        assert db.query(BookingTransaction).count() == 0

    def test_quota_blocks_second_booking_on_free_tier(
        self, booking_service, customer, provider, service_day
    ):
        booking_service.create_booking(customer, booking_request(provider.id, service_day))
        with pytest.raises(QuotaExceeded):
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, service_time=time(15, 0))
            )

    def test_duration_too_short_creates_nothing(self, db, booking_service, customer, provider, service_day):
        with pytest.raises(DurationTooShort) as exc_info:
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, duration_hours=Decimal("1"))
            )
        assert exc_info.value.details["minimum_hours"] == 2
        assert db.query(BookingTransaction).count() == 0


class TestSlotConflicts:
    def test_taken_slot_is_rejected(
        self, db, booking_service, customer, other_customer, provider, service_day
    ):
        booking_service.create_booking(customer, booking_request(provider.id, service_day))

        with pytest.raises(SlotTaken):
            booking_service.create_booking(other_customer, booking_request(provider.id, service_day))
        assert db.query(BookingTransaction).count() == 1

    def test_concurrent_insert_loses_on_unique_index(
        self, db, booking_service, customer, other_customer, provider, service_day
    ):
        booking_service.create_booking(customer, booking_request(provider.id, service_day))

        # Simulate the second request passing the pre-check before the first commits
        with patch.object(booking_service.slot_conflict_detector, "ensure_slot_free"):
            with pytest.raises(SlotTaken):
                booking_service.create_booking(
                    other_customer, booking_request(provider.id, service_day)
                )

        assert db.query(BookingTransaction).count() == 1

    def test_cancelled_booking_frees_the_slot(
        self, db, booking_service, customer, other_customer, provider, service_day
    ):
        add_booking(db, customer, provider, service_day, status="cancelled")
        result = booking_service.create_booking(
            other_customer, booking_request(provider.id, service_day)
        )
        assert result["status"] == "pending"


class TestPaymentFailure:
    def test_failed_intent_removes_pending_booking(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        payment_adapter.create_intent.side_effect = PaymentSetupFailed()

        with pytest.raises(PaymentSetupFailed):
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, payment_method="stripe")
            )

        assert db.query(BookingTransaction).count() == 0

    def test_unexpected_adapter_error_is_reported_as_payment_failure(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        payment_adapter.create_intent.side_effect = TimeoutError("stripe timed out")

        with pytest.raises(PaymentSetupFailed):
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, payment_method="stripe")
            )
        assert db.query(BookingTransaction).count() == 0

    def test_slot_and_quota_are_free_after_payment_failure(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        payment_adapter.create_intent.side_effect = PaymentSetupFailed()
        with pytest.raises(PaymentSetupFailed):
            booking_service.create_booking(
                customer, booking_request(provider.id, service_day, payment_method="stripe")
            )

        payment_adapter.create_intent.side_effect = None
        result = booking_service.create_booking(
            customer, booking_request(provider.id, service_day, payment_method="stripe")
        )
        assert result["status"] == "pending"

    def test_failure_recording_intent_removes_pending_booking(
        self, db, booking_service, customer, provider, service_day, payment_adapter
    ):
        with patch.object(
            booking_service.repository,
            "update",
            side_effect=RepositoryException("Failed to update BookingTransaction"),
        ):
            with pytest.raises(InternalError):
                booking_service.create_booking(
                    customer, booking_request(provider.id, service_day, payment_method="stripe")
                )

        payment_adapter.create_intent.assert_called_once()
        assert db.query(BookingTransaction).count() == 0


class TestNotifications:
    def test_notification_failure_does_not_fail_booking(
        self, db, payment_adapter, customer, provider, service_day
    ):
        notifier = MagicMock()
        notifier.notify_booking_created.side_effect = RuntimeError("smtp down")
        service = BookingService(db, payment_adapter=payment_adapter, notification_service=notifier)

        result = service.create_booking(customer, booking_request(provider.id, service_day))

        assert result["status"] == "pending"
        notifier.notify_booking_created.assert_called_once()

    def test_both_parties_are_notified(self, db, payment_adapter, customer, provider, service_day):
        notifier = MagicMock()
        service = BookingService(db, payment_adapter=payment_adapter, notification_service=notifier)
        service.create_booking(customer, booking_request(provider.id, service_day))

        booking, notified_provider, notified_customer = notifier.notify_booking_created.call_args.args
        assert notified_provider.id == provider.id
        assert notified_customer.id == customer.id


class TestGetBooking:
    def test_by_id_and_reference(self, db, booking_service, customer, provider, service_day):
        booking = add_booking(db, customer, provider, service_day)
        assert booking_service.get_booking(customer, booking_id=booking.id).id == booking.id
        assert (
            booking_service.get_booking(customer, reference=booking.booking_reference).id
            == booking.id
        )

    def test_requires_id_or_reference(self, booking_service, customer):
        with pytest.raises(InvalidRequest):
            booking_service.get_booking(customer)

    def test_strangers_get_not_found(
        self, db, booking_service, customer, other_customer, provider, service_day
    ):
        booking = add_booking(db, customer, provider, service_day)
        with pytest.raises(NotFound):
            booking_service.get_booking(other_customer, booking_id=booking.id)

    def test_requires_identity(self, booking_service):
        with pytest.raises(Unauthenticated):
            booking_service.get_booking(None, booking_id="anything")


def test_estimated_response_uses_default_when_unset(db):
    slow = make_provider(db, email="slow@example.com", response_time_hours=None)
    assert estimated_response(slow) == "24 hours"
    quick = make_provider(db, email="quick@example.com", response_time_hours=4)
    assert estimated_response(quick) == "4 hours"
