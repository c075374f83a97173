# backend/app/services/booking_service.py
"""
Booking Service.

Turns a customer's booking request into a priced, conflict-free,
payment-backed reservation:

    quota -> availability -> slot -> pricing -> persist -> payment intent
          -> (on payment failure) compensating delete -> notifications

Every step runs sequentially inside the request. The only rollback is the
compensating delete of the pending row when the payment intent cannot be
created.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_RESPONSE_TIME_HOURS, IMMEDIATE_RESPONSE
from ..core.enums import BookingStatus, PaymentMethod, PaymentStatus
from ..core.exceptions import (
    InternalError,
    InvalidRequest,
    NotFound,
    PaymentSetupFailed,
    RepositoryException,
    Unauthenticated,
)
from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_booking_reference, generate_confirmation_code
from ..models.booking import BookingTransaction
from ..models.identity import Identity
from ..models.provider import Provider
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreateRequest
from .availability_validator import AvailabilityValidator
from .base import BaseService
from .notification_service import NotificationService
from .payment_intent_adapter import PaymentIntentAdapter, PaymentIntentResult, to_cents
from .pricing_calculator import DiscountResolver, PriceBreakdown, calculate_booking_price
from .quota_checker import QuotaChecker
from .slot_conflict_detector import SlotConflictDetector

if TYPE_CHECKING:
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.provider_repository import ProviderRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "cleaner_id",
    "service_type",
    "service_date",
    "service_time",
    "duration_hours",
    "address",
    "city",
    "zip_code",
    "base_price",
)

INSTANT_NEXT_STEPS = (
    "Your booking is confirmed! You will receive a confirmation email shortly."
)
REQUEST_NEXT_STEPS = (
    "Your booking request has been sent to the cleaner. "
    "You will receive a confirmation once they accept."
)


def estimated_response(provider: Provider) -> str:
    if provider.instant_booking:
        return IMMEDIATE_RESPONSE
    return f"{provider.response_time_hours or DEFAULT_RESPONSE_TIME_HOURS} hours"


class BookingService(BaseService):
    """
    Service layer for booking creation and lookup.

    Collaborators are injectable so tests can swap in doubles; by default
    they are built on the same session.
    """

    repository: "BookingRepository"
    provider_repository: "ProviderRepository"

    def __init__(
        self,
        db: Session,
        quota_checker: Optional[QuotaChecker] = None,
        availability_validator: Optional[AvailabilityValidator] = None,
        slot_conflict_detector: Optional[SlotConflictDetector] = None,
        payment_adapter: Optional[PaymentIntentAdapter] = None,
        notification_service: Optional[NotificationService] = None,
        discount_resolver: Optional[DiscountResolver] = None,
        repository: Optional["BookingRepository"] = None,
        provider_repository: Optional["ProviderRepository"] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.quota_checker = quota_checker or QuotaChecker(
            db,
            booking_repository=self.repository,
            provider_repository=self.provider_repository,
        )
        self.availability_validator = availability_validator or AvailabilityValidator(
            db, provider_repository=self.provider_repository
        )
        self.slot_conflict_detector = slot_conflict_detector or SlotConflictDetector(
            db, booking_repository=self.repository
        )
        self.payment_adapter = payment_adapter or PaymentIntentAdapter()
        self.notification_service = notification_service or NotificationService()
        self.discount_resolver = discount_resolver or DiscountResolver()

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        identity: Optional[Identity],
        request: BookingCreateRequest,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Create a booking for the authenticated customer.

        Raises:
            Unauthenticated: no caller identity
            InvalidRequest: missing field or unsupported discount code
            QuotaExceeded / QuotaCheckFailed: tier allowance
            ProviderUnavailable, ServiceAreaMismatch, ServiceTypeMismatch,
            DurationTooShort, DateNotInFuture: availability checks
            SlotTaken: slot already held
            PaymentSetupFailed: payment intent could not be created
        """
        if identity is None:
            raise Unauthenticated()

        self._validate_required(request)
        discount_amount = self.discount_resolver.resolve(request.discount_code)
        now = now or utc_now()

        tier = self.quota_checker.effective_tier(identity.id)
        self.quota_checker.ensure_allowed(identity.id, tier, now)

        provider = self.availability_validator.validate(
            cleaner_id=request.cleaner_id,
            zip_code=request.zip_code,
            service_type=request.service_type,
            duration_hours=request.duration_hours,
            service_date=request.service_date,
            service_time=request.service_time,
            now=now,
        )

        self.slot_conflict_detector.ensure_slot_free(
            provider.id, request.service_date, request.service_time
        )

        travel_fee = self.provider_repository.get_travel_fee(provider.id, request.zip_code)
        price = calculate_booking_price(
            base_price=request.base_price,
            duration_hours=request.duration_hours,
            add_ons=request.add_ons,
            travel_fee=travel_fee,
            discount_amount=discount_amount,
        )

        booking = self._persist_pending(identity, request, provider, price, tier)

        payment: Optional[PaymentIntentResult] = None
        if request.payment_method == PaymentMethod.STRIPE.value and price.total_amount > 0:
            payment = self._attach_payment(booking, provider, identity, request)

        self._handle_post_booking_tasks(booking, provider, identity)

        prometheus_metrics.record_booking_outcome(booking.status)
        self.log_operation(
            "booking_created",
            booking_id=booking.id,
            booking_reference=booking.booking_reference,
            customer_id=identity.id,
            cleaner_id=provider.id,
            booking_status=booking.status,
            total_amount=str(price.total_amount),
        )
        return self._build_creation_response(booking, provider, price, payment)

    @BaseService.measure_operation("get_booking")
    def get_booking(
        self,
        identity: Optional[Identity],
        booking_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> BookingTransaction:
        """Fetch a booking the caller is a party to, by id or reference."""
        if identity is None:
            raise Unauthenticated()
        if not booking_id and not reference:
            raise InvalidRequest("Booking ID or reference is required", field="id")

        booking = self.repository.get_for_party(
            identity.id,
            booking_id=booking_id or None,
            reference=None if booking_id else reference,
        )
        if booking is None:
            raise NotFound()
        return booking

    # Creation steps

    @staticmethod
    def _validate_required(request: BookingCreateRequest) -> None:
        for field in REQUIRED_FIELDS:
            if getattr(request, field) is None:
                raise InvalidRequest.missing(field)

    def _persist_pending(
        self,
        identity: Identity,
        request: BookingCreateRequest,
        provider: Provider,
        price: PriceBreakdown,
        tier: str,
    ) -> BookingTransaction:
        """Insert the pending row; the partial unique index guards the slot."""
        try:
            with self.repository.transaction():
                booking = self.repository.create(
                    booking_reference=generate_booking_reference(),
                    customer_id=identity.id,
                    cleaner_id=provider.id,
                    service_type=request.service_type,
                    service_date=request.service_date,
                    service_time=request.service_time,
                    duration_hours=request.duration_hours,
                    address=request.address,
                    city=request.city,
                    zip_code=request.zip_code,
                    property_type=request.property_type,
                    property_size_sqft=request.property_size_sqft,
                    special_instructions=request.special_instructions,
                    customer_notes=request.customer_notes,
                    base_price=request.base_price,
                    add_ons=[
                        {"name": add_on.name, "price": float(add_on.price)}
                        for add_on in request.add_ons
                    ],
                    discount_amount=price.discount_amount,
                    travel_fee=price.travel_fee_amount,
                    total_amount=price.total_amount,
                    customer_tier=tier,
                    status=BookingStatus.PENDING.value,
                    payment_method=request.payment_method,
                    payment_status=PaymentStatus.PENDING.value,
                )
        except IntegrityError as exc:
            conflict = self.slot_conflict_detector.translate_integrity_error(
                exc, provider.id, request.service_date, request.service_time
            )
            if conflict is not None:
                prometheus_metrics.record_booking_outcome("slot_taken")
                raise conflict from exc
            self.logger.error(f"Booking insert violated a constraint: {exc}", exc_info=True)
            raise InternalError("Failed to create booking") from exc
        except (RepositoryException, SQLAlchemyError) as exc:
            self.logger.error(f"Failed to persist booking: {exc}", exc_info=True)
            raise InternalError("Failed to create booking") from exc
        return booking

    def _attach_payment(
        self,
        booking: BookingTransaction,
        provider: Provider,
        identity: Identity,
        request: BookingCreateRequest,
    ) -> PaymentIntentResult:
        """
        Create the payment intent and record it on the booking.

        Any failure deletes the pending booking before PaymentSetupFailed
        propagates, so a failed payment never leaves a row behind.
        """
        metadata = {
            "booking_id": booking.id,
            "booking_reference": booking.booking_reference,
            "cleaner_id": provider.id,
            "customer_id": identity.id,
            "service_type": booking.service_type,
            "service_date": booking.service_date.isoformat(),
        }
        instant = bool(provider.instant_booking)
        try:
            result = self.payment_adapter.create_intent(
                amount_cents=to_cents(booking.total_amount),
                customer_payment_profile=identity.stripe_customer_id,
                payment_method_id=request.stripe_payment_method_id,
                auto_confirm=instant,
                metadata=metadata,
                description=(
                    f"Cleaning service by {provider.business_name} on "
                    f"{booking.service_date.isoformat()}"
                ),
            )
        except Exception as exc:
            self.logger.error(
                f"Payment setup failed for booking {booking.id}; removing pending booking",
                extra={**metadata, "total_amount": str(booking.total_amount)},
                exc_info=True,
            )
            self.abort_pending_booking(booking.id)
            prometheus_metrics.record_booking_outcome("payment_failed")
            if isinstance(exc, PaymentSetupFailed):
                raise
            raise PaymentSetupFailed() from exc

        updates: Dict[str, Any] = {
            "payment_intent_id": result.intent_id,
            "payment_status": (
                PaymentStatus.PAID.value if result.settled else PaymentStatus.PENDING.value
            ),
        }
        if result.settled and instant:
            updates.update(
                status=BookingStatus.CONFIRMED.value,
                confirmed_at=utc_now(),
                confirmation_code=generate_confirmation_code(),
            )
        try:
            with self.repository.transaction():
                self.repository.update(booking.id, **updates)
        except (RepositoryException, SQLAlchemyError) as exc:
            self.logger.error(
                f"Payment intent {result.intent_id} created but booking {booking.id} "
                f"could not be updated; removing pending booking: {exc}",
                extra={**metadata, "orphaned_payment_intent_id": result.intent_id},
                exc_info=True,
            )
            self.abort_pending_booking(booking.id)
            prometheus_metrics.record_booking_outcome("payment_failed")
            raise InternalError("Failed to record payment") from exc
        return result

    def abort_pending_booking(self, booking_id: str) -> bool:
        """
        Compensating delete for a booking whose payment could not be set up.

        Returns True if the row was removed.
        """
        try:
            with self.repository.transaction():
                deleted = self.repository.delete(booking_id)
        except (RepositoryException, SQLAlchemyError) as exc:
            self.logger.critical(
                f"Failed to remove pending booking {booking_id} after payment failure: {exc}",
                exc_info=True,
            )
            return False
        if deleted:
            self.logger.info(f"Aborted pending booking {booking_id}")
        return deleted

    def _handle_post_booking_tasks(
        self, booking: BookingTransaction, provider: Provider, customer: Identity
    ) -> None:
        """Notifications never fail the booking."""
        try:
            self.notification_service.notify_booking_created(booking, provider, customer)
        except Exception as e:
            self.logger.error(f"Failed to send booking notifications for {booking.id}: {str(e)}")

    @staticmethod
    def _build_creation_response(
        booking: BookingTransaction,
        provider: Provider,
        price: PriceBreakdown,
        payment: Optional[PaymentIntentResult],
    ) -> Dict[str, Any]:
        instant = bool(provider.instant_booking)
        return {
            "success": True,
            "id": booking.id,
            "reference": booking.booking_reference,
            "status": booking.status,
            "payment_status": booking.payment_status,
            "cleaner_name": provider.business_name,
            "service_type": booking.service_type,
            "service_date": booking.service_date,
            "service_time": booking.service_time,
            "duration_hours": booking.duration_hours,
            "address": f"{booking.address}, {booking.city}",
            "total_amount": price.total_amount,
            "pricing": price.as_dict(),
            "instant_booking": instant,
            "payment": payment.as_dict() if payment else None,
            "next_steps": INSTANT_NEXT_STEPS if instant else REQUEST_NEXT_STEPS,
            "estimated_response": estimated_response(provider),
        }
