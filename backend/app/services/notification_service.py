# backend/app/services/notification_service.py
"""
Notification Service.

Best-effort booking notifications over email and SMS. A failed delivery is
logged and counted but never propagates: the booking operation that triggered
it has already been committed.
"""

import logging
from typing import Any, Callable, Dict, Optional

from ..core.constants import BRAND_NAME
from ..models.booking import BookingTransaction
from ..models.identity import Identity
from ..models.provider import Provider
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .email import EmailService
from .email_subjects import EmailSubject
from .sms_service import SMSService, SMSStatus
from .template_registry import TemplateRegistry
from .template_service import TemplateService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Sends booking emails and texts to customers and cleaners."""

    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        sms_service: Optional[SMSService] = None,
        template_service: Optional[TemplateService] = None,
    ):
        super().__init__(None)
        self.email_service = email_service or EmailService()
        self.sms_service = sms_service or SMSService()
        self.template_service = template_service or TemplateService()

    def _deliver(self, channel: str, booking_id: str, send: Callable[[], Any]) -> bool:
        try:
            send()
        except Exception as exc:
            self.logger.error(
                f"{channel} notification failed for booking {booking_id}: {exc}",
                exc_info=True,
            )
            prometheus_metrics.record_notification(channel, "error")
            return False
        prometheus_metrics.record_notification(channel, "sent")
        return True

    @staticmethod
    def _booking_context(
        booking: BookingTransaction,
        provider: Provider,
        customer: Optional[Identity],
    ) -> Dict[str, Any]:
        return {
            "booking": booking,
            "reference": booking.booking_reference,
            "cleaner_name": provider.business_name,
            "customer_name": (customer.full_name if customer else None) or "there",
            "service_date": booking.service_date,
            "service_time": booking.service_time,
            "address": f"{booking.address}, {booking.city}",
            "instant_booking": bool(provider.instant_booking),
        }

    @staticmethod
    def _provider_email(provider: Provider) -> Optional[str]:
        owner = getattr(provider, "owner", None)
        return provider.business_email or (owner.email if owner else None)

    @staticmethod
    def _provider_phone(provider: Provider) -> Optional[str]:
        owner = getattr(provider, "owner", None)
        return provider.business_phone or (owner.phone if owner else None)

    def _send_email(self, to_email: Optional[str], subject: str, template: TemplateRegistry, context: Dict[str, Any]) -> None:
        if not to_email:
            self.logger.debug(f"No email address for '{subject}', skipping")
            return
        html = self.template_service.render_template(template, context)
        self.email_service.send_email(to_email=to_email, subject=subject, html_content=html)

    def _send_sms(self, to_number: Optional[str], message: str) -> None:
        _, status = self.sms_service.send_sms_with_status(to_number, message)
        if status is SMSStatus.ERROR:
            raise RuntimeError(f"SMS delivery failed to {to_number}")

    @BaseService.measure_operation("notify_booking_created")
    def notify_booking_created(
        self,
        booking: BookingTransaction,
        provider: Provider,
        customer: Optional[Identity],
    ) -> Dict[str, bool]:
        """Customer receipt, cleaner email and cleaner SMS for a new booking."""
        context = self._booking_context(booking, provider, customer)
        reference = booking.booking_reference
        results = {
            "customer_email": self._deliver(
                "email",
                booking.id,
                lambda: self._send_email(
                    customer.email if customer else None,
                    EmailSubject.booking_received(reference, bool(provider.instant_booking)),
                    TemplateRegistry.BOOKING_REQUEST_CUSTOMER,
                    context,
                ),
            ),
            "provider_email": self._deliver(
                "email",
                booking.id,
                lambda: self._send_email(
                    self._provider_email(provider),
                    EmailSubject.new_booking(reference),
                    TemplateRegistry.BOOKING_NEW_PROVIDER,
                    context,
                ),
            ),
            "provider_sms": self._deliver(
                "sms",
                booking.id,
                lambda: self._send_sms(
                    self._provider_phone(provider),
                    f"{BRAND_NAME}: new booking {reference} on "
                    f"{booking.service_date.isoformat()} at {booking.service_time.strftime('%H:%M')} "
                    f"in {booking.city}.",
                ),
            ),
        }
        self.log_operation("booking_created_notifications", booking_id=booking.id, **results)
        return results

    @BaseService.measure_operation("notify_booking_confirmed")
    def notify_booking_confirmed(
        self,
        booking: BookingTransaction,
        provider: Provider,
        customer: Optional[Identity],
    ) -> Dict[str, bool]:
        context = self._booking_context(booking, provider, customer)
        context["confirmation_code"] = booking.confirmation_code
        sent = self._deliver(
            "email",
            booking.id,
            lambda: self._send_email(
                customer.email if customer else None,
                EmailSubject.booking_confirmed(booking.booking_reference),
                TemplateRegistry.BOOKING_CONFIRMED_CUSTOMER,
                context,
            ),
        )
        return {"customer_email": sent}

    @BaseService.measure_operation("notify_booking_cancelled")
    def notify_booking_cancelled(
        self,
        booking: BookingTransaction,
        provider: Provider,
        customer: Optional[Identity],
        cancelled_by_role: Optional[str],
    ) -> Dict[str, bool]:
        """Tell the party that did not cancel; system expiry tells both."""
        context = self._booking_context(booking, provider, customer)
        context["reason"] = booking.cancellation_reason
        subject = EmailSubject.booking_cancelled(booking.booking_reference)
        results: Dict[str, bool] = {}
        if cancelled_by_role != "customer":
            results["customer_email"] = self._deliver(
                "email",
                booking.id,
                lambda: self._send_email(
                    customer.email if customer else None,
                    subject,
                    TemplateRegistry.BOOKING_CANCELLED,
                    {**context, "recipient_name": context["customer_name"]},
                ),
            )
        if cancelled_by_role != "provider":
            results["provider_email"] = self._deliver(
                "email",
                booking.id,
                lambda: self._send_email(
                    self._provider_email(provider),
                    subject,
                    TemplateRegistry.BOOKING_CANCELLED,
                    {**context, "recipient_name": provider.business_name},
                ),
            )
        return results
