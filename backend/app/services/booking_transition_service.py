# backend/app/services/booking_transition_service.py
"""
Booking lifecycle transitions.

All status changes after creation go through this module. Who may do what
from which status is a single policy table; ``can_transition`` is the only
authorization check.

    confirm   pending                          provider           -> confirmed
    decline   pending, confirmed               provider           -> cancelled
    cancel    pending, confirmed, in_progress  customer, provider -> cancelled
    start     confirmed                        provider           -> in_progress
    complete  in_progress                      provider           -> completed
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DECLINED_BY_PROVIDER_REASON, EXPIRED_PENDING_REASON
from ..core.enums import BookingAction, BookingRole, BookingStatus
from ..core.exceptions import (
    InvalidRequest,
    InvalidTransition,
    NotFound,
    RepositoryException,
    Unauthenticated,
    UnknownAction,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..core.ulid_helper import generate_confirmation_code
from ..models.booking import BookingTransaction
from ..models.identity import Identity
from ..models.provider import Provider
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService

if TYPE_CHECKING:
    from ..repositories.base_repository import BaseRepository
    from ..repositories.booking_repository import BookingRepository
    from ..repositories.provider_repository import ProviderRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionRule:
    roles: FrozenSet[BookingRole]
    from_statuses: FrozenSet[BookingStatus]
    to_status: BookingStatus


_PROVIDER = frozenset({BookingRole.PROVIDER})
_EITHER_PARTY = frozenset({BookingRole.CUSTOMER, BookingRole.PROVIDER})

TRANSITION_POLICY: Dict[BookingAction, TransitionRule] = {
    BookingAction.CONFIRM: TransitionRule(
        _PROVIDER, frozenset({BookingStatus.PENDING}), BookingStatus.CONFIRMED
    ),
    BookingAction.DECLINE: TransitionRule(
        _PROVIDER,
        frozenset(BookingStatus.active()),
        BookingStatus.CANCELLED,
    ),
    BookingAction.CANCEL: TransitionRule(
        _EITHER_PARTY, frozenset(BookingStatus.active()), BookingStatus.CANCELLED
    ),
    BookingAction.START: TransitionRule(
        _PROVIDER, frozenset({BookingStatus.CONFIRMED}), BookingStatus.IN_PROGRESS
    ),
    BookingAction.COMPLETE: TransitionRule(
        _PROVIDER, frozenset({BookingStatus.IN_PROGRESS}), BookingStatus.COMPLETED
    ),
}


def parse_action(action: str) -> BookingAction:
    try:
        return BookingAction((action or "").strip().lower())
    except ValueError:
        raise UnknownAction(action)


def can_transition(role: BookingRole, booking_status: str, action: BookingAction) -> bool:
    rule = TRANSITION_POLICY[action]
    return role in rule.roles and BookingStatus(booking_status) in rule.from_statuses


def resolve_role(
    identity_id: str, booking: BookingTransaction, provider: Optional[Provider]
) -> Optional[BookingRole]:
    """
    Role the caller plays on this booking, or None if they are not a party.

    An identity that is both the customer and the owning cleaner acts as the
    provider.
    """
    if provider is not None and provider.owner_identity_id == identity_id:
        return BookingRole.PROVIDER
    if booking.customer_id == identity_id:
        return BookingRole.CUSTOMER
    return None


def elapsed_hours(start: datetime, end: datetime) -> Decimal:
    seconds = Decimal(str((ensure_utc(end) - ensure_utc(start)).total_seconds()))
    return (seconds / Decimal(3600)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class BookingTransitionService(BaseService):
    """Applies lifecycle actions to bookings on behalf of their parties."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        repository: Optional["BookingRepository"] = None,
        provider_repository: Optional["ProviderRepository"] = None,
        identity_repository: Optional["BaseRepository[Identity]"] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.identity_repository = (
            identity_repository or RepositoryFactory.create_identity_repository(db)
        )
        self.notification_service = notification_service or NotificationService()

    @BaseService.measure_operation("transition_booking")
    def transition(
        self,
        identity: Optional[Identity],
        booking_id: Optional[str],
        action: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingTransaction:
        """
        Apply ``action`` to a booking.

        Raises:
            Unauthenticated: no caller identity
            UnknownAction: action is not one of the lifecycle actions
            InvalidRequest: no booking id was given
            NotFound: booking missing or caller is not a party to it
            InvalidTransition: wrong role (403) or wrong status (409)
        """
        if identity is None:
            raise Unauthenticated()
        parsed = parse_action(action)
        if not booking_id:
            raise InvalidRequest.missing("booking_id")

        now = now or utc_now()
        with self.transaction():
            booking = self.repository.get_for_update(booking_id)
            if booking is None:
                raise NotFound()
            provider = self.provider_repository.get_by_id(booking.cleaner_id)
            role = resolve_role(identity.id, booking, provider)
            if role is None:
                raise NotFound()

            rule = TRANSITION_POLICY[parsed]
            if role not in rule.roles:
                raise InvalidTransition(
                    f"Only the cleaner can {parsed.value} this booking",
                    reason=InvalidTransition.ROLE,
                    action=parsed.value,
                )
            if not can_transition(role, booking.status, parsed):
                raise InvalidTransition(
                    f"Cannot {parsed.value} a booking that is {booking.status}",
                    reason=InvalidTransition.STATE,
                    action=parsed.value,
                    current_status=booking.status,
                )

            previous_status = booking.status
            self._apply(booking, parsed, identity.id, reason, now)
            booking.status = rule.to_status.value

        prometheus_metrics.record_transition(parsed.value, previous_status)
        self.log_operation(
            "booking_transition",
            booking_id=booking.id,
            action=parsed.value,
            from_status=previous_status,
            to_status=booking.status,
            actor_role=role.value,
        )
        self._notify(booking, provider, parsed, role)
        return booking

    @staticmethod
    def _apply(
        booking: BookingTransaction,
        action: BookingAction,
        actor_id: str,
        reason: Optional[str],
        now: datetime,
    ) -> None:
        if action is BookingAction.CONFIRM:
            booking.confirmed_at = now
            booking.confirmation_code = generate_confirmation_code()
        elif action is BookingAction.CANCEL:
            booking.cancel(actor_id, reason)
            booking.cancelled_at = now
        elif action is BookingAction.DECLINE:
            booking.cancel(actor_id, reason or DECLINED_BY_PROVIDER_REASON)
            booking.cancelled_at = now
        elif action is BookingAction.START:
            booking.check_in_time = now
        elif action is BookingAction.COMPLETE:
            booking.check_out_time = now
            if booking.check_in_time is not None:
                booking.actual_duration_hours = elapsed_hours(booking.check_in_time, now)

    def _notify(
        self,
        booking: BookingTransaction,
        provider: Optional[Provider],
        action: BookingAction,
        role: Optional[BookingRole],
    ) -> None:
        if provider is None or action not in (
            BookingAction.CONFIRM,
            BookingAction.CANCEL,
            BookingAction.DECLINE,
        ):
            return
        try:
            customer = self.identity_repository.get_by_id(booking.customer_id)
            if action is BookingAction.CONFIRM:
                self.notification_service.notify_booking_confirmed(booking, provider, customer)
            else:
                self.notification_service.notify_booking_cancelled(
                    booking, provider, customer, role.value if role else None
                )
        except Exception as e:
            self.logger.error(f"Failed to send {action.value} notifications for {booking.id}: {e}")

    @BaseService.measure_operation("expire_stale_pending")
    def expire_stale_pending(
        self, now: Optional[datetime] = None, ttl_hours: Optional[int] = None
    ) -> int:
        """
        Cancel pending bookings the cleaner never answered.

        Bookings created more than ``ttl_hours`` ago (default
        ``settings.pending_booking_ttl_hours``) are cancelled with no actor.
        A TTL of 0 disables the sweep. Returns the number expired.
        """
        ttl = settings.pending_booking_ttl_hours if ttl_hours is None else ttl_hours
        if ttl <= 0:
            return 0

        now = now or utc_now()
        cutoff = now - timedelta(hours=ttl)
        try:
            stale = self.repository.find_stale_pending(cutoff)
        except RepositoryException as exc:
            self.logger.error(f"Stale pending lookup failed: {exc}", exc_info=True)
            raise

        expired = []
        for booking in stale:
            with self.transaction():
                locked = self.repository.get_for_update(booking.id)
                if locked is None or locked.status != BookingStatus.PENDING.value:
                    continue
                locked.cancel(None, EXPIRED_PENDING_REASON)
                locked.cancelled_at = now
            prometheus_metrics.record_transition("expire", BookingStatus.PENDING.value)
            expired.append(locked)

        for booking in expired:
            self._notify(
                booking,
                self.provider_repository.get_by_id(booking.cleaner_id),
                BookingAction.CANCEL,
                None,
            )

        if expired:
            self.log_operation("stale_pending_expired", count=len(expired), cutoff=cutoff.isoformat())
        return len(expired)
