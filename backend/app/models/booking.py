# backend/app/models/booking.py
"""
Booking transaction model.

A booking is a self-contained record of one customer reserving one cleaner
for one slot. Pricing is snapshotted at creation so later changes to the
cleaner's rates never alter historical bookings.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)

from ..core.enums import BookingStatus, PaymentStatus
from ..core.ulid_helper import generate_booking_reference, generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)

ACTIVE_SLOT_INDEX = "uq_booking_transactions_active_slot"

_ACTIVE_STATUS_FILTER = "status IN ('pending', 'confirmed', 'in_progress')"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingTransaction(Base):
    """
    One customer's reservation of one cleaner's slot.

    Lifecycle: pending -> confirmed -> in_progress -> completed, with
    cancellation allowed from any non-terminal status.
    """

    __tablename__ = "booking_transactions"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    booking_reference = Column(
        String(20), nullable=False, unique=True, default=generate_booking_reference
    )

    # Parties
    customer_id = Column(String(26), ForeignKey("identities.id"), nullable=False, index=True)
    cleaner_id = Column(String(26), ForeignKey("providers.id"), nullable=False, index=True)

    # Schedule
    service_type = Column(String(100), nullable=False)
    service_date = Column(Date, nullable=False, index=True)
    service_time = Column(Time, nullable=False)
    duration_hours = Column(Numeric(5, 2), nullable=False)

    # Location
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(10), nullable=False)
    property_type = Column(String(50), nullable=True)
    property_size_sqft = Column(Integer, nullable=True)
    special_instructions = Column(Text, nullable=True)
    customer_notes = Column(Text, nullable=True)

    # Pricing snapshot
    base_price = Column(Numeric(10, 2), nullable=False)
    add_ons = Column(JSON, nullable=False, default=list)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    travel_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(10, 2), nullable=False)
    customer_tier = Column(String(20), nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    # Payment
    payment_method = Column(String(20), nullable=False, default="stripe")
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_intent_id = Column(String(255), nullable=True, comment="Stripe payment intent")

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    confirmation_code = Column(String(10), nullable=True)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_out_time = Column(DateTime(timezone=True), nullable=True)
    actual_duration_hours = Column(Numeric(5, 1), nullable=True)

    # Cancellation tracking
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String(26), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    source = Column(String(20), nullable=False, default="web")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_total_amount_non_negative"),
        CheckConstraint("duration_hours > 0", name="check_duration_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="ck_booking_transactions_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid')",
            name="ck_booking_transactions_payment_status",
        ),
        Index(
            ACTIVE_SLOT_INDEX,
            "cleaner_id",
            "service_date",
            "service_time",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_FILTER),
            sqlite_where=text(_ACTIVE_STATUS_FILTER),
        ),
        Index("ix_booking_transactions_customer_created", "customer_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingTransaction {self.id} ({self.booking_reference}): "
            f"customer={self.customer_id}, cleaner={self.cleaner_id}, "
            f"slot={self.service_date} {self.service_time}, status={self.status}>"
        )

    def cancel(self, cancelled_by: Optional[str], reason: Optional[str] = None) -> None:
        """Cancel this booking. ``cancelled_by`` is None for system expiry."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = _utcnow()
        self.cancelled_by = cancelled_by
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {cancelled_by or 'system'}")

