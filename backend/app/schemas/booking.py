# backend/app/schemas/booking.py
"""
Booking request and response schemas.

Creation fields are all optional at the schema level: the booking service
reports the first missing required field by name, which a plain pydantic
"field required" error would not do in the API's error format.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.constants import MAX_NOTES_LENGTH, MAX_REASON_LENGTH
from .base import Money, StandardizedModel, StrictRequestModel


class AddOn(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)


class BookingCreateRequest(StrictRequestModel):
    """Customer request to book a cleaner for one slot."""

    cleaner_id: Optional[str] = None
    service_type: Optional[str] = None
    service_date: Optional[date] = None
    service_time: Optional[time] = None
    duration_hours: Optional[Decimal] = Field(None, gt=0, le=24)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=10)
    property_type: Optional[str] = Field(None, max_length=50)
    property_size_sqft: Optional[int] = Field(None, alias="propertySize", ge=0)
    special_instructions: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    customer_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    base_price: Optional[Decimal] = Field(None, ge=0)
    add_ons: List[AddOn] = Field(default_factory=list)
    discount_code: Optional[str] = Field(None, max_length=50)
    payment_method: Literal["stripe", "invoice"] = "stripe"
    stripe_payment_method_id: Optional[str] = None

    @field_validator("cleaner_id", "service_type", "address", "city", "zip_code", mode="before")
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("service_time")
    @classmethod
    def _service_time_is_wall_clock(cls, value: Optional[time]) -> Optional[time]:
        # Interpreted in the marketplace timezone
        if value is not None and value.tzinfo is not None:
            raise ValueError("service time must not carry a UTC offset")
        return value


class TransitionRequest(StrictRequestModel):
    """Body of a lifecycle mutation."""

    booking_id: Optional[str] = None
    action: str = Field(..., min_length=1, max_length=20)
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class PaymentInfo(StandardizedModel):
    payment_intent_id: str
    client_secret: Optional[str] = None
    status: str


class PriceBreakdownResponse(StandardizedModel):
    base_amount: Money
    add_on_total: Money
    travel_fee: Money
    discount_amount: Money
    total_amount: Money


class BookingCreatedResponse(StandardizedModel):
    success: bool = True
    id: str
    reference: str
    status: str
    payment_status: str
    cleaner_name: str
    service_type: str
    service_date: date
    service_time: time
    duration_hours: Money
    address: str
    total_amount: Money
    pricing: PriceBreakdownResponse
    instant_booking: bool
    payment: Optional[PaymentInfo] = None
    next_steps: str
    estimated_response: str


class BookingResponse(StandardizedModel):
    """Full booking record as seen by one of its parties."""

    id: str
    booking_reference: str
    customer_id: str
    cleaner_id: str
    service_type: str
    service_date: date
    service_time: time
    duration_hours: Money
    address: str
    city: str
    zip_code: str
    property_type: Optional[str] = None
    property_size_sqft: Optional[int] = None
    special_instructions: Optional[str] = None
    customer_notes: Optional[str] = None
    base_price: Money
    add_ons: List[Dict[str, Any]] = Field(default_factory=list)
    discount_amount: Money
    travel_fee: Money
    total_amount: Money
    customer_tier: Optional[str] = None
    status: str
    payment_method: str
    payment_status: str
    payment_intent_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    confirmation_code: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    actual_duration_hours: Optional[Money] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    source: str

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class BookingEnvelope(StandardizedModel):
    success: bool = True
    data: BookingResponse
