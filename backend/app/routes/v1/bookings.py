# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and BookingTransitionService.

Endpoints:
    POST / - Create a booking
    GET / - Fetch a booking by ?id= or ?reference=
    PUT / - Apply a lifecycle action (booking_id in body)
    GET /{booking_id} - Fetch a booking by id
    POST /{booking_id}/transition - Apply a lifecycle action
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import (
    get_booking_service,
    get_booking_transition_service,
    get_current_identity,
)
from ...core.exceptions import DomainException
from ...models.identity import Identity
from ...schemas.booking import (
    BookingCreatedResponse,
    BookingCreateRequest,
    BookingEnvelope,
    BookingResponse,
    TransitionRequest,
)
from ...services.booking_service import BookingService
from ...services.booking_transition_service import BookingTransitionService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    booking_data: BookingCreateRequest = Body(...),
    current_identity: Optional[Identity] = Depends(get_current_identity),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreatedResponse:
    """
    Create a booking for the authenticated customer.

    Instant-booking cleaners with a settled payment come back ``confirmed``;
    everything else is ``pending`` until the cleaner responds.
    """
    try:
        result = await asyncio.to_thread(
            booking_service.create_booking, current_identity, booking_data
        )
        return BookingCreatedResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingEnvelope)
async def get_booking_by_query(
    id: Optional[str] = Query(None, description="Booking id"),
    reference: Optional[str] = Query(None, description="Booking reference, e.g. BC12345678K7"),
    current_identity: Optional[Identity] = Depends(get_current_identity),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking, current_identity, id, reference
        )
        return BookingEnvelope(data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)


@router.put("", response_model=BookingEnvelope)
async def transition_booking(
    payload: TransitionRequest = Body(...),
    current_identity: Optional[Identity] = Depends(get_current_identity),
    transition_service: BookingTransitionService = Depends(get_booking_transition_service),
) -> BookingEnvelope:
    """Confirm, decline, cancel, start or complete a booking."""
    try:
        booking = await asyncio.to_thread(
            transition_service.transition,
            current_identity,
            payload.booking_id,
            payload.action,
            payload.reason,
        )
        return BookingEnvelope(data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)


# Dynamic routes (path parameters) are placed last


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(
    booking_id: str = Path(..., min_length=1, max_length=64),
    current_identity: Optional[Identity] = Depends(get_current_identity),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking, current_identity, booking_id, None
        )
        return BookingEnvelope(data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/transition", response_model=BookingEnvelope)
async def transition_booking_by_id(
    booking_id: str = Path(..., min_length=1, max_length=64),
    payload: TransitionRequest = Body(...),
    current_identity: Optional[Identity] = Depends(get_current_identity),
    transition_service: BookingTransitionService = Depends(get_booking_transition_service),
) -> BookingEnvelope:
    """Path id wins over any ``bookingId`` in the body."""
    try:
        booking = await asyncio.to_thread(
            transition_service.transition,
            current_identity,
            booking_id,
            payload.action,
            payload.reason,
        )
        return BookingEnvelope(data=BookingResponse.model_validate(booking))
    except DomainException as e:
        handle_domain_exception(e)
