# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the booking orchestrator.

Every failure a caller can observe is a DomainException subclass carrying a
human readable message, a stable machine code and a details mapping. The API
layer turns them into HTTP responses through ``to_http_exception``.
"""

from typing import Any, Dict, Mapping, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Booking taxonomy


class Unauthenticated(UnauthorizedException):
    default_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class InvalidRequest(ValidationException):
    """Structurally invalid input (missing field, malformed value)."""

    default_code = "INVALID_REQUEST"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = dict(details or {})
        if field is not None:
            merged.setdefault("field", field)
        super().__init__(message, code=code, details=merged)
        self.field = field

    @classmethod
    def missing(cls, field: str) -> "InvalidRequest":
        return cls(f"Missing required field: {field}", field=field, code="MISSING_FIELD")


class ProviderUnavailable(NotFoundException):
    default_code = "PROVIDER_UNAVAILABLE"

    def __init__(self, cleaner_id: str) -> None:
        super().__init__(
            "Cleaner not found or not approved",
            details={"cleaner_id": cleaner_id},
        )


class ServiceAreaMismatch(ValidationException):
    default_code = "SERVICE_AREA_MISMATCH"

    def __init__(self, zip_code: str) -> None:
        super().__init__(
            "Cleaner does not service this area",
            details={"zip_code": zip_code},
        )


class ServiceTypeMismatch(ValidationException):
    default_code = "SERVICE_TYPE_MISMATCH"

    def __init__(self, service_type: str) -> None:
        super().__init__(
            "Cleaner does not offer this service",
            details={"service_type": service_type},
        )


class DurationTooShort(ValidationException):
    default_code = "DURATION_TOO_SHORT"

    def __init__(self, minimum_hours: Any, requested_hours: Any) -> None:
        super().__init__(
            f"Minimum booking duration is {minimum_hours} hours",
            details={
                "minimum_hours": minimum_hours,
                "requested_hours": requested_hours,
            },
        )
        self.minimum_hours = minimum_hours


class DateNotInFuture(ValidationException):
    default_code = "DATE_NOT_IN_FUTURE"

    def __init__(self, service_date: str, service_time: str) -> None:
        super().__init__(
            "Service date must be in the future",
            details={"service_date": service_date, "service_time": service_time},
        )


class QuotaExceeded(ForbiddenException):
    default_code = "QUOTA_EXCEEDED"

    def __init__(self, tier: str, limit: int, tier_limits: Mapping[str, int]) -> None:
        noun = "booking" if limit == 1 else "bookings"
        super().__init__(
            f"Your {tier} tier allows {limit} {noun} per month. "
            "Upgrade your subscription to book more cleanings.",
            details={
                "current_tier": tier,
                "monthly_limit": limit,
                "tier_limits": dict(tier_limits),
                "upgrade_required": True,
            },
        )
        self.tier = tier
        self.limit = limit


class QuotaCheckFailed(ServiceException):
    default_code = "QUOTA_CHECK_FAILED"

    def __init__(self, message: str = "Unable to verify booking allowance") -> None:
        super().__init__(message)


class SlotTaken(ConflictException):
    default_code = "SLOT_TAKEN"

    def __init__(self, cleaner_id: str, service_date: Any, service_time: Any) -> None:
        super().__init__(
            "This time slot is already booked",
            details={
                "cleaner_id": cleaner_id,
                "service_date": str(service_date),
                "service_time": str(service_time),
            },
        )


class PaymentSetupFailed(ServiceException):
    default_code = "PAYMENT_SETUP_FAILED"

    def __init__(self, message: str = "Failed to create payment") -> None:
        super().__init__(message)


class InvalidTransition(DomainException):
    """
    A lifecycle mutation that the caller may not perform.

    ``reason`` is ``"role"`` when the caller holds the wrong role for the
    action (403) and ``"state"`` when the booking is in the wrong status (409).
    """

    default_code = "INVALID_TRANSITION"

    ROLE = "role"
    STATE = "state"

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        action: str,
        current_status: Optional[str] = None,
    ) -> None:
        details: Dict[str, Any] = {"reason": reason, "action": action}
        if current_status is not None:
            details["current_status"] = current_status
        super().__init__(message, details=details)
        self.reason = reason
        self.status_code = (
            status.HTTP_403_FORBIDDEN if reason == self.ROLE else status.HTTP_409_CONFLICT
        )


class UnknownAction(ValidationException):
    default_code = "UNKNOWN_ACTION"

    def __init__(self, action: str) -> None:
        super().__init__("Invalid action", details={"action": action})


class NotFound(NotFoundException):
    default_code = "NOT_FOUND"

    def __init__(self, message: str = "Booking not found") -> None:
        super().__init__(message)


class InternalError(ServiceException):
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Wraps SQLAlchemy failures so services can distinguish data access problems
    from business rule violations.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original = original
