"""
Checks that a cleaner can take a requested booking.

Checks run in a fixed order and stop at the first failure, so callers always
see the most fundamental problem first.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    DateNotInFuture,
    DurationTooShort,
    ProviderUnavailable,
    ServiceAreaMismatch,
    ServiceTypeMismatch,
)
from ..core.timezone_utils import localize_service_start, utc_now
from ..models.provider import Provider
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .pricing_calculator import to_decimal

if TYPE_CHECKING:
    from ..repositories.provider_repository import ProviderRepository

logger = logging.getLogger(__name__)


def _format_hours(value: Decimal) -> float | int:
    return int(value) if value == value.to_integral_value() else float(value)


class AvailabilityValidator(BaseService):
    def __init__(
        self,
        db: Optional[Session],
        provider_repository: Optional["ProviderRepository"] = None,
        tz_name: Optional[str] = None,
    ):
        super().__init__(db)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.tz_name = tz_name or settings.marketplace_timezone

    @BaseService.measure_operation("availability.validate")
    def validate(
        self,
        cleaner_id: str,
        zip_code: str,
        service_type: str,
        duration_hours: Decimal,
        service_date: date,
        service_time: time,
        now: Optional[datetime] = None,
    ) -> Provider:
        """
        Return the provider when every check passes.

        Raises:
            ProviderUnavailable: provider missing or not approved
            ServiceAreaMismatch: ZIP outside the provider's areas
            ServiceTypeMismatch: service not offered
            DurationTooShort: below the provider's minimum hours
            DateNotInFuture: slot start is not strictly after now
        """
        provider = self.provider_repository.get_by_id(cleaner_id)
        if provider is None or not provider.is_approved:
            raise ProviderUnavailable(cleaner_id)

        if not provider.serves_zip(zip_code):
            raise ServiceAreaMismatch(zip_code)

        if not provider.offers(service_type):
            raise ServiceTypeMismatch(service_type)

        minimum = to_decimal(provider.minimum_hours)
        requested = to_decimal(duration_hours)
        if requested < minimum:
            raise DurationTooShort(_format_hours(minimum), _format_hours(requested))

        start = localize_service_start(service_date, service_time, self.tz_name)
        if start <= (now or utc_now()):
            raise DateNotInFuture(service_date.isoformat(), service_time.strftime("%H:%M"))

        return provider
