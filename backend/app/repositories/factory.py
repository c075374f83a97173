# backend/app/repositories/factory.py
"""
Repository Factory.

Centralizes repository creation so services can be handed either real
repositories or test doubles.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .provider_repository import ProviderRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_provider_repository(db: Session) -> "ProviderRepository":
        from .provider_repository import ProviderRepository

        return ProviderRepository(db)

    @staticmethod
    def create_identity_repository(db: Session) -> BaseRepository:
        from ..models.identity import Identity

        return BaseRepository(db, Identity)
