# backend/app/repositories/__init__.py
"""Repository layer for data access."""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .provider_repository import ProviderRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ProviderRepository",
    "RepositoryFactory",
]
