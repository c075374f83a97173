"""
Database models for the booking orchestrator.

- Identity: authenticated callers
- Provider / ProviderServiceArea: cleaner directory and per-ZIP travel fees
- BookingTransaction: the reservation itself
"""

from .booking import ACTIVE_SLOT_INDEX, BookingTransaction
from .identity import Identity
from .provider import Provider, ProviderServiceArea

__all__ = [
    "ACTIVE_SLOT_INDEX",
    "BookingTransaction",
    "Identity",
    "Provider",
    "ProviderServiceArea",
]
