# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, customer, health, prometheus

__all__ = [
    "bookings",
    "customer",
    "health",
    "prometheus",
]
