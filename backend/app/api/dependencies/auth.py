# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Identity resolution lives in app.auth; routes depend on it through here so
tests can override a single callable.
"""

from ...auth import get_current_identity

__all__ = ["get_current_identity"]
