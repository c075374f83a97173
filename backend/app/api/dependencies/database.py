# backend/app/api/dependencies/database.py
"""
Database-related dependencies.

Re-exports the session dependency itself (not a wrapper) so a single
``app.dependency_overrides[get_db]`` entry covers routes and auth alike.
"""

from ...database import get_db

__all__ = ["get_db"]
