# backend/app/tasks/__init__.py
"""
Background tasks run by the Celery worker and beat.
"""

from .celery_app import celery_app

__all__ = ["celery_app"]
