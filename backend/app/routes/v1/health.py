# backend/app/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import os

from fastapi import APIRouter, Response

from app.core.config import settings
from app.core.constants import BRAND_NAME

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _resolve_git_sha() -> str:
    for candidate in (os.getenv("GIT_SHA"), os.getenv("COMMIT_SHA")):
        if candidate and candidate.strip():
            return candidate.strip()
    return "unknown"


@router.get("/health")
def health_check(response: Response) -> dict[str, str]:
    """Liveness probe. Does not touch the database."""
    response.headers["X-Commit-Sha"] = _resolve_git_sha()
    return {
        "status": "healthy",
        "service": f"{BRAND_NAME.lower()}-bookings",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
