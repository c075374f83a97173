# backend/app/routes/v1/customer.py
"""
Customer account routes - API v1

Endpoints:
    GET /tier - Subscription tier and booking allowance usage
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ...api.dependencies import get_current_identity, get_quota_checker
from ...core.exceptions import DomainException, Unauthenticated
from ...models.identity import Identity
from ...schemas.customer import TierUsageResponse
from ...services.quota_checker import QuotaChecker
from .bookings import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["customer-v1"])


@router.get("/tier", response_model=TierUsageResponse)
async def get_tier_usage(
    current_identity: Optional[Identity] = Depends(get_current_identity),
    quota_checker: QuotaChecker = Depends(get_quota_checker),
) -> TierUsageResponse:
    """Bookings used in the current window against the caller's tier allowance."""
    try:
        if current_identity is None:
            raise Unauthenticated()
        usage = await asyncio.to_thread(quota_checker.usage, current_identity.id)
        return TierUsageResponse(**usage)
    except DomainException as e:
        handle_domain_exception(e)
