# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.routing import APIRoute

from .core.config import is_running_tests, settings
from .core.constants import BRAND_NAME
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    bookings as bookings_v1,
    customer as customer_v1,
    health as health_v1,
    prometheus as prometheus_v1,
)

API_TITLE = f"{BRAND_NAME} Bookings API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if not settings.stripe_configured:
        logger.warning("Stripe secret key is not set; card bookings will fail payment setup")
    yield
    logger.info(f"{API_TITLE} shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
register_error_handlers(app)


@app.middleware("http")
async def record_request_metrics(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    if request.url.path == "/metrics":
        return await call_next(request)

    # Label by route template to keep cardinality bounded
    start_time = time.time()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", None) or "unmatched"
    prometheus_metrics.record_http_request(
        method=request.method,
        endpoint=endpoint,
        duration=time.time() - start_time,
        status_code=response.status_code,
    )
    return response


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(customer_v1.router, prefix="/customer")
api_v1.include_router(health_v1.router)

app.include_router(api_v1)
app.include_router(prometheus_v1.router)
