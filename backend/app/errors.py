# backend/app/errors.py
"""
Unified error envelope.

Every error leaves the API as ``{"detail": {"message", "code", "details"}}``,
the shape produced by ``DomainException.to_http_exception``.
"""

import logging
from typing import Any, Sequence

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException, InternalError, InvalidRequest

logger = logging.getLogger(__name__)


def _domain_response(exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    return JSONResponse(
        {"detail": jsonable_encoder(http_exc.detail)},
        status_code=http_exc.status_code,
        headers=getattr(http_exc, "headers", None),
    )


def _field_from_loc(loc: Sequence[Any]) -> str:
    # loc looks like ("body", "serviceDate") or ("query", "id")
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def validation_error_to_domain(exc: RequestValidationError) -> InvalidRequest:
    """Collapse pydantic's error list into a single InvalidRequest."""
    errors = exc.errors()
    if not errors:
        return InvalidRequest("Invalid request")
    first = errors[0]
    field = _field_from_loc(first.get("loc", ()))
    if first.get("type") == "missing":
        return InvalidRequest.missing(field)
    if first.get("type") == "extra_forbidden":
        return InvalidRequest(f"Unexpected field: {field}", field=field, code="UNEXPECTED_FIELD")
    return InvalidRequest(
        f"Invalid value for {field}: {first.get('msg', 'invalid')}",
        field=field,
        details={"errors": jsonable_encoder(errors, exclude={"ctx", "url", "input"})},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return _domain_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _domain_response(validation_error_to_domain(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc
        )
        return _domain_response(InternalError())
