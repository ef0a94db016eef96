"""Maps exceptions to the JSON error body every endpoint shares.

Body shape: ``{"error": <category>, "message": <text>, "details"?: [...]}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from metrics_service.config import get_settings
from metrics_service.domain.exceptions import (
    MetricsServiceError,
    UnknownError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error_payload(error: str, message: str, details: list[dict] | None = None) -> dict:
    payload = {"error": error, "message": message}
    if details:
        payload["details"] = details
    return payload


async def metrics_service_error_handler(request: Request, exc: MetricsServiceError) -> JSONResponse:
    details = None
    if isinstance(exc, ValidationError):
        details = [{"field": v.field, "message": v.message} for v in exc.violations]

    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(exc.error, exc.message, details),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI's 422 as the same 400 body as ``ValidationError``."""
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        details.append({
            "field": ".".join(location) or "request",
            "message": error.get("msg", "Invalid value"),
        })
    logger.warning("%s %s rejected: %d invalid field(s)", request.method, request.url.path, len(details))
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=_error_payload(ValidationError.error, "Invalid input", details),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = "Not Found" if exc.status_code == 404 else "HTTP Error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(error, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "An unexpected error occurred"
    if get_settings().app_env == "development":
        message = str(exc) or message
    return JSONResponse(
        status_code=UnknownError.status_code,
        content=_error_payload(UnknownError.error, message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MetricsServiceError, metrics_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
