"""Global exception handlers for consistent error responses.

Every error leaving the service is serialized as
``{"success": false, "message": ..., "errors"?: [...]}``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopcore.core.exceptions import AppException, RateLimitError

logger = logging.getLogger("shopcore.exception")


def error_response(
    status_code: int, message: str, errors: list[dict[str, Any]] | None = None
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def _request_extra(request: Request, status_code: int) -> dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "client_ip": request.client.host if request.client else None,
    }


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all AppException subclasses."""
    extra = _request_extra(request, exc.status_code) | {"error_type": exc.error_type}
    if exc.status_code >= 500:
        logger.error(
            "AppException: %s - %s",
            exc.error_type,
            exc.message,
            extra=extra,
            exc_info=exc.__cause__ is not None,
        )
    else:
        logger.info("AppException: %s - %s", exc.error_type, exc.message, extra=extra)
    return error_response(exc.status_code, exc.message, exc.errors)


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle framework HTTP errors (404 for unknown routes, 405, ...)."""
    return error_response(exc.status_code, str(exc.detail))


def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as 400 with per-field details."""
    errors = []
    for error in exc.errors():
        field = ".".join(
            str(loc) for loc in error["loc"] if loc not in ("body", "path", "query")
        )
        errors.append({"field": field, "message": error["msg"]})

    return error_response(400, "Validation failed", errors)


def rate_limit_exception_handler(
    request: Request, _exc: RateLimitExceeded
) -> JSONResponse:
    """Translate slowapi rejections into the standard 429 envelope."""
    error = RateLimitError()
    logger.warning(
        "Rate limit exceeded for %s",
        request.url.path,
        extra=_request_extra(request, error.status_code),
    )
    return error_response(error.status_code, error.message)


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unhandled exception: %s %s - %s",
        request.method,
        request.url.path,
        exc,
        extra=_request_extra(request, 500),
        exc_info=True,
    )
    return error_response(500, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
