"""HTTP request/response logging middleware."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Probes hit these constantly; logging them drowns real traffic.
_QUIET_PATHS = frozenset({"/health"})


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _principal_id(request: Request) -> str | None:
    principal = getattr(request.state, "principal", None)
    return str(principal.id) if principal is not None else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("shopcore.request")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            status_code: int | None = response.status_code if response else None
            if request.url.path not in _QUIET_PATHS or status_code != 200:
                self._log(request, status_code, time.perf_counter() - start)

    def _log(self, request: Request, status_code: int | None, elapsed: float) -> None:
        duration_ms = elapsed * 1000.0
        extra: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent"),
            "user_id": _principal_id(request),
        }

        if status_code is None or status_code >= 500:
            log = self.logger.error
        elif status_code >= 400:
            log = self.logger.warning
        else:
            log = self.logger.info

        # Query strings are omitted: reset and verification links carry tokens.
        log(
            "%s %s -> %s (%.2fms)",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            extra=extra,
        )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach request logging middleware (enabled by default)."""

    if not _env_bool("LOG_REQUESTS", default=True):
        return
    app.add_middleware(RequestLoggingMiddleware)
