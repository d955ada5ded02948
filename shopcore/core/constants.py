"""
App-wide constants for route configuration and email templates.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from shopcore.models.response import ErrorResponse


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    AUTH = RouteConfig(prefix="/auth", tag="auth")
    USER = RouteConfig(prefix="/users", tag="users")
    HEALTH = RouteConfig(prefix="/health", tag="health")


class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    UNAUTHORIZED: dict[int | str, dict[str, Any]] = {
        401: {
            "description": "Not authenticated or invalid credentials",
            "model": ErrorResponse,
        }
    }
    FORBIDDEN: dict[int | str, dict[str, Any]] = {
        403: {
            "description": "Inactive account, missing privileges or bad CSRF token",
            "model": ErrorResponse,
        }
    }
    NOT_FOUND: dict[int | str, dict[str, Any]] = {
        404: {"description": "Resource not found", "model": ErrorResponse}
    }
    CONFLICT: dict[int | str, dict[str, Any]] = {
        409: {"description": "Resource already exists", "model": ErrorResponse}
    }
    BAD_REQUEST: dict[int | str, dict[str, Any]] = {
        400: {"description": "Invalid request data", "model": ErrorResponse}
    }
    TOO_MANY_REQUESTS: dict[int | str, dict[str, Any]] = {
        429: {"description": "Rate limit exceeded", "model": ErrorResponse}
    }


# Email templates ship inside the package: `<name>.html.j2` and `<name>.txt.j2`.
EmailTemplatesDir = Path(__file__).parent.parent / "templates" / "emails"

JinjaEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(EmailTemplatesDir)),
    autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
    trim_blocks=True,
    lstrip_blocks=True,
)
