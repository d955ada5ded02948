"""App-wide exception hierarchy.

Every failure the service raises on purpose is an `AppException` subclass
carrying its HTTP status, a machine-readable `error_type`, a user-facing
message and optional per-field `errors`. The boundary handlers in
`shopcore.core.exception_handlers` turn them into the JSON error envelope.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All custom exceptions inherit from this class and define their own
    status_code and error_type for consistent API responses.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        errors: list[dict[str, Any]] | None = None,
    ):
        self.message = message
        self.errors = errors
        super().__init__(message)


# Validation errors (400)
class BadRequestError(AppException):
    """Malformed input or a failed business precondition."""

    status_code = 400
    error_type = "bad_request"

    def __init__(
        self,
        message: str = "Bad request",
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message, errors)


# Authentication errors (401)
class AuthenticationError(AppException):
    """Base class for authentication failures."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


# Authorization errors (403)
class AuthorizationError(AppException):
    """Base class for authorization failures."""

    status_code = 403
    error_type = "authorization_error"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


# Not found errors (404)
class NotFoundError(AppException):
    """Base class for resource not found errors."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


# Conflict errors (409)
class ConflictError(AppException):
    """Base class for resource conflict errors."""

    status_code = 409
    error_type = "conflict"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message)


# Rate limit errors (429)
class RateLimitError(AppException):
    """Raised when rate limit is exceeded."""

    status_code = 429
    error_type = "rate_limit_exceeded"

    def __init__(self, message: str = "Too many requests, please try again later"):
        super().__init__(message)


# Internal errors (500)
class InternalError(AppException):
    """Raised for internal server errors."""

    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)
