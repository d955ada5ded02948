"""Auth domain exceptions.

Authentication, authorization, CSRF and credential-flow failures.
"""

from shopcore.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    InternalError,
)


# Authentication errors (401)
class InvalidCredentialsError(AuthenticationError):
    """Raised when the email/password pair does not authenticate.

    Unknown email and wrong password share this message.
    """

    error_type = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class NotAuthenticatedError(AuthenticationError):
    """Raised when a route needs a session and none is attached."""

    error_type = "not_authenticated"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


# Authorization errors (403)
class InsufficientRoleError(AuthorizationError):
    error_type = "insufficient_role"

    def __init__(self, message: str = "Insufficient role for this action"):
        super().__init__(message)


class PermissionDeniedError(AuthorizationError):
    error_type = "permission_denied"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class OwnershipRequiredError(AuthorizationError):
    error_type = "ownership_required"

    def __init__(self, message: str = "You can only access your own resources"):
        super().__init__(message)


class CsrfTokenError(AuthorizationError):
    """Raised when the anti-forgery token is missing or does not match."""

    error_type = "invalid_csrf_token"

    def __init__(self, message: str = "Invalid CSRF token"):
        super().__init__(message)


# Credential flow errors (400)
class InvalidTokenError(BadRequestError):
    """Raised when a reset or verification token is unknown or expired."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class PasswordIncorrectError(BadRequestError):
    error_type = "password_incorrect"

    def __init__(self, message: str = "Current password is incorrect"):
        super().__init__(message)


class PasswordReuseError(BadRequestError):
    error_type = "password_reuse"

    def __init__(
        self, message: str = "New password must be different from current password"
    ):
        super().__init__(message)


# Downstream errors (500)
class EmailDeliveryFailedError(InternalError):
    """Raised when a required email could not be delivered.

    The failure kind goes to the server log only.
    """

    error_type = "email_delivery_failed"

    def __init__(
        self, message: str = "Unable to send email at this time, please try again later"
    ):
        super().__init__(message)
