"""User domain exceptions.

User-related exceptions for not found, inactive, and conflict scenarios.
"""

from shopcore.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)


class UserNotFoundError(NotFoundError):
    """Raised when user cannot be found."""

    error_type = "user_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class UserInactiveError(AuthorizationError):
    """Raised when an inactive account tries to authenticate."""

    error_type = "user_inactive"

    def __init__(self, message: str = "Account is inactive"):
        super().__init__(message)


class EmailExistsError(ConflictError):
    """Raised when attempting to register with an existing email."""

    error_type = "email_exists"

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


class SelfModificationError(BadRequestError):
    """Raised when an admin tries to demote or delete their own account."""

    error_type = "self_modification"

    def __init__(self, message: str = "You cannot modify your own account this way"):
        super().__init__(message)
