"""Auth domain schemas.

Request and response schemas for authentication operations. Request
bodies accept both snake_case and the camelCase names browser clients
send (``newPassword``, ``currentPassword``...).
"""

import re
import uuid
from typing import Self

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from shopcore.user.models import UserRole

PASSWORD_MIN_LENGTH = 8

SELF_SERVICE_ROLES = frozenset({UserRole.customer, UserRole.staff})

_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
)


def check_password_policy(value: str) -> str:
    """Raise ValueError unless ``value`` satisfies the password policy."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    missing = [
        label for pattern, label in _PASSWORD_RULES if not pattern.search(value)
    ]
    if missing:
        raise ValueError(f"Password must contain at least {', '.join(missing)}")
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RegisterRequest(RequestModel):
    """Request schema for self-registration.

    Only customer and staff may be requested; admin accounts are created
    by an existing admin.
    """

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(max_length=128)
    role: UserRole = UserRole.customer

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        return check_password_policy(value)

    @field_validator("role")
    @classmethod
    def self_service_role(cls, value: UserRole) -> UserRole:
        if value not in SELF_SERVICE_ROLES:
            raise ValueError("Role must be customer or staff")
        return value


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class ChangePasswordRequest(RequestModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(max_length=128)
    confirm_password: str | None = None

    @field_validator("new_password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        return check_password_policy(value)

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        confirm = self.confirm_password
        if confirm is not None and confirm != self.new_password:
            raise ValueError("Passwords don't match")
        return self


class ForgotPasswordRequest(RequestModel):
    email: EmailStr


class ResetPasswordRequest(RequestModel):
    token: str = Field(min_length=1, max_length=500)
    new_password: str = Field(max_length=128)
    confirm_password: str | None = None

    @field_validator("token")
    @classmethod
    def strip_token(cls, value: str) -> str:
        return value.strip()

    @field_validator("new_password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        return check_password_policy(value)

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        confirm = self.confirm_password
        if confirm is not None and confirm != self.new_password:
            raise ValueError("Passwords don't match")
        return self


class PrincipalRead(BaseModel):
    """Session principal snapshot."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole


class SessionStatus(BaseModel):
    authenticated: bool
    user: PrincipalRead


class SessionRefreshed(BaseModel):
    user: PrincipalRead


class CsrfTokenRead(BaseModel):
    csrf_token: str
