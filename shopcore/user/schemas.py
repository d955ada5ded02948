"""User domain schemas.

Request and response schemas for user operations.

Security notes:
- password_hash and the reset/verification token digests are internal-only
  and never appear in a response schema
- UserCreate runs the same password policy as self-registration
- UserUpdateMe is restricted to the display name to prevent privilege
  escalation
"""

import uuid
from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel

from shopcore.auth.schemas import check_password_policy
from shopcore.core.mixins import as_utc
from shopcore.user.models import UserRole, UserStatus


def _isoformat(value: datetime) -> str:
    """Format as ISO 8601 in UTC with a Z suffix (2026-01-19T12:34:56Z)."""
    return as_utc(value).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class UserBase(SQLModel):
    """Base user properties safe for all API responses."""

    name: str
    email: EmailStr
    email_verified: bool


class UserPublicRead(UserBase):
    """Public user projection returned by auth and user endpoints."""

    id: uuid.UUID
    role: UserRole
    status: UserStatus
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        return _isoformat(value)

    @field_serializer("last_login_at")
    def serialize_optional_datetime(self, value: datetime | None) -> str | None:
        return _isoformat(value) if value is not None else None


class UserList(SQLModel):
    items: list[UserPublicRead]
    total: int
    page: int
    limit: int
    total_pages: int


class _UserRequest(SQLModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserUpdateMe(_UserRequest):
    """Schema for users updating their own profile.

    Users cannot modify: email, role, status.
    """

    name: str | None = Field(default=None, min_length=2, max_length=100)


class UserUpdate(_UserRequest):
    """Schema for admin updating a user."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    role: UserRole | None = None
    status: UserStatus | None = None


class UserStatusUpdate(_UserRequest):
    status: UserStatus


class UserRoleUpdate(_UserRequest):
    role: UserRole


class EmailAvailability(SQLModel):
    email: str
    available: bool


class UserCreate(_UserRequest):
    """Schema for an admin creating an account with any role."""

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(max_length=128)
    role: UserRole = UserRole.customer
    status: UserStatus = UserStatus.active

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
