"""User domain models.

SQLModel table definition for User, the credential and session principal.
"""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from shopcore.core.mixins import TimestampMixin, datetime_field


class UserRole(StrEnum):
    """Account role. Declaration order is the privilege order."""

    customer = "customer"
    staff = "staff"
    admin = "admin"


class UserStatus(StrEnum):
    """Account status.

    - active: may authenticate
    - inactive: deactivated by an admin, cannot log in or reset a password
    """

    active = "active"
    inactive = "inactive"


class User(TimestampMixin, SQLModel, table=True):
    """User database model.

    password_hash and the token digests are internal-only and must never
    be exposed in API responses; see `shopcore.user.schemas`.
    """

    __tablename__: str = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(index=True, unique=True, max_length=254)
    password_hash: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.customer, max_length=20, index=True)
    status: UserStatus = Field(default=UserStatus.active, max_length=20)
    email_verified: bool = Field(default=False)

    password_reset_token_hash: str | None = Field(
        default=None, max_length=64, index=True
    )
    password_reset_expires_at: datetime | None = datetime_field(default=None)
    email_verification_token_hash: str | None = Field(
        default=None, max_length=64, index=True
    )
    email_verification_expires_at: datetime | None = datetime_field(default=None)

    last_login_at: datetime | None = datetime_field(default=None)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active

    def clear_password_reset(self) -> None:
        self.password_reset_token_hash = None
        self.password_reset_expires_at = None

    def clear_email_verification(self) -> None:
        self.email_verification_token_hash = None
        self.email_verification_expires_at = None
