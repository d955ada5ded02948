"""Session domain models.

A `SessionRecord` binds an opaque identifier (the `sid` cookie value) to a
snapshot of the principal taken at login or refresh time.
"""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from shopcore.core.mixins import datetime_field, utc_now
from shopcore.user.models import UserRole


class SessionRecord(SQLModel, table=True):
    __tablename__: str = "sessions"

    id: str = Field(primary_key=True, max_length=64)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")

    # Principal snapshot; not joined live against `users`.
    user_name: str = Field(max_length=100)
    user_email: str = Field(max_length=254)
    user_role: UserRole = Field(max_length=20)

    created_at: datetime = datetime_field(default_factory=utc_now)
    expires_at: datetime = datetime_field(index=True)
    last_seen_at: datetime = datetime_field(default_factory=utc_now)

    ip_address: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=255)
