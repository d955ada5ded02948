"""Reusable model mixins and UTC time helpers."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, text
from sqlmodel import Field


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _utc_now_seconds() -> datetime:
    return utc_now().replace(microsecond=0)


def datetime_field(**kwargs: Any) -> Any:
    """Timezone-aware datetime column."""
    return Field(sa_type=DateTime(timezone=True), **kwargs)


class TimestampMixin:
    """Adds created_at and updated_at to a table model.

    Usage:
        class MyModel(TimestampMixin, SQLModel, table=True):
            id: int = Field(primary_key=True)
    """

    created_at: datetime = Field(
        default_factory=_utc_now_seconds,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=_utc_now_seconds,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": _utc_now_seconds,
        },
    )
