"""Server-side session store.

Sessions live in the ``sessions`` table. Expiry is enforced lazily: a
lookup treats an expired record as absent and deletes it on the spot, so
no background sweep is needed. With ``session_rolling`` enabled every
successful lookup pushes ``expires_at`` forward by the session TTL.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from fastapi import Depends
from sqlalchemy import delete
from sqlmodel import Session, col, select

from shopcore.core.deps import DbSessionDep, SettingsDep
from shopcore.core.mixins import utc_now
from shopcore.core.settings import Settings
from shopcore.session.models import SessionRecord
from shopcore.user.models import User, UserRole

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 32


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""

    id: uuid.UUID
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)

    @classmethod
    def from_record(cls, record: SessionRecord) -> "Principal":
        return cls(
            id=record.user_id,
            name=record.user_name,
            email=record.user_email,
            role=UserRole(record.user_role),
        )


def new_session_id() -> str:
    return secrets.token_urlsafe(SESSION_ID_BYTES)


class SessionStore:
    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def create(
        self,
        user: User,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionRecord:
        now = utc_now()
        record = SessionRecord(
            id=new_session_id(),
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            user_role=user.role,
            created_at=now,
            last_seen_at=now,
            expires_at=now + self.settings.session_ttl,
            ip_address=ip_address,
            user_agent=user_agent[:255] if user_agent else None,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get(
        self, session_id: str | None, now: datetime | None = None
    ) -> SessionRecord | None:
        """Return the live record for ``session_id`` or None."""
        if not session_id:
            return None
        now = now or utc_now()
        record = self.session.exec(
            select(SessionRecord).where(
                SessionRecord.id == session_id,
                col(SessionRecord.expires_at) > now,
            )
        ).first()
        if record is None:
            # Drop the expired row if there is one.
            self.destroy(session_id)
            return None

        if self.settings.session_rolling:
            record.last_seen_at = now
            record.expires_at = now + self.settings.session_ttl
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        return record

    def regenerate(self, session_id: str, user: User) -> SessionRecord | None:
        """Swap ``session_id`` for a fresh id holding the current principal.

        Returns None when there is no live session to regenerate.
        """
        old = self.get(session_id)
        if old is None:
            return None
        ip_address, user_agent = old.ip_address, old.user_agent
        self.destroy(session_id)
        return self.create(user, ip_address=ip_address, user_agent=user_agent)

    def destroy(self, session_id: str | None) -> None:
        if not session_id:
            return
        self.session.exec(
            delete(SessionRecord).where(col(SessionRecord.id) == session_id)
        )
        self.session.commit()

    def destroy_for_user(
        self, user_id: uuid.UUID, except_id: str | None = None
    ) -> int:
        statement = delete(SessionRecord).where(col(SessionRecord.user_id) == user_id)
        if except_id:
            statement = statement.where(col(SessionRecord.id) != except_id)
        result = self.session.exec(statement)
        self.session.commit()
        count = result.rowcount or 0
        if count:
            logger.info(
                "Revoked %d session(s)", count, extra={"user_id": str(user_id)}
            )
        return count

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or utc_now()
        result = self.session.exec(
            delete(SessionRecord).where(col(SessionRecord.expires_at) <= now)
        )
        self.session.commit()
        return result.rowcount or 0


def get_session_store(session: DbSessionDep, settings: SettingsDep) -> SessionStore:
    return SessionStore(session, settings)


SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]
