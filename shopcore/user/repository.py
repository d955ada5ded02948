"""Credential store: persistence operations for `User` records.

Email uniqueness is enforced by the unique index on ``users.email``; the
service-level pre-check is only a fast path, so a concurrent duplicate
insert still surfaces here as `EmailExistsError`.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from shopcore.core.deps import DbSessionDep
from shopcore.core.mixins import utc_now
from shopcore.user.exceptions import EmailExistsError
from shopcore.user.models import User, UserRole, UserStatus


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class UserPage:
    items: list[User]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: uuid.UUID) -> User | None:
        return self.session.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        return self.session.exec(
            select(User).where(User.email == normalize_email(email))
        ).first()

    def find_by_reset_token(
        self, token_hash: str, now: datetime | None = None
    ) -> User | None:
        """Match the digest and the expiry in one query.

        An expired record with a matching digest is never returned.
        """
        now = now or utc_now()
        return self.session.exec(
            select(User).where(
                User.password_reset_token_hash == token_hash,
                col(User.password_reset_expires_at) > now,
            )
        ).first()

    def find_by_verification_token(
        self, token_hash: str, now: datetime | None = None
    ) -> User | None:
        now = now or utc_now()
        return self.session.exec(
            select(User).where(
                User.email_verification_token_hash == token_hash,
                col(User.email_verification_expires_at) > now,
            )
        ).first()

    def consume_reset_token(
        self, user: User, token_hash: str, now: datetime | None = None
    ) -> bool:
        """Clear the reset token only if it still matches and is live.

        Returns False when another request already redeemed it.
        """
        now = now or utc_now()
        result = self.session.exec(
            update(User)
            .where(
                col(User.id) == user.id,
                col(User.password_reset_token_hash) == token_hash,
                col(User.password_reset_expires_at) > now,
            )
            .values(password_reset_token_hash=None, password_reset_expires_at=None)
        )
        self.session.commit()
        self.session.refresh(user)
        return result.rowcount == 1

    def consume_verification_token(
        self, user: User, token_hash: str, now: datetime | None = None
    ) -> bool:
        now = now or utc_now()
        result = self.session.exec(
            update(User)
            .where(
                col(User.id) == user.id,
                col(User.email_verification_token_hash) == token_hash,
                col(User.email_verification_expires_at) > now,
            )
            .values(
                email_verification_token_hash=None,
                email_verification_expires_at=None,
            )
        )
        self.session.commit()
        self.session.refresh(user)
        return result.rowcount == 1

    def create(self, **fields: Any) -> User:
        fields["email"] = normalize_email(fields["email"])
        user = User(**fields)
        return self.save(user)

    def save(self, user: User) -> User:
        user.email = normalize_email(user.email)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise EmailExistsError() from e
        self.session.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.session.delete(user)
        self.session.commit()

    def list(
        self,
        *,
        role: UserRole | None = None,
        status: UserStatus | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> UserPage:
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if status is not None:
            conditions.append(User.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(User.name).like(pattern),
                    col(User.email).like(pattern),
                )
            )

        total = self.session.exec(
            select(func.count()).select_from(User).where(*conditions)
        ).one()
        items = self.session.exec(
            select(User)
            .where(*conditions)
            .order_by(col(User.created_at).desc(), col(User.email))
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return UserPage(items=list(items), total=total, page=page, limit=limit)


def get_user_repository(session: DbSessionDep) -> UserRepository:
    return UserRepository(session)


UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
