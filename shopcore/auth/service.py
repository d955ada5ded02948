"""Authentication service.

Owns the credential flows: registration, login, logout, password change,
password reset, email verification and session refresh. Routers stay
thin HTTP adapters and delegate here.

Write order: every credential or token mutation is committed before the
related notification email is attempted. Notifications are best-effort
(try, log, swallow); only the reset and verification emails are required
because their token is useless without them.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends
from starlette.concurrency import run_in_threadpool

from shopcore.auth.exceptions import (
    EmailDeliveryFailedError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotAuthenticatedError,
    PasswordIncorrectError,
    PasswordReuseError,
)
from shopcore.auth.passwords import dummy_verify, hash_password, verify_password
from shopcore.auth.schemas import RegisterRequest
from shopcore.auth.tokens import TokenIssuer, hash_token
from shopcore.core.deps import SettingsDep
from shopcore.core.email import (
    EmailDeliveryError,
    EmailFailureKind,
    Mailer,
    MailerDep,
)
from shopcore.core.mixins import utc_now
from shopcore.core.settings import Settings
from shopcore.session.models import SessionRecord
from shopcore.session.store import SessionStore, SessionStoreDep
from shopcore.user.exceptions import (
    EmailExistsError,
    UserInactiveError,
    UserNotFoundError,
)
from shopcore.user.models import User, UserStatus
from shopcore.user.repository import UserRepository, UserRepositoryDep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """A user together with the session just established for them."""

    user: User
    session: SessionRecord


def _failure_kind(exc: Exception) -> EmailFailureKind:
    if isinstance(exc, EmailDeliveryError):
        return exc.kind
    return EmailFailureKind.unknown


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionStore,
        mailer: Mailer,
        settings: Settings,
    ):
        self.users = users
        self.sessions = sessions
        self.mailer = mailer
        self.settings = settings
        self.reset_tokens = TokenIssuer(settings.password_reset_ttl)
        self.verification_tokens = TokenIssuer(settings.email_verification_ttl)

    async def _hash(self, plain: str) -> str:
        return await run_in_threadpool(
            hash_password, plain, self.settings.bcrypt_rounds
        )

    async def _verify(self, plain: str, hashed: str | None) -> bool:
        return await run_in_threadpool(verify_password, plain, hashed)

    def _start_session(self, user: User, client: ClientInfo | None) -> SessionRecord:
        client = client or ClientInfo()
        return self.sessions.create(
            user, ip_address=client.ip_address, user_agent=client.user_agent
        )

    async def _notify(
        self,
        send: Callable[..., Awaitable[Any]],
        user: User,
        **kwargs: Any,
    ) -> bool:
        """Send a notification email; failures are logged, never raised."""
        try:
            await send(email=user.email, name=user.name, **kwargs)
        except Exception as e:
            logger.warning(
                "Notification email failed: %s",
                getattr(send, "__name__", "send"),
                extra={
                    "user_id": str(user.id),
                    "email_failure_kind": _failure_kind(e).value,
                },
                exc_info=not isinstance(e, EmailDeliveryError),
            )
            return False
        return True

    async def register(
        self, data: RegisterRequest, client: ClientInfo | None = None
    ) -> AuthResult:
        """Create the account, sign it in and send the verification email.

        Raises:
            EmailExistsError: If the email is already registered
        """
        if self.users.find_by_email(data.email) is not None:
            raise EmailExistsError()

        token = self.verification_tokens.issue()
        user = self.users.create(
            name=data.name,
            email=data.email,
            password_hash=await self._hash(data.password),
            role=data.role,
            status=UserStatus.active,
            email_verified=False,
            email_verification_token_hash=token.hash,
            email_verification_expires_at=token.expires_at,
        )
        session = self._start_session(user, client)
        logger.info("User registered", extra={"user_id": str(user.id)})

        await self._notify(
            self.mailer.send_email_verification, user, raw_token=token.raw
        )
        return AuthResult(user=user, session=session)

    async def login(
        self, email: str, password: str, client: ClientInfo | None = None
    ) -> AuthResult:
        """Authenticate with email and password.

        Unknown email and wrong password fail identically. Inactive accounts
        are rejected before the password is checked, but the hash is still
        verified so every path costs one bcrypt comparison.

        Raises:
            InvalidCredentialsError: If the credentials do not match
            UserInactiveError: If the account is inactive
        """
        user = self.users.find_by_email(email)
        if user is None:
            await run_in_threadpool(
                dummy_verify, password, self.settings.bcrypt_rounds
            )
            raise InvalidCredentialsError()

        password_ok = await self._verify(password, user.password_hash)
        if not user.is_active:
            logger.info("Login to inactive account", extra={"user_id": str(user.id)})
            raise UserInactiveError()
        if not password_ok:
            logger.info("Failed login", extra={"user_id": str(user.id)})
            raise InvalidCredentialsError()

        user.last_login_at = utc_now()
        user = self.users.save(user)
        session = self._start_session(user, client)
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return AuthResult(user=user, session=session)

    def logout(self, session_id: str | None) -> None:
        """Destroy the session; a missing session is not an error."""
        self.sessions.destroy(session_id)

    def get_profile(self, user_id: uuid.UUID) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
        current_session_id: str | None = None,
    ) -> User:
        """Replace the password after re-checking the current one.

        Other sessions of the user are revoked when
        ``revoke_sessions_on_password_change`` is set; the calling session
        survives.

        Raises:
            UserNotFoundError: If the account no longer exists
            PasswordIncorrectError: If current_password does not verify
            PasswordReuseError: If new_password equals the current password
        """
        user = self.get_profile(user_id)

        if not await self._verify(current_password, user.password_hash):
            raise PasswordIncorrectError()
        if await self._verify(new_password, user.password_hash):
            raise PasswordReuseError()

        user.password_hash = await self._hash(new_password)
        user = self.users.save(user)
        logger.info("Password changed", extra={"user_id": str(user.id)})

        if self.settings.revoke_sessions_on_password_change:
            self.sessions.destroy_for_user(user.id, except_id=current_session_id)

        await self._notify(self.mailer.send_password_changed, user)
        return user

    async def forgot_password(self, email: str) -> None:
        """Issue a reset token and email it.

        Unknown and inactive accounts return silently so the caller's
        response is identical either way.

        Raises:
            EmailDeliveryFailedError: If the reset email could not be sent;
                the token is cleared first
        """
        user = self.users.find_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return

        # Overwriting the digest invalidates any earlier outstanding token.
        token = self.reset_tokens.issue()
        user.password_reset_token_hash = token.hash
        user.password_reset_expires_at = token.expires_at
        user = self.users.save(user)

        try:
            await self.mailer.send_password_reset(
                email=user.email, name=user.name, raw_token=token.raw
            )
        except Exception as e:
            user.clear_password_reset()
            self.users.save(user)
            logger.error(
                "Password reset email failed: %s",
                _failure_kind(e).value,
                extra={
                    "user_id": str(user.id),
                    "email_failure_kind": _failure_kind(e).value,
                },
                exc_info=not isinstance(e, EmailDeliveryError),
            )
            raise EmailDeliveryFailedError() from e

        logger.info("Password reset token issued", extra={"user_id": str(user.id)})

    async def reset_password(self, raw_token: str, new_password: str) -> User:
        """Redeem a reset token and set the new password.

        Raises:
            InvalidTokenError: If the token is unknown, expired or already used
            UserInactiveError: If the matched account is inactive
        """
        token_hash = hash_token(raw_token)
        now = utc_now()
        user = self.users.find_by_reset_token(token_hash, now)
        if user is None:
            raise InvalidTokenError()
        if not user.is_active:
            raise UserInactiveError()
        if not self.users.consume_reset_token(user, token_hash, now):
            raise InvalidTokenError()

        user.password_hash = await self._hash(new_password)
        user = self.users.save(user)
        logger.info("Password reset completed", extra={"user_id": str(user.id)})

        if self.settings.revoke_sessions_on_password_change:
            self.sessions.destroy_for_user(user.id)

        await self._notify(self.mailer.send_password_reset_confirmation, user)
        return user

    async def verify_email(self, raw_token: str) -> User:
        """Redeem a verification token.

        Raises:
            InvalidTokenError: If the token is unknown, expired or already used
        """
        token_hash = hash_token(raw_token)
        now = utc_now()
        user = self.users.find_by_verification_token(token_hash, now)
        if user is None or not self.users.consume_verification_token(
            user, token_hash, now
        ):
            raise InvalidTokenError()

        user.email_verified = True
        if self.settings.verification_reactivates_account:
            user.status = UserStatus.active
        user = self.users.save(user)
        logger.info("Email verified", extra={"user_id": str(user.id)})

        await self._notify(self.mailer.send_email_verified, user)
        return user

    async def resend_verification(self, user_id: uuid.UUID) -> bool:
        """Issue a fresh verification token and email it.

        Returns False without sending anything when the email is already
        verified.

        Raises:
            UserNotFoundError: If the account no longer exists
            EmailDeliveryFailedError: If the email could not be sent
        """
        user = self.get_profile(user_id)
        if user.email_verified:
            return False

        token = self.verification_tokens.issue()
        user.email_verification_token_hash = token.hash
        user.email_verification_expires_at = token.expires_at
        user = self.users.save(user)

        try:
            await self.mailer.send_email_verification(
                email=user.email, name=user.name, raw_token=token.raw
            )
        except Exception as e:
            user.clear_email_verification()
            self.users.save(user)
            logger.error(
                "Verification email failed: %s",
                _failure_kind(e).value,
                extra={
                    "user_id": str(user.id),
                    "email_failure_kind": _failure_kind(e).value,
                },
                exc_info=not isinstance(e, EmailDeliveryError),
            )
            raise EmailDeliveryFailedError() from e
        return True

    def refresh_session(self, session_id: str | None) -> AuthResult:
        """Re-read the user and move the principal to a new session id.

        Raises:
            NotAuthenticatedError: If there is no live session
            UserInactiveError: If the account was deactivated since login
        """
        record = self.sessions.get(session_id)
        if record is None:
            raise NotAuthenticatedError("No active session")

        user = self.users.find_by_id(record.user_id)
        if user is None:
            self.sessions.destroy(record.id)
            raise NotAuthenticatedError("No active session")
        if not user.is_active:
            self.sessions.destroy(record.id)
            raise UserInactiveError()

        new_record = self.sessions.regenerate(record.id, user)
        if new_record is None:
            raise NotAuthenticatedError("No active session")
        return AuthResult(user=user, session=new_record)


def get_auth_service(
    users: UserRepositoryDep,
    sessions: SessionStoreDep,
    mailer: MailerDep,
    settings: SettingsDep,
) -> AuthService:
    return AuthService(users, sessions, mailer, settings)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
