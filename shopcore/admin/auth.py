import logging
import uuid

from sqladmin.authentication import AuthenticationBackend
from sqlmodel import Session
from starlette.requests import Request

from shopcore.auth.passwords import dummy_verify, verify_password
from shopcore.core.settings import get_settings
from shopcore.db.engine import engine
from shopcore.user.models import User, UserRole
from shopcore.user.repository import UserRepository

logger = logging.getLogger(__name__)

ADMIN_SESSION_KEY = "admin_user_id"


def check_admin_credentials(session: Session, email: str, password: str) -> User | None:
    """Return the user when the credentials belong to an active admin."""
    user = UserRepository(session).find_by_email(email)
    if user is None:
        dummy_verify(password, get_settings().bcrypt_rounds)
        return None
    if not verify_password(password, user.password_hash):
        return None
    if not user.is_active or user.role != UserRole.admin:
        return None
    return user


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth backed by the credential store.

    Only active accounts with the admin role may sign in.
    """

    def __init__(self) -> None:
        # SQLAdmin installs its own Starlette session middleware with this key.
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email = str(form.get("username", form.get("email", ""))).strip()
        password = str(form.get("password", ""))

        with Session(engine) as session:
            user = check_admin_credentials(session, email, password)
        if user is None:
            logger.info("Admin UI login rejected")
            return False

        request.session[ADMIN_SESSION_KEY] = str(user.id)
        logger.info("Admin UI login", extra={"user_id": str(user.id)})
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        """Re-check the signed-in account on every admin request.

        An account that is no longer an active admin loses access at once
        and its admin session is cleared.
        """
        raw_id = request.session.get(ADMIN_SESSION_KEY)
        if not raw_id:
            return False
        try:
            user_id = uuid.UUID(str(raw_id))
        except ValueError:
            request.session.clear()
            return False

        with Session(engine) as session:
            user = session.get(User, user_id)
            allowed = (
                user is not None and user.is_active and user.role == UserRole.admin
            )
        if not allowed:
            logger.info("Admin UI session revoked", extra={"user_id": str(user_id)})
            request.session.clear()
        return allowed
