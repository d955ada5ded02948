"""Double-submit CSRF protection.

The per-client secret lives in an httpOnly, sameSite=strict cookie that
scripts cannot read. Clients fetch a token from ``GET /auth/csrf-token``
and echo it in the ``X-CSRF-Token`` header. A token is
``<salt>.<hmac(secret, salt)>``, so every call hands out a fresh value
that still verifies against the same secret.
"""

import base64
import hashlib
import hmac
import secrets
from typing import Annotated

from fastapi import Depends, Request, Response

from shopcore.auth.exceptions import CsrfTokenError
from shopcore.core.deps import SettingsDep
from shopcore.core.settings import Settings

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})

_SECRET_BYTES = 18
_SALT_BYTES = 6


def new_secret() -> str:
    return secrets.token_urlsafe(_SECRET_BYTES)


def _sign(secret: str, salt: str) -> str:
    digest = hmac.new(secret.encode(), salt.encode(), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_token(secret: str) -> str:
    salt = secrets.token_urlsafe(_SALT_BYTES)
    return f"{salt}.{_sign(secret, salt)}"


def verify_token(secret: str | None, token: str | None) -> bool:
    if not secret or not token:
        return False
    salt, sep, signature = token.partition(".")
    if not sep or not salt or not signature:
        return False
    return hmac.compare_digest(signature, _sign(secret, salt))


class CsrfGuard:
    def __init__(self, settings: Settings):
        self.settings = settings

    def read_secret(self, request: Request) -> str | None:
        return request.cookies.get(self.settings.csrf_cookie_name)

    def set_secret_cookie(self, response: Response, secret: str) -> None:
        response.set_cookie(
            key=self.settings.csrf_cookie_name,
            value=secret,
            httponly=True,
            secure=self.settings.is_secure_cookie,
            samesite="strict",
            path="/",
        )

    def issue(self, request: Request, response: Response) -> str:
        """Return a fresh token, creating the secret cookie when missing."""
        secret = self.read_secret(request)
        if not secret:
            secret = new_secret()
            self.set_secret_cookie(response, secret)
        return generate_token(secret)

    def validate(self, request: Request) -> None:
        if request.method in SAFE_METHODS:
            return
        token = request.headers.get(self.settings.csrf_header_name)
        if not verify_token(self.read_secret(request), token):
            raise CsrfTokenError()


def get_csrf_guard(settings: SettingsDep) -> CsrfGuard:
    return CsrfGuard(settings)


CsrfGuardDep = Annotated[CsrfGuard, Depends(get_csrf_guard)]


def require_csrf(request: Request, guard: CsrfGuardDep) -> None:
    """Reject state-changing requests without a valid token.

    Use as a route dependency:
        @router.post("/logout", dependencies=[Depends(require_csrf)])
    """
    guard.validate(request)
