"""Per-IP rate limits for credential endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shopcore.core.settings import get_settings

# Rate limiter keyed by client IP
limiter = Limiter(key_func=get_remote_address)


def auth_limit() -> str:
    return get_settings().rate_limit_auth


def password_reset_limit() -> str:
    return get_settings().rate_limit_password_reset
