"""Single-use, time-boxed tokens for password reset and email verification.

Only the SHA-256 digest and the expiry are persisted; the raw token
leaves the process once, inside the emailed link.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from shopcore.core.mixins import as_utc, utc_now

TOKEN_BYTES = 32


@dataclass(frozen=True)
class IssuedToken:
    raw: str
    hash: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"IssuedToken(expires_at={self.expires_at.isoformat()})"


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class TokenIssuer:
    def __init__(self, ttl: timedelta):
        self.ttl = ttl

    def issue(self, now: datetime | None = None) -> IssuedToken:
        raw = secrets.token_hex(TOKEN_BYTES)
        return IssuedToken(
            raw=raw,
            hash=hash_token(raw),
            expires_at=(now or utc_now()) + self.ttl,
        )

    @staticmethod
    def redeem(
        raw: str,
        stored_hash: str | None,
        stored_expires_at: datetime | None,
        now: datetime | None = None,
    ) -> bool:
        """True when ``raw`` matches the stored digest and has not expired."""
        if not stored_hash or stored_expires_at is None:
            return False
        if not hmac.compare_digest(hash_token(raw), stored_hash):
            return False
        return (now or utc_now()) < as_utc(stored_expires_at)
