"""Password hashing with bcrypt.

bcrypt embeds the salt and cost in the hash string and `checkpw`
compares in constant time. Nothing in this module logs its inputs.
"""

from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes; newer releases raise instead.
_MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_MAX_PASSWORD_BYTES]


@lru_cache
def _dummy_hash(rounds: int) -> bytes:
    """Hash checked when no account matches, at the same cost as real ones."""
    return bcrypt.hashpw(b"shopcore-dummy-password", bcrypt.gensalt(rounds=rounds))


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(plain: str, hashed: str | None) -> bool:
    """Return False for a wrong password or an unusable stored hash."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("ascii"))
    except ValueError:
        return False


def dummy_verify(plain: str, rounds: int = DEFAULT_ROUNDS) -> bool:
    """Spend one bcrypt comparison of cost ``rounds`` and report a mismatch.

    Unknown emails then take as long as wrong passwords.
    """
    bcrypt.checkpw(_encode(plain), _dummy_hash(rounds))
    return False
