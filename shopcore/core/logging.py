"""Central logging configuration for the application.

Logs go to stdout as text or JSON and integrate with Uvicorn/FastAPI.
Every record passes through `SecretRedactionFilter` so password hashes,
token digests and raw tokens never reach the log sink.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import re
import sys
from datetime import UTC, datetime
from typing import Any

REDACTED = "[REDACTED]"

# Extras copied into JSON output when present on the record.
_EXTRA_KEYS = (
    "method",
    "path",
    "query",
    "status_code",
    "duration_ms",
    "client_ip",
    "user_agent",
    "user_id",
    "error_type",
    "email_failure_kind",
)

_SENSITIVE_KEY_PARTS = ("password", "token", "secret", "hash", "cookie")

_SECRET_PATTERNS = (
    # bcrypt hashes ($2a$, $2b$, $2y$)
    re.compile(r"\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}"),
    # SHA-256 hex digests and 32-byte hex tokens
    re.compile(r"\b[0-9a-fA-F]{64}\b"),
    # raw tokens embedded in links
    re.compile(r"(?<=[?&]token=)[^&\s\"']+"),
    re.compile(r"(?<=/verify-email/)[^/?\s\"']+"),
)


def _env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def redact(text: str) -> str:
    """Mask secret-looking substrings in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in _SENSITIVE_KEY_PARTS)


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, dict):
        return {
            k: REDACTED if _is_sensitive_key(str(k)) else _redact_value(v)
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return type(value)(_redact_value(v) for v in value)
    return value


class SecretRedactionFilter(logging.Filter):
    """Rewrite records in place so secrets are masked before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = _redact_value(record.args)
            else:
                record.args = tuple(_redact_value(a) for a in record.args)
        for key, value in list(record.__dict__.items()):
            if key in _EXTRA_KEYS:
                if isinstance(value, str):
                    record.__dict__[key] = redact(value)
            elif _is_sensitive_key(key):
                record.__dict__[key] = REDACTED
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))

        for key in _EXTRA_KEYS:
            if key in record.__dict__:
                payload[key] = record.__dict__[key]

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    """Configure stdlib logging for app + uvicorn.

    Env vars:
    - LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    - LOG_JSON: true/false (default: false)
    - LOG_REQUESTS: true/false (default: true)
    - LOG_UVICORN_ACCESS: true/false
        - if unset: defaults to false when LOG_REQUESTS=true (avoid duplicate logs),
          otherwise true.
    """

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = _env_bool("LOG_JSON", default=False)
    log_requests = _env_bool("LOG_REQUESTS", default=True)
    uvicorn_access = _env_bool("LOG_UVICORN_ACCESS", default=not log_requests)

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": "shopcore.core.logging.SecretRedactionFilter"},
        },
        "formatters": {
            "text": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
            "json": {
                "()": "shopcore.core.logging.JsonFormatter",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if log_json else "text",
                "filters": ["redact"],
                "stream": sys.stdout,
            }
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "uvicorn": {"level": level, "propagate": True},
            "uvicorn.error": {"level": level, "propagate": True},
            "uvicorn.access": {
                "level": "INFO" if uvicorn_access else "WARNING",
                "propagate": True,
            },
            "httpx": {
                "level": os.getenv("HTTPX_LOG_LEVEL", "WARNING"),
                "propagate": True,
            },
            "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
        },
    }

    logging.config.dictConfig(config)
