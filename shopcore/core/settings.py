"""Application settings using Pydantic Settings for typed configuration.

All configuration is read from environment variables (or a local `.env`)
and exposed through a cached `Settings` instance.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PRODUCTION_ENVS = {"prod", "production", "staging"}


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env_name: str = Field(default="development", alias="ENV_NAME")
    app_name: str = Field(default="ShopCore CMS", alias="APP_NAME")

    # Database
    database_url: str = Field(default="sqlite:///./shopcore.db", alias="DATABASE_URL")

    # Sessions
    session_secret_key: str = Field(
        default="change-me-in-production", alias="SESSION_SECRET_KEY"
    )
    session_cookie_name: str = Field(default="sid", alias="SESSION_COOKIE_NAME")
    session_ttl_hours: int = Field(default=24, alias="SESSION_TTL_HOURS", ge=1)
    session_rolling: bool = Field(default=True, alias="SESSION_ROLLING")
    revoke_sessions_on_password_change: bool = Field(
        default=True, alias="REVOKE_SESSIONS_ON_PASSWORD_CHANGE"
    )

    # CSRF
    csrf_cookie_name: str = Field(default="_csrf", alias="CSRF_COOKIE_NAME")
    csrf_header_name: str = Field(default="X-CSRF-Token", alias="CSRF_HEADER_NAME")

    # Credentials and one-time tokens
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS", ge=4, le=31)
    password_reset_ttl_minutes: int = Field(
        default=10, alias="PASSWORD_RESET_TTL_MINUTES", ge=1
    )
    email_verification_ttl_hours: int = Field(
        default=24, alias="EMAIL_VERIFICATION_TTL_HOURS", ge=1
    )
    verification_reactivates_account: bool = Field(
        default=False, alias="VERIFICATION_REACTIVATES_ACCOUNT"
    )

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Email (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_base_url: str = Field(
        default="https://api.resend.com", alias="RESEND_BASE_URL"
    )
    email_from: str | None = Field(default=None, alias="EMAIL_FROM")
    email_timeout_seconds: float = Field(
        default=10.0, alias="EMAIL_TIMEOUT_SECONDS", gt=0
    )
    email_retry_attempts: int = Field(default=2, alias="EMAIL_RETRY_ATTEMPTS", ge=1)
    client_url: str = Field(default="http://localhost:3000", alias="CLIENT_URL")

    # Rate limits (slowapi notation)
    rate_limit_auth: str = Field(default="5/15minutes", alias="RATE_LIMIT_AUTH")
    rate_limit_password_reset: str = Field(
        default="5/15minutes", alias="RATE_LIMIT_PASSWORD_RESET"
    )

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.env_name.lower() in _PRODUCTION_ENVS

    @computed_field
    @property
    def is_secure_cookie(self) -> bool:
        """Cookies carry the Secure flag only outside local/test environments."""
        return self.is_production

    @computed_field
    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.session_ttl_hours)

    @computed_field
    @property
    def password_reset_ttl(self) -> timedelta:
        return timedelta(minutes=self.password_reset_ttl_minutes)

    @computed_field
    @property
    def email_verification_ttl(self) -> timedelta:
        return timedelta(hours=self.email_verification_ttl_hours)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
