"""Application configuration (settings and environment).

Single source of truth for audit configuration. Uses pydantic-settings
with .env support. Nothing here is required: without a database URL the
composition root falls back to the in-memory store, and without a PII key
personal data is stored as sanitized plaintext.
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Audit settings loaded from environment and .env."""

    # App
    app_name: str = "audittrail"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (SQLAlchemy async URL, e.g. postgresql+asyncpg://...)
    database_url: str = ""
    database_echo: bool = False

    # Audit trail
    audit_enabled: bool = True
    # Base64 of 32 random bytes (AES-256-GCM). Generate with:
    # python -m scripts.generate_pii_key
    audit_pii_encryption_key: SecretStr | None = None
    # Consumed by the retention sweep only (scripts.run_audit_retention).
    audit_retention_days: int = 365

    # Request / middleware
    request_id_header: str = "X-Request-ID"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("audit_retention_days")
    @classmethod
    def validate_retention_days(cls, value: int) -> int:
        """Retention must keep at least one day of events."""
        if value < 1:
            raise ValueError("AUDIT_RETENTION_DAYS must be >= 1")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Call get_settings.cache_clear() in tests."""
    return Settings()
