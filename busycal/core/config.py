"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    json_logs: bool = True

    # API
    project_name: str = "busycal"
    version: str = "0.1.0"

    # Link encryption. Changing it invalidates every link issued so far.
    encryption_key: str | None = None

    # Origin used in generated links; defaults to the incoming request's origin
    public_base_url: str | None = None

    # Anonymized feed
    calendar_prodid: str = "-//PrivacyCalendar//EN"

    # Upstream calendar fetch
    upstream_timeout_seconds: float = 30.0
    upstream_user_agent: str = "busycal/0.1"
    block_private_addresses: bool = True

    # Rate limiting
    rate_limit_enabled: bool = True
    create_rate_limit: str = "30/minute"

    # Error reporting
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
