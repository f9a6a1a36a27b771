"""Dependency injection for FastAPI routes."""

from typing import Annotated

from fastapi import Depends

from busycal.core.config import Settings, get_settings
from busycal.core.exceptions import ConfigurationError

# Type alias for the settings dependency; tests override get_settings
SettingsDep = Annotated[Settings, Depends(get_settings)]


def require_encryption_secret(settings: Settings) -> str:
    """Return the configured link secret.

    Called inside route handlers rather than as a dependency so the error is
    rendered in the route's own response format.

    Raises:
        ConfigurationError: If ``ENCRYPTION_KEY`` is unset or empty.
    """
    if not settings.encryption_key:
        raise ConfigurationError("ENCRYPTION_KEY is not set")
    return settings.encryption_key
