"""Unified settings composition for convenient access.

Usage:
    from object_gateway.core.settings import get_settings

    settings = get_settings()
    print(settings.app.port)
    print(settings.storage.endpoint)

Each nested settings class still loads from its own environment prefix
(APP_, STORAGE_, LOG_).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .loader import get_app_settings, get_logging_settings, get_storage_settings
from .logs import LoggingSettings
from .storage import StorageSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings()
        assert settings.app.debug is False
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=get_app_settings)
    logging: LoggingSettings = Field(default_factory=get_logging_settings)
    storage: StorageSettings = Field(default_factory=get_storage_settings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Returns:
        Settings: Unified settings with all domain configurations.
    """
    return Settings()
