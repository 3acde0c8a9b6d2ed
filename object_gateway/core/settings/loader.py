"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from object_gateway.core.settings.loader import get_storage_settings

    settings = get_storage_settings()  # First call: loads and validates
    settings = get_storage_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    get_storage_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .logs import LoggingSettings
from .storage import StorageSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings.

    Returns:
        Validated and frozen AppSettings instance.
    """
    return AppSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached object storage settings.

    Returns:
        Validated and frozen StorageSettings instance.
    """
    return StorageSettings()


def clear_all_settings_cache() -> None:
    """Clear every cached settings instance (tests and reloads)."""
    get_app_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_storage_settings.cache_clear()
