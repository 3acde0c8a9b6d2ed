"""Modular Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from object_gateway.core.settings import get_storage_settings

Or use unified settings for convenient access to all domains:
    from object_gateway.core.settings import get_settings

    settings = get_settings()
    print(settings.app.port)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (optional, local/dev)
    3. Environment variables (production)
    4. .env file (development only)
    5. secrets_dir (Docker secrets)
"""

from __future__ import annotations

from .app import AppSettings
from .loader import (
    clear_all_settings_cache,
    get_app_settings,
    get_logging_settings,
    get_storage_settings,
)
from .logs import LoggingSettings
from .storage import StorageSettings
from .unified import Settings, get_settings

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "Settings",
    "StorageSettings",
    "clear_all_settings_cache",
    "get_app_settings",
    "get_logging_settings",
    "get_settings",
    "get_storage_settings",
]
