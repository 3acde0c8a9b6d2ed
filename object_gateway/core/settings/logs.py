"""Logging settings for the gateway process."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_logging_yaml_source

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Where gateway logs go and how they are formatted.

    Environment variables use the LOG_ prefix, e.g. ``LOG_LEVEL=DEBUG``,
    ``LOG_JSON=false`` or ``LOG_FILE_PATH=logs/gateway.jsonl``.
    """

    service_name: str = Field(
        default="object-gateway",
        description="Static ``service`` field on every JSON record",
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(
        default=True,
        alias="json",
        description="One JSON object per line instead of plain text",
    )
    console_enabled: bool = Field(default=True, description="Write logs to stderr")
    file_path: Path | None = Field(
        default=None,
        description="Rotating log file; unset disables file logging",
    )
    store_client_level: LogLevel = Field(
        default="WARNING",
        description="Level for the botocore/aiobotocore loggers, which are chatty at DEBUG",
    )

    @field_validator("level", "store_client_level", mode="before")
    @classmethod
    def normalize_level(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.upper()
        return v

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for :func:`~object_gateway.infra.logging.configure_logging`."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "file_path": str(self.file_path) if self.file_path else None,
            "store_client_level": self.store_client_level,
        }

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_logging_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
