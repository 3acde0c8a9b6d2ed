"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_app_yaml_source

Environment = Literal["development", "staging", "production", "test"]


def _default_cors_origins() -> list[str]:
    origins: list[str] = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend(f"http://{host}:{port}" for port in (3000, 5173, 8080))
    return origins


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_DEBUG=true, APP_PORT=3000
    """

    # Service identity
    service_name: str = Field(
        default="object-gateway",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging (lowercase, hyphens allowed)",
    )
    title: str = Field(
        default="Object Gateway API",
        min_length=1,
        max_length=200,
        description="API title displayed in documentation",
    )
    description: str = Field(
        default="HTTP gateway to S3-compatible object storage",
        description="API description (supports Markdown)",
    )
    version: str = Field(
        default="1.0.0",
        min_length=1,
        max_length=50,
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$",
        description="API version (semver format)",
    )
    environment: Environment = Field(
        default="development", description="Environment: development|staging|production|test",
    )

    # FastAPI toggles
    debug: bool = Field(default=False, description="Enable debug mode")
    docs_url: str | None = Field(default="/docs", description="Swagger UI path")
    openapi_url: str | None = Field(default="/openapi.json", description="OpenAPI schema path")
    disable_docs: bool = Field(default=False, description="Disable all API documentation")

    # Server configuration
    host: str = Field(
        default="127.0.0.1", min_length=1, max_length=255, description="Server bind host",
    )
    port: int = Field(default=3000, ge=1, le=65535, description="Server port")
    announce_port: bool = Field(
        default=True,
        description="Print PORT=<port> on startup for the parent process",
    )

    # CORS configuration
    cors_origins: list[str] = Field(
        default_factory=_default_cors_origins,
        description="Allowed CORS origins (JSON array)",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "HEAD", "PUT", "POST", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: [
            "Content-Type",
            "Content-Length",
            "Authorization",
            "Range",
            "X-Request-ID",
        ],
        description="Allowed request headers",
    )
    cors_expose_headers: list[str] = Field(
        default_factory=lambda: [
            "Content-Length",
            "Content-Range",
            "Content-Type",
            "Content-Disposition",
            "ETag",
            "Last-Modified",
            "Accept-Ranges",
            "X-Amz-Storage-Class",
            "X-Request-ID",
        ],
        description="Response headers readable by browser clients",
    )
    cors_max_age: int = Field(
        default=3600,
        ge=0,
        le=86400,
        description="CORS preflight cache max-age in seconds (0-86400)",
    )

    # Request logging
    enable_request_logging: bool = Field(
        default=True, description="Log every request and response",
    )
    request_log_redact_fields: list[str] = Field(
        default_factory=list,
        description="Additional query parameter / header names to redact in request logs",
    )

    @model_validator(mode="after")
    def validate_production_settings(self) -> AppSettings:
        """Validate settings for production environment."""
        if self.environment == "production" and self.debug:
            msg = "Debug mode cannot be enabled in production environment"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,  # Immutable settings
        extra="ignore",
        env_ignore_empty=True,  # Ignore empty string env vars
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_app_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def docs_enabled(self) -> bool:
        """Check if API documentation is enabled."""
        return not self.disable_docs

    def get_docs_url(self) -> str | None:
        """Get docs URL or None if disabled."""
        return None if self.disable_docs else self.docs_url
