"""S3-compatible object storage configuration settings.

Environment variables use STORAGE_ prefix.
Example: STORAGE_ENDPOINT="https://<account>.r2.cloudflarestorage.com"
         STORAGE_ACCESS_KEY="..."  STORAGE_SECRET_KEY="..."

The Cloudflare R2 variable names R2_ENDPOINT, R2_ACCESS_KEY_ID and
R2_SECRET_ACCESS_KEY are accepted as well.

Supports:
- Cloudflare R2 (region "auto")
- AWS S3 (no endpoint needed)
- MinIO / LocalStack (set endpoint to the server URL)
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field, SecretStr, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_storage_yaml_source


class StorageSettings(BaseSettings):
    """S3-compatible object storage settings.

    Buckets are chosen per request by the caller, so no default bucket is
    configured here; only the connection to the store is.
    """

    # ──────────────────────────────────────────────────────────────
    # Enable/Disable toggle
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=True,
        description="Enable the object store client (endpoints answer 503 when disabled)",
    )

    # ──────────────────────────────────────────────────────────────
    # S3 Connection Configuration
    # ──────────────────────────────────────────────────────────────

    endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("endpoint", "STORAGE_ENDPOINT", "R2_ENDPOINT"),
        description="S3-compatible endpoint URL. None for AWS S3.",
    )

    region: str = Field(
        default="auto",
        description="Signing region ('auto' for Cloudflare R2)",
    )

    access_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("access_key", "STORAGE_ACCESS_KEY", "R2_ACCESS_KEY_ID"),
        description="S3 access key ID",
    )

    secret_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("secret_key", "STORAGE_SECRET_KEY", "R2_SECRET_ACCESS_KEY"),
        description="S3 secret access key",
    )

    use_ssl: bool = Field(
        default=True,
        description="Use SSL/TLS for S3 connections (set False for local MinIO without TLS)",
    )

    verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates (set False for self-signed certs in local MinIO)",
    )

    max_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Total attempts per S3 call including the first (1 disables retries)",
    )

    retry_mode: str = Field(
        default="standard",
        description="botocore retry mode: standard, adaptive, or legacy",
    )

    connect_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Connection timeout in seconds",
    )

    read_timeout: float = Field(
        default=60.0,
        gt=0,
        le=3600,
        description="Socket read timeout in seconds",
    )

    max_pool_connections: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum number of connections in the connection pool",
    )

    checksum_calculation: Literal["when_supported", "when_required"] = Field(
        default="when_required",
        description=(
            "botocore request_checksum_calculation. 'when_required' sends streamed "
            "uploads without aws-chunked framing."
        ),
    )

    # ──────────────────────────────────────────────────────────────
    # Presigned URL Configuration
    # ──────────────────────────────────────────────────────────────

    presigned_url_expiry_seconds: int = Field(
        default=3600,
        ge=1,
        le=604800,  # 7 days max
        description="Default presigned URL lifetime in seconds (default 1 hour)",
    )

    # ──────────────────────────────────────────────────────────────
    # Streaming Configuration
    # ──────────────────────────────────────────────────────────────

    streaming_chunk_size: int = Field(
        default=64 * 1024,  # 64KB
        ge=1024,
        le=16 * 1024 * 1024,
        description="Chunk size in bytes when relaying downloads to the client",
    )

    # ──────────────────────────────────────────────────────────────
    # Service Lifecycle Configuration
    # ──────────────────────────────────────────────────────────────

    startup_require_storage: bool = Field(
        default=False,
        description="Fail application startup if the client cannot be created (False = degraded mode)",
    )

    @field_validator("retry_mode")
    @classmethod
    def _validate_retry_mode(cls, value: str) -> str:
        """Validate retry_mode is one of the allowed values."""
        allowed_modes = {"standard", "adaptive", "legacy"}
        if value not in allowed_modes:
            raise ValueError(f"retry_mode must be one of {allowed_modes}, got {value}")
        return value

    @model_validator(mode="after")
    def _validate_credential_consistency(self) -> StorageSettings:
        """Validate that both credentials are provided together or neither."""
        has_access_key = self.access_key is not None
        has_secret_key = self.secret_key is not None

        if has_access_key != has_secret_key:
            raise ValueError(
                "Both access_key and secret_key must be provided together. "
                "Provide both or neither."
            )

        return self

    # ──────────────────────────────────────────────────────────────
    # Computed Properties
    # ──────────────────────────────────────────────────────────────

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_configured(self) -> bool:
        """Check if storage is enabled and static credentials are present."""
        return self.enabled and self.access_key is not None and self.secret_key is not None

    # ──────────────────────────────────────────────────────────────
    # Helper Methods
    # ──────────────────────────────────────────────────────────────

    def get_client_config(self) -> dict[str, Any]:
        """Get keyword arguments for ``aioboto3.Session().client("s3", ...)``.

        Returns:
            Region, SSL flags, credentials and endpoint.

        Raises:
            ValueError: If storage is not configured.
        """
        if not self.is_configured:
            raise ValueError("Storage not configured")

        config: dict[str, Any] = {
            "region_name": self.region,
            "use_ssl": self.use_ssl,
            "verify": self.verify_ssl,
        }

        if self.access_key is not None and self.secret_key is not None:
            config["aws_access_key_id"] = self.access_key.get_secret_value()
            config["aws_secret_access_key"] = self.secret_key.get_secret_value()

        if self.endpoint:
            config["endpoint_url"] = self.endpoint

        return config

    # ──────────────────────────────────────────────────────────────
    # Model Configuration
    # ──────────────────────────────────────────────────────────────

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
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
            create_storage_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
