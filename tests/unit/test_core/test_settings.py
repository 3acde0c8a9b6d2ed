"""Unit tests for modular Pydantic Settings v2."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from object_gateway.core.settings import (
    AppSettings,
    LoggingSettings,
    StorageSettings,
    get_settings,
    get_storage_settings,
)
from object_gateway.core.settings.yaml_sources import discover_yaml_files


class TestAppSettings:
    """Test suite for AppSettings."""

    def test_defaults(self):
        settings = AppSettings(_env_file=None)

        assert settings.service_name == "object-gateway"
        assert settings.environment == "test"  # From env var in conftest
        assert settings.port == 3000
        assert settings.announce_port is False  # From env var in conftest
        assert "X-Request-ID" in settings.cors_expose_headers
        assert "Content-Range" in settings.cors_expose_headers

    def test_frozen(self):
        settings = AppSettings(_env_file=None)

        with pytest.raises(ValidationError):
            settings.debug = True

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("APP_PORT", "8123")

        assert AppSettings(_env_file=None).port == 8123

    def test_debug_rejected_in_production(self):
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, environment="production", debug=True)

    def test_get_docs_url(self):
        assert AppSettings(_env_file=None, docs_url="/docs").get_docs_url() == "/docs"
        assert AppSettings(_env_file=None, disable_docs=True).get_docs_url() is None


class TestStorageSettings:
    """Test suite for StorageSettings."""

    def test_not_configured_without_credentials(self):
        settings = StorageSettings(_env_file=None, enabled=True)

        assert settings.is_configured is False
        with pytest.raises(ValueError, match="not configured"):
            settings.get_client_config()

    def test_credentials_must_come_in_pairs(self):
        with pytest.raises(ValidationError, match="provided together"):
            StorageSettings(_env_file=None, access_key="AKIA")

    def test_r2_variable_names(self, monkeypatch):
        monkeypatch.setenv("STORAGE_ENABLED", "true")
        monkeypatch.setenv("R2_ENDPOINT", "https://acct.r2.cloudflarestorage.com")
        monkeypatch.setenv("R2_ACCESS_KEY_ID", "r2-key")
        monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "r2-secret")

        settings = StorageSettings(_env_file=None)
        config = settings.get_client_config()

        assert settings.is_configured is True
        assert config["endpoint_url"] == "https://acct.r2.cloudflarestorage.com"
        assert config["aws_access_key_id"] == "r2-key"
        assert config["aws_secret_access_key"] == "r2-secret"
        assert config["region_name"] == "auto"

    def test_secrets_are_masked_in_repr(self):
        settings = StorageSettings(_env_file=None, access_key="AKIA", secret_key="topsecret")

        assert "topsecret" not in repr(settings)

    def test_disabled_storage_is_not_configured(self):
        settings = StorageSettings(
            _env_file=None, enabled=False, access_key="AKIA", secret_key="s"
        )

        assert settings.is_configured is False

    @pytest.mark.parametrize("expiry", [0, 604801])
    def test_presigned_expiry_bounds(self, expiry):
        with pytest.raises(ValidationError):
            StorageSettings(_env_file=None, presigned_url_expiry_seconds=expiry)

    def test_retry_mode_is_checked(self):
        with pytest.raises(ValidationError, match="retry_mode"):
            StorageSettings(_env_file=None, retry_mode="sometimes")


class TestLoggingSettings:
    """Test suite for LoggingSettings."""

    def test_level_is_normalized(self):
        assert LoggingSettings(_env_file=None, level="debug").level == "DEBUG"

    def test_to_logging_kwargs(self):
        kwargs = LoggingSettings(_env_file=None, level="WARNING").to_logging_kwargs()

        assert kwargs["log_level"] == "WARNING"
        assert kwargs["console_enabled"] is False  # From env var in conftest
        assert kwargs["file_path"] is None
        assert kwargs["store_client_level"] == "WARNING"

    def test_store_client_level_is_normalized(self):
        settings = LoggingSettings(_env_file=None, store_client_level="debug")

        assert settings.to_logging_kwargs()["store_client_level"] == "DEBUG"


class TestLoaders:
    """Test suite for cached loaders."""

    def test_loader_is_cached(self):
        assert get_storage_settings() is get_storage_settings()

    def test_unified_settings_compose_domains(self):
        settings = get_settings()

        assert settings.storage is get_storage_settings()
        assert settings.app.service_name == "object-gateway"


class TestYamlSources:
    """Test suite for conf.d YAML sources."""

    def test_discovery_order(self, tmp_path):
        (tmp_path / "storage.yaml").write_text("region: eu-west-1\n")
        overrides = tmp_path / "storage.d"
        overrides.mkdir()
        (overrides / "20-late.yml").write_text("read_timeout: 9\n")
        (overrides / "10-early.yaml").write_text("read_timeout: 5\n")
        (overrides / "notes.txt").write_text("ignored")

        files = discover_yaml_files(tmp_path, "storage")

        assert [f.name for f in files] == ["storage.yaml", "10-early.yaml", "20-late.yml"]

    def test_missing_directory_yields_nothing(self, tmp_path):
        assert discover_yaml_files(tmp_path / "absent", "storage") == []

    def test_storage_settings_read_yaml(self, tmp_path, monkeypatch):
        (tmp_path / "storage.yaml").write_text("region: eu-west-1\nread_timeout: 5\n")
        overrides = tmp_path / "storage.d"
        overrides.mkdir()
        (overrides / "10-timeout.yaml").write_text("read_timeout: 12\n")
        monkeypatch.setenv("STORAGE_CONFIG_DIR", str(tmp_path))

        settings = StorageSettings(_env_file=None)

        assert settings.region == "eu-west-1"
        assert settings.read_timeout == 12
