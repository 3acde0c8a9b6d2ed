"""Optional YAML files for gateway settings.

Each settings domain reads ``<dir>/<domain>.yaml`` and then every file in
``<dir>/<domain>.d/`` in name order, later files overriding earlier ones.
``<dir>`` defaults to ``conf`` and can be moved per domain, e.g.
``STORAGE_CONFIG_DIR=/etc/object-gateway``. When no file exists the source
contributes nothing, so a container configured purely through environment
variables needs no config directory at all.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic_settings import YamlConfigSettingsSource

if TYPE_CHECKING:
    from pydantic_settings import BaseSettings

DEFAULT_CONFIG_DIR = "conf"


def discover_yaml_files(config_dir: Path, domain: str) -> list[Path]:
    """List the YAML files for a domain, base file first, then ``<domain>.d/`` sorted by name."""
    files: list[Path] = []
    base_file = config_dir / f"{domain}.yaml"
    if base_file.is_file():
        files.append(base_file)

    override_dir = config_dir / f"{domain}.d"
    if override_dir.is_dir():
        files.extend(
            sorted(
                path
                for path in override_dir.iterdir()
                if path.is_file() and path.suffix in (".yaml", ".yml")
            )
        )
    return files


class ConfDYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML source over a domain's base file and its ``.d`` overrides."""

    def __init__(self, settings_cls: type[BaseSettings], domain: str, env_prefix: str) -> None:
        config_dir = Path(os.getenv(f"{env_prefix}CONFIG_DIR", DEFAULT_CONFIG_DIR))
        self.yaml_files = discover_yaml_files(config_dir, domain)
        super().__init__(
            settings_cls=settings_cls,
            yaml_file=self.yaml_files or None,
            yaml_file_encoding="utf-8",
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(yaml_files={[str(f) for f in self.yaml_files]})"


def create_app_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    return ConfDYamlConfigSettingsSource(settings_cls, "app", "APP_")


def create_storage_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    return ConfDYamlConfigSettingsSource(settings_cls, "storage", "STORAGE_")


def create_logging_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    return ConfDYamlConfigSettingsSource(settings_cls, "logging", "LOG_")
