"""Dependencies for object storage endpoints."""

from typing import Annotated

from fastapi import Depends

from object_gateway.core.settings import StorageSettings, get_storage_settings
from object_gateway.infra.storage.dependencies import ObjectStore

StorageSettingsDep = Annotated[StorageSettings, Depends(get_storage_settings)]

__all__ = ["ObjectStore", "StorageSettingsDep"]
