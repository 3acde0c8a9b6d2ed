"""Base schema classes for API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CustomBase(BaseModel):
    """Base model with common configuration for all schemas.

    Fields are declared in snake_case and serialized in camelCase, which is
    the wire format desktop clients consume.

    Example:
            class ObjectResponse(CustomBase):
            key: str
            last_modified: datetime   # serialized as "lastModified"
    """

    model_config = ConfigDict(
        # camelCase on the wire, snake_case in Python
        alias_generator=to_camel,
        # Populate models by field name as well as alias
        populate_by_name=True,
        # Use enum values instead of names
        use_enum_values=True,
        # Ignore extra fields (silently drop unexpected data)
        extra="ignore",
    )


__all__ = ["CustomBase"]
