"""Health check response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from object_gateway.core.schemas.base import CustomBase
from object_gateway.core.schemas.envelope import ResponseMeta


class HealthResponse(BaseModel):
    """Liveness response.

    Example:
        ```json
        {
            "status": "ok",
            "service": "object-gateway",
            "version": "1.0.0",
            "timestamp": "2025-01-01T00:00:00.000Z",
            "uptime": 12.5,
            "checks": {"storage": true}
        }
        ```
    """

    status: Literal["ok"] = Field(default="ok", description="Always 'ok' while the process serves")
    service: str = Field(min_length=1, max_length=100, description="Service name")
    version: str = Field(min_length=1, max_length=50, description="Service version")
    timestamp: str = Field(description="Check timestamp (ISO 8601, UTC)")
    uptime: float = Field(ge=0, description="Seconds since the process started")
    checks: dict[str, bool] = Field(
        default_factory=dict, description="Readiness of optional dependencies"
    )

    model_config = ConfigDict(str_strip_whitespace=True)


class ShutdownResponse(CustomBase):
    """Acknowledgement of a shutdown request, sent before the server stops."""

    status: Literal["ok"] = "ok"
    message: str = Field(description="What happens next")
    timestamp: str = Field(description="Request time (ISO 8601, UTC)")
    meta: ResponseMeta
