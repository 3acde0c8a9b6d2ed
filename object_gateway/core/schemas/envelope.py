"""Response envelope builders.

Every HTTP response produced by the gateway, success or error, carries a
single ``meta`` block with the response timestamp and the request id
assigned by ``RequestIDMiddleware``.

Success:
    ``{"status": "ok", "data": ..., "meta": {"timestamp": ..., "requestId": ...}}``

Error:
    ``{"status": "error", "error": {"code", "message", "details"?}, "meta": {...}}``
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import Field

from object_gateway.core.schemas.base import CustomBase

if TYPE_CHECKING:
    from starlette.requests import Request


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as ISO 8601 UTC with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ResponseMeta(CustomBase):
    """Metadata attached to every response."""

    timestamp: str = Field(..., description="Response creation time (ISO 8601, UTC)")
    request_id: str = Field(..., description="Unique id of the request")


class ErrorBody(CustomBase):
    """Client-safe error description."""

    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., description="Safe human-readable message")
    details: dict[str, Any] | None = Field(default=None, description="Diagnostic details")


class ApiResponse[T](CustomBase):
    """Success envelope."""

    status: Literal["ok"] = "ok"
    data: T
    meta: ResponseMeta


class ErrorEnvelope(CustomBase):
    """Error envelope."""

    status: Literal["error"] = "error"
    error: ErrorBody
    meta: ResponseMeta


def get_request_id(request: Request) -> str:
    """Return the request id assigned by the request-id middleware.

    Falls back to generating one when the middleware is not installed
    (e.g. routers mounted on a bare app in tests) and stores it on the
    request so subsequent calls agree.
    """
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def build_meta(request: Request) -> ResponseMeta:
    """Build the meta block for the current request."""
    return ResponseMeta(timestamp=utc_timestamp(), request_id=get_request_id(request))


def success_envelope[T](request: Request, data: T) -> ApiResponse[T]:
    """Wrap a payload in the success envelope.

    Args:
        request: Current request, source of the request id.
        data: Response payload.

    Returns:
        Envelope ready to be returned from a route.
    """
    return ApiResponse(data=data, meta=build_meta(request))


def error_envelope(
    request: Request,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the serialized error envelope.

    Args:
        request: Current request, source of the request id.
        code: Error code from the closed taxonomy.
        message: Client-safe message.
        details: Optional diagnostic details, omitted when empty.

    Returns:
        JSON-ready dict in camelCase.
    """
    envelope = ErrorEnvelope(
        error=ErrorBody(code=code, message=message, details=details or None),
        meta=build_meta(request),
    )
    return envelope.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "ApiResponse",
    "ErrorBody",
    "ErrorEnvelope",
    "ResponseMeta",
    "build_meta",
    "error_envelope",
    "get_request_id",
    "success_envelope",
    "utc_timestamp",
]
