"""Presigned download URL generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from object_gateway.core.schemas.envelope import utc_timestamp
from object_gateway.infra.storage.exceptions import invalid_param_error
from object_gateway.infra.storage.operations.validation import validate_bucket, validate_key

if TYPE_CHECKING:
    from object_gateway.infra.storage.backends.protocol import ObjectStoreBackend

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 3600
MAX_EXPIRY_SECONDS = 604800  # 7 days, the SigV4 limit


@dataclass
class PresignedDownloadUrl:
    """Presigned download URL with metadata."""

    url: str
    key: str
    expires_at: datetime
    expires_in_seconds: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "key": self.key,
            "url": self.url,
            "expiresIn": self.expires_in_seconds,
            "expiresAt": utc_timestamp(self.expires_at),
        }


def validate_expiry(expires_in: int) -> int:
    """Check a presigned URL lifetime is between 1 second and 7 days."""
    if not 1 <= expires_in <= MAX_EXPIRY_SECONDS:
        raise invalid_param_error(
            "expiresIn",
            f"integer between 1 and {MAX_EXPIRY_SECONDS}",
            expires_in,
        )
    return expires_in


async def presign_download(
    backend: ObjectStoreBackend,
    bucket: str,
    key: str,
    expires_in: int | None = None,
    *,
    default_expiry: int = DEFAULT_EXPIRY_SECONDS,
) -> PresignedDownloadUrl:
    """Generate a presigned GET URL for an object.

    The object is not checked for existence; a URL for a missing key
    answers 404 from the store when used.

    Args:
        backend: Object store backend
        bucket: Bucket name
        key: Object key
        expires_in: Lifetime in seconds, ``default_expiry`` when omitted
        default_expiry: Configured default lifetime

    Returns:
        PresignedDownloadUrl with the URL and its expiry

    Example:
        url = await presign_download(backend, "reports", "2024/q1.pdf", 600)
    """
    validate_bucket(bucket)
    validate_key(key)
    expires_in = validate_expiry(default_expiry if expires_in is None else expires_in)

    url = await backend.presign_get(bucket, key, expires_in)

    logger.debug(
        "Presigned URL issued",
        extra={"bucket": bucket, "key": key, "expires_in": expires_in},
    )

    return PresignedDownloadUrl(
        url=url,
        key=key,
        expires_at=datetime.now(UTC) + timedelta(seconds=expires_in),
        expires_in_seconds=expires_in,
    )
