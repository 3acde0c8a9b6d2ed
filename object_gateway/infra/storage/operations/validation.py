"""Request parameter checks shared by the storage operations.

All checks run before any remote call and raise
:class:`~object_gateway.infra.storage.exceptions.GatewayError`.
"""

from __future__ import annotations

import re

from object_gateway.infra.storage.exceptions import (
    invalid_key_error,
    invalid_param_error,
    invalid_range_error,
    missing_param_error,
)

MAX_PAGE_SIZE = 1000
MAX_KEY_BYTES = 1024

_RANGE_PATTERN = re.compile(r"^bytes=(\d*-\d*)(,\s*\d*-\d*)*$")


def validate_bucket(bucket: str | None) -> str:
    """Reject a missing or blank bucket name."""
    if bucket is None or not bucket.strip():
        raise missing_param_error("bucket")
    return bucket


def validate_key(key: str | None) -> str:
    """Reject an empty key or one longer than the store allows."""
    if not key:
        raise invalid_key_error(key or "", "key must not be empty")
    if len(key.encode("utf-8")) > MAX_KEY_BYTES:
        raise invalid_key_error(key, f"key exceeds {MAX_KEY_BYTES} bytes")
    return key


def validate_page_size(value: int, parameter: str = "maxKeys") -> int:
    """Check a page size lies within the provider limit."""
    if not 1 <= value <= MAX_PAGE_SIZE:
        raise invalid_param_error(parameter, f"integer between 1 and {MAX_PAGE_SIZE}", value)
    return value


def validate_range(value: str) -> str:
    """Check a Range value is a ``bytes=`` range set.

    Only the syntax is checked; whether the range is satisfiable is decided
    by the store.
    """
    match = _RANGE_PATTERN.match(value.strip())
    if match is None or match.group(1) == "-":
        raise invalid_range_error(value)
    return value.strip()
