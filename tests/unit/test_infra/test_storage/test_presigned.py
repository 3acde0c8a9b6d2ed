"""Unit tests for presigned download URLs."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from object_gateway.infra.storage.exceptions import ErrorCode, GatewayError
from object_gateway.infra.storage.operations import presign_download
from object_gateway.infra.storage.operations.presigned import (
    MAX_EXPIRY_SECONDS,
    validate_expiry,
)


class TestPresignDownload:
    """Tests for URL issuance."""

    async def test_uses_default_expiry(self, memory_store):
        presigned = await presign_download(memory_store, "photos", "a b.jpg", default_expiry=900)

        assert memory_store.presigned == [("photos", "a b.jpg", 900)]
        assert presigned.expires_in_seconds == 900
        assert presigned.url.startswith("https://store.test/photos/a%20b.jpg")
        assert presigned.expires_at > datetime.now(UTC)

    async def test_explicit_expiry_wins(self, memory_store):
        presigned = await presign_download(memory_store, "photos", "a.jpg", 60)
        data = presigned.to_dict()

        assert data["expiresIn"] == 60
        assert data["key"] == "a.jpg"
        assert data["expiresAt"].endswith("Z")

    async def test_missing_object_still_gets_url(self, memory_store):
        presigned = await presign_download(memory_store, "photos", "not-there.txt")

        assert presigned.url
        assert "head_object" not in memory_store.calls

    @pytest.mark.parametrize("expires_in", [0, -5, MAX_EXPIRY_SECONDS + 1])
    async def test_out_of_range_expiry(self, memory_store, expires_in):
        with pytest.raises(GatewayError) as exc_info:
            await presign_download(memory_store, "photos", "a.jpg", expires_in)

        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_PARAM
        assert exc_info.value.extra["parameter"] == "expiresIn"
        assert memory_store.calls == []


def test_validate_expiry_bounds():
    assert validate_expiry(1) == 1
    assert validate_expiry(MAX_EXPIRY_SECONDS) == MAX_EXPIRY_SECONDS

