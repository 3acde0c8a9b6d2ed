"""Unit tests for streaming upload and download."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from object_gateway.infra.storage.backends.protocol import ObjectHead
from object_gateway.infra.storage.exceptions import ErrorCode, GatewayError
from object_gateway.infra.storage.operations import (
    RequestBodyReader,
    head_headers,
    open_download,
    parse_content_length,
    resolve_range,
    upload_stream,
)
from object_gateway.infra.storage.operations.transfer import (
    content_disposition,
    http_date,
    quote_etag,
)


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


class TestRequestBodyReader:
    """Tests for the file-like reader over ASGI body chunks."""

    async def test_read_splits_and_joins_chunks(self):
        reader = RequestBodyReader(_chunks(b"hello ", b"", b"world"))

        assert await reader.read(3) == b"hel"
        assert await reader.read(10) == b"lo "
        assert await reader.read(10) == b"world"
        assert await reader.read(10) == b""
        assert reader.bytes_read == 11

    async def test_read_all(self):
        reader = RequestBodyReader(_chunks(b"ab", b"cd"))

        assert await reader.read(1) == b"a"
        assert await reader.read() == b"bcd"
        assert await reader.read() == b""

    async def test_iterates_in_chunk_size_pieces(self):
        reader = RequestBodyReader(_chunks(b"abcdefg"), chunk_size=3)

        assert [chunk async for chunk in reader] == [b"abc", b"def", b"g"]


class TestUploadStream:
    """Tests for streaming uploads."""

    async def test_upload_confirms_with_head(self, memory_store):
        body = RequestBodyReader(_chunks(b"x" * 100, b"y" * 28))

        confirmation = await upload_stream(
            memory_store,
            "photos",
            "docs/readme.txt",
            body,
            content_type="text/plain",
            content_length=128,
        )

        assert memory_store.calls == ["put_object", "head_object"]
        assert confirmation.size == 128
        assert confirmation.content_type == "text/plain"
        assert confirmation.etag == memory_store.buckets["photos"]["docs/readme.txt"].etag
        assert confirmation.to_dict()["lastModified"].endswith("Z")

    async def test_missing_content_type_defaults_to_octet_stream(self, memory_store):
        confirmation = await upload_stream(
            memory_store, "photos", "blob", RequestBodyReader(_chunks(b"1"))
        )

        assert confirmation.content_type == "application/octet-stream"

    async def test_empty_key_is_rejected_before_upload(self, memory_store):
        with pytest.raises(GatewayError) as exc_info:
            await upload_stream(memory_store, "photos", "", RequestBodyReader(_chunks(b"1")))

        assert exc_info.value.code == ErrorCode.VALIDATION_INVALID_KEY
        assert memory_store.calls == []


class TestOpenDownload:
    """Tests for streaming downloads."""

    async def test_range_returns_partial_content(self, memory_store):
        memory_store.put("photos", "movie.mp4", bytes(range(256)) * 16, content_type="video/mp4")

        handle = await open_download(memory_store, "photos", "movie.mp4", byte_range="bytes=0-1023")
        body = b"".join([chunk async for chunk in handle.iter_body(256)])
        headers = handle.headers()

        assert handle.status_code == 206
        assert len(body) == 1024
        assert headers["Content-Range"] == "bytes 0-1023/4096"
        assert headers["Content-Length"] == "1024"
        assert headers["Accept-Ranges"] == "bytes"

    async def test_range_on_small_object_returns_what_exists(self, memory_store):
        memory_store.put("photos", "tiny.txt", b"abc")

        handle = await open_download(memory_store, "photos", "tiny.txt", byte_range="bytes=0-1023")
        body = b"".join([chunk async for chunk in handle.iter_body()])

        assert handle.status_code == 206
        assert body == b"abc"

    async def test_full_download_headers(self, memory_store):
        memory_store.put(
            "photos",
            "albums/summer trip.jpg",
            b"jpeg",
            content_type="image/jpeg",
            last_modified=datetime(2024, 6, 1, 12, 0, tzinfo=UTC),
        )

        handle = await open_download(memory_store, "photos", "albums/summer trip.jpg")
        headers = handle.headers()

        assert handle.status_code == 200
        assert "Content-Range" not in headers
        assert headers["Content-Type"] == "image/jpeg"
        assert headers["Content-Disposition"] == 'attachment; filename="summer%20trip.jpg"'
        assert headers["ETag"].startswith('"') and headers["ETag"].endswith('"')
        assert headers["Last-Modified"] == "Sat, 01 Jun 2024 12:00:00 GMT"

    async def test_stream_closed_after_full_read(self, memory_store):
        memory_store.put("photos", "a.bin", b"z" * 10)

        handle = await open_download(memory_store, "photos", "a.bin")
        async for _ in handle.iter_body(4):
            pass

        assert handle.stream.body.closed is True

    async def test_stream_closed_when_consumer_stops_early(self, memory_store):
        memory_store.put("photos", "a.bin", b"z" * 100)

        handle = await open_download(memory_store, "photos", "a.bin")
        iterator = handle.iter_body(10)
        assert await anext(iterator) == b"z" * 10
        await iterator.aclose()

        assert handle.stream.body.closed is True
        assert handle.stream.body.chunks_read == 1

    async def test_close_without_iterating(self, memory_store):
        memory_store.put("photos", "a.bin", b"z" * 100)

        handle = await open_download(memory_store, "photos", "a.bin")
        handle.close()
        handle.close()

        assert handle.closed is True
        assert handle.stream.body.closed is True
        assert handle.stream.body.chunks_read == 0

    async def test_missing_object_is_normalized(self, memory_store):
        with pytest.raises(GatewayError) as exc_info:
            await open_download(memory_store, "photos", "nope.txt")

        assert exc_info.value.code == ErrorCode.OBJECT_NOT_FOUND

    async def test_unsatisfiable_range_is_416(self, memory_store):
        memory_store.put("photos", "tiny.txt", b"abc")

        with pytest.raises(GatewayError) as exc_info:
            await open_download(memory_store, "photos", "tiny.txt", byte_range="bytes=10-20")

        assert exc_info.value.status_code == 416


class TestTransferHelpers:
    """Tests for header helpers."""

    def test_query_range_wins_over_header(self):
        assert resolve_range("bytes=0-9", "bytes=10-19") == "bytes=0-9"
        assert resolve_range(None, "bytes=10-19") == "bytes=10-19"
        assert resolve_range(None, None) is None

    def test_malformed_range_is_rejected(self):
        with pytest.raises(GatewayError):
            resolve_range("0-9", None)

    @pytest.mark.parametrize(
        ("value", "expected"), [(None, None), ("", None), ("12", 12), (" 7 ", 7), ("abc", None)]
    )
    def test_parse_content_length(self, value, expected):
        assert parse_content_length(value) == expected

    def test_content_disposition_escapes_filename(self):
        assert content_disposition("a/b/report (final).pdf") == (
            'attachment; filename="report%20(final).pdf"'
        )
        assert content_disposition("folder/") == 'attachment; filename="download"'
        assert content_disposition("naïve.txt") == 'attachment; filename="na%C3%AFve.txt"'

    def test_quote_etag(self):
        assert quote_etag("abc") == '"abc"'
        assert quote_etag("") == ""

    def test_http_date_treats_naive_as_utc(self):
        assert http_date(datetime(2024, 1, 2, 3, 4, 5)) == "Tue, 02 Jan 2024 03:04:05 GMT"
        assert http_date(None) is None

    def test_head_headers(self):
        head = ObjectHead(
            key="a.txt",
            size=5,
            content_type="text/plain",
            last_modified=None,
            etag="e1",
            storage_class="GLACIER",
        )

        assert head_headers(head) == {
            "Content-Type": "text/plain",
            "Content-Length": "5",
            "Accept-Ranges": "bytes",
            "X-Amz-Storage-Class": "GLACIER",
            "ETag": '"e1"',
        }
