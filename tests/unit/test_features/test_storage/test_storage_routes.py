"""HTTP tests for the object storage endpoints.

The application runs with its real handlers and middleware; only the object
store is replaced by the in-memory fake from ``tests.fakes``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import pytest
from httpx import AsyncClient

from object_gateway.infra.storage.exceptions import GatewayError, normalize_error


class TestBucketEndpoints:
    """Tests for GET /buckets."""

    async def test_list_buckets(self, client: AsyncClient):
        response = await client.get("/buckets")
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["data"]["count"] == 2
        assert [b["name"] for b in body["data"]["buckets"]] == ["photos", "reports"]
        assert body["data"]["buckets"][0]["creationDate"] == "2023-06-01T00:00:00.000Z"
        assert body["meta"]["requestId"] == response.headers["x-request-id"]

    async def test_store_not_ready_is_503(self, client: AsyncClient, memory_store):
        memory_store.ready = False

        response = await client.get("/buckets")
        body = response.json()

        assert response.status_code == 503
        assert body["error"]["code"] == "AUTH_MISSING_CREDENTIALS"
        assert memory_store.calls == []


class TestListObjectsEndpoint:
    """Tests for GET /buckets/{bucket}/objects."""

    async def test_folder_listing(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "photos/a.jpg", b"a")
        memory_store.put("photos", "photos/2024/b.jpg", b"b")

        response = await client.get(
            "/buckets/photos/objects", params={"prefix": "photos/", "delimiter": "/"}
        )
        data = response.json()["data"]

        assert response.status_code == 200
        assert [obj["key"] for obj in data["objects"]] == ["photos/a.jpg"]
        assert data["objects"][0]["name"] == "a.jpg"
        assert data["objects"][0]["extension"] == "jpg"
        assert data["folders"] == ["photos/2024/"]
        assert data["pagination"]["keyCount"] == 1
        assert data["pagination"]["isTruncated"] is False

    async def test_follow_continuation_tokens(self, client: AsyncClient, memory_store):
        for i in range(5):
            memory_store.put("photos", f"f{i}.txt")

        first = (await client.get("/buckets/photos/objects", params={"maxKeys": 3})).json()["data"]
        token = first["pagination"]["nextContinuationToken"]
        second = (
            await client.get(
                "/buckets/photos/objects", params={"maxKeys": 3, "continuationToken": token}
            )
        ).json()["data"]

        keys = [o["key"] for o in first["objects"]] + [o["key"] for o in second["objects"]]
        assert keys == [f"f{i}.txt" for i in range(5)]
        assert first["pagination"]["isTruncated"] is True
        assert second["pagination"]["isTruncated"] is False
        assert second["pagination"]["continuationToken"] == token

    async def test_size_and_date_filters(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "old.bin", b"x" * 10, last_modified=datetime(2020, 1, 1, tzinfo=UTC))
        memory_store.put("photos", "new.bin", b"x" * 10, last_modified=datetime(2024, 1, 1, tzinfo=UTC))
        memory_store.put("photos", "big.bin", b"x" * 1000, last_modified=datetime(2024, 1, 1, tzinfo=UTC))

        response = await client.get(
            "/buckets/photos/objects",
            params={"modifiedAfter": "2023-01-01T00:00:00Z", "maxSize": 100},
        )

        assert [o["key"] for o in response.json()["data"]["objects"]] == ["new.bin"]

    @pytest.mark.parametrize("max_keys", ["0", "1001"])
    async def test_max_keys_out_of_range(self, client: AsyncClient, max_keys):
        response = await client.get("/buckets/photos/objects", params={"maxKeys": max_keys})
        error = response.json()["error"]

        assert response.status_code == 400
        assert error["code"] == "VALIDATION_INVALID_PARAM"
        assert error["details"]["parameter"] == "maxKeys"

    async def test_non_numeric_max_keys(self, client: AsyncClient):
        response = await client.get("/buckets/photos/objects", params={"maxKeys": "lots"})

        assert response.status_code == 400
        assert response.json()["error"]["details"]["parameter"] == "maxKeys"

    async def test_unknown_bucket(self, client: AsyncClient):
        response = await client.get("/buckets/ghost/objects")
        error = response.json()["error"]

        assert response.status_code == 404
        assert error["code"] == "BUCKET_NOT_FOUND"
        assert error["details"] == {"bucketName": "ghost"}

    async def test_store_failure_is_normalized(self, client: AsyncClient, memory_store):
        memory_store.fail("list_objects", GatewayError(normalize_error("RequestTimeout")))

        response = await client.get("/buckets/photos/objects")

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "STORE_TIMEOUT"


class TestTransferEndpoints:
    """Tests for upload, download and HEAD."""

    async def test_upload_then_download(self, client: AsyncClient, memory_store):
        payload = b"hello gateway" * 100

        upload = await client.put(
            "/buckets/photos/objects/docs/hello.txt",
            content=payload,
            headers={"Content-Type": "text/plain"},
        )
        data = upload.json()["data"]

        assert upload.status_code == 201
        assert data["key"] == "docs/hello.txt"
        assert data["size"] == len(payload)
        assert data["contentType"] == "text/plain"
        assert data["etag"]

        download = await client.get("/buckets/photos/objects/docs/hello.txt")

        assert download.status_code == 200
        assert download.content == payload
        assert download.headers["content-type"].startswith("text/plain")
        assert download.headers["content-disposition"] == 'attachment; filename="hello.txt"'
        assert download.headers["etag"] == f'"{data["etag"]}"'
        assert download.headers["accept-ranges"] == "bytes"

    async def test_head_after_upload_is_not_older(self, client: AsyncClient):
        upload = await client.put("/buckets/photos/objects/notes/today.txt", content=b"note")
        head = await client.head("/buckets/photos/objects/notes/today.txt")

        uploaded_at = datetime.fromisoformat(upload.json()["data"]["lastModified"].replace("Z", "+00:00"))
        head_modified = parsedate_to_datetime(head.headers["last-modified"])

        assert head.status_code == 200
        assert head.headers["content-length"] == "4"
        # Last-Modified has whole-second precision
        assert head_modified >= uploaded_at.replace(microsecond=0)

    async def test_chunked_upload(self, client: AsyncClient, memory_store):
        async def body():
            yield b"part-one/"
            yield b"part-two"

        response = await client.put("/buckets/photos/objects/streamed.bin", content=body())

        assert response.status_code == 201
        assert memory_store.buckets["photos"]["streamed.bin"].data == b"part-one/part-two"
        assert response.json()["data"]["contentType"] == "application/octet-stream"

    async def test_range_header_download(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "movie.mp4", b"m" * 5000, content_type="video/mp4")

        response = await client.get(
            "/buckets/photos/objects/movie.mp4", headers={"Range": "bytes=0-1023"}
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 0-1023/5000"
        assert len(response.content) == 1024

    async def test_range_query_wins_over_header(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "data.bin", bytes(range(100)))

        response = await client.get(
            "/buckets/photos/objects/data.bin",
            params={"range": "bytes=10-19"},
            headers={"Range": "bytes=0-1"},
        )

        assert response.status_code == 206
        assert response.content == bytes(range(10, 20))

    async def test_malformed_range(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "data.bin", b"123")

        response = await client.get(
            "/buckets/photos/objects/data.bin", headers={"Range": "lines=1-2"}
        )

        assert response.status_code == 416
        assert response.json()["error"]["code"] == "VALIDATION_INVALID_RANGE"
        assert "open_object" not in memory_store.calls

    async def test_download_closes_remote_stream(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "a.bin", b"z" * 300_000)

        await client.get("/buckets/photos/objects/a.bin")

        assert memory_store.opened[0].body.closed is True

    async def test_download_missing_object(self, client: AsyncClient):
        response = await client.get("/buckets/photos/objects/missing/file.txt")
        error = response.json()["error"]

        assert response.status_code == 404
        assert error["code"] == "OBJECT_NOT_FOUND"
        assert error["details"]["objectKey"] == "missing/file.txt"

    async def test_head_object(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "a.txt", b"abcde", content_type="text/plain")

        response = await client.head("/buckets/photos/objects/a.txt")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-length"] == "5"
        assert response.headers["x-amz-storage-class"] == "STANDARD"
        assert response.headers["last-modified"].endswith("GMT")

    async def test_head_missing_object(self, client: AsyncClient):
        response = await client.head("/buckets/photos/objects/nope.txt")

        assert response.status_code == 404


class TestDeleteEndpoints:
    """Tests for single, batch and folder deletes."""

    async def test_delete_object(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "a.txt")

        response = await client.delete("/buckets/photos/objects/a.txt")

        assert response.status_code == 200
        assert response.json()["data"] == {"key": "a.txt", "deleted": True}

    async def test_delete_absent_object_succeeds(self, client: AsyncClient):
        response = await client.delete("/buckets/photos/objects/never.txt")

        assert response.status_code == 200
        assert response.json()["data"]["deleted"] is True

    async def test_batch_delete(self, client: AsyncClient, memory_store):
        for key in ("a", "b"):
            memory_store.put("photos", key)

        response = await client.request(
            "DELETE", "/buckets/photos/objects/batch", json={"keys": ["a", "b"]}
        )
        data = response.json()["data"]

        assert response.status_code == 200
        assert data == {"deletedCount": 2, "deleted": ["a", "b"]}

    async def test_batch_partial_failure_is_success(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "a")
        memory_store.delete_failures["b"] = ("AccessDenied", "Access Denied")

        response = await client.request(
            "DELETE", "/buckets/photos/objects/batch", json={"keys": ["a", "b"]}
        )
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["deletedCount"] == 1
        assert data["errors"] == [{"key": "b", "code": "AccessDenied", "message": "Access Denied"}]

    @pytest.mark.parametrize("payload", [{"keys": []}, {"keys": "a"}, {}, {"keys": ["k"] * 1001}])
    async def test_batch_delete_rejects_bad_keys(self, client: AsyncClient, memory_store, payload):
        response = await client.request("DELETE", "/buckets/photos/objects/batch", json=payload)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_INVALID_PARAM"
        assert memory_store.calls == []

    async def test_folder_delete(self, client: AsyncClient, memory_store):
        for i in range(1500):
            memory_store.put("photos", f"tmp/{i:04d}")

        response = await client.delete("/buckets/photos/folders", params={"prefix": "tmp/"})

        assert response.status_code == 200
        assert response.json()["data"] == {"prefix": "tmp/", "totalDeleted": 1500, "batchCount": 2}

    async def test_folder_delete_requires_prefix(self, client: AsyncClient):
        response = await client.delete("/buckets/photos/folders")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_MISSING_QUERY"


class TestSearchEndpoint:
    """Tests for GET /buckets/{bucket}/search."""

    async def test_search(self, client: AsyncClient, memory_store):
        memory_store.put("photos", "2024/beach.jpg")
        memory_store.put("photos", "2023/mountain.jpg")

        response = await client.get("/buckets/photos/search", params={"q": "BEACH"})
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "ok"
        assert isinstance(body["data"], list)
        assert [o["key"] for o in body["data"]] == ["2024/beach.jpg"]
        assert body["data"][0]["matchType"] == "filename"
        assert body["searchMeta"]["query"] == "BEACH"
        assert body["searchMeta"]["totalMatches"] == 1
        assert body["pagination"]["maxKeys"] == 100
        assert body["pagination"]["keyCount"] == 1
        assert body["meta"]["requestId"] == response.headers["x-request-id"]

    async def test_search_requires_query(self, client: AsyncClient, memory_store):
        response = await client.get("/buckets/photos/search")
        error = response.json()["error"]

        assert response.status_code == 400
        assert error["code"] == "VALIDATION_MISSING_QUERY"
        assert error["message"] == "Search query parameter 'q' is required"
        assert memory_store.calls == []


class TestPresignedUrlEndpoint:
    """Tests for GET .../presigned-url."""

    async def test_default_expiry_from_settings(self, client: AsyncClient, memory_store):
        response = await client.get("/buckets/photos/objects/reports/q1.pdf/presigned-url")
        data = response.json()["data"]

        assert response.status_code == 200
        assert data["key"] == "reports/q1.pdf"
        assert data["expiresIn"] == 3600
        assert data["url"].startswith("https://store.test/photos/reports/q1.pdf")

    async def test_explicit_expiry(self, client: AsyncClient, memory_store):
        response = await client.get(
            "/buckets/photos/objects/a.txt/presigned-url", params={"expiresIn": 60}
        )

        assert response.json()["data"]["expiresIn"] == 60
        assert memory_store.presigned == [("photos", "a.txt", 60)]

    async def test_expiry_above_limit(self, client: AsyncClient):
        response = await client.get(
            "/buckets/photos/objects/a.txt/presigned-url", params={"expiresIn": 604801}
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["parameter"] == "expiresIn"
