"""Tests for releasing the remote body when a download response ends early."""

from __future__ import annotations

import asyncio

import pytest
from starlette.requests import ClientDisconnect

from object_gateway.features.storage.responses import ObjectDownloadResponse
from object_gateway.infra.storage.operations import open_download

SCOPE = {
    "type": "http",
    "asgi": {"version": "3.0", "spec_version": "2.4"},
    "http_version": "1.1",
    "method": "GET",
    "path": "/buckets/photos/objects/big.bin",
    "headers": [],
}


async def _never_disconnects():
    await asyncio.Event().wait()


@pytest.fixture
async def handle(memory_store):
    memory_store.put("photos", "big.bin", b"x" * 1024)
    return await open_download(memory_store, "photos", "big.bin")


async def test_cancelled_before_first_chunk(handle, memory_store):
    async def send(message):
        if message["type"] == "http.response.start":
            raise asyncio.CancelledError

    response = ObjectDownloadResponse(handle, chunk_size=256)

    with pytest.raises(asyncio.CancelledError):
        await response(SCOPE, _never_disconnects, send)

    body = memory_store.opened[0].body
    assert handle.closed is True
    assert body.closed is True
    assert body.chunks_read == 0


async def test_disconnect_mid_body(handle, memory_store):
    sent: list[dict] = []

    async def send(message):
        if message["type"] == "http.response.body" and sent:
            raise OSError("connection reset")
        sent.append(message)

    response = ObjectDownloadResponse(handle, chunk_size=256)

    with pytest.raises((ClientDisconnect, OSError)):
        await response(SCOPE, _never_disconnects, send)

    assert memory_store.opened[0].body.closed is True
    assert handle.bytes_sent == 256


async def test_full_response_closes_once(handle, memory_store):
    sent: list[dict] = []

    async def send(message):
        sent.append(message)

    response = ObjectDownloadResponse(handle, chunk_size=512)
    await response(SCOPE, _never_disconnects, send)

    assert sent[0]["status"] == 200
    assert b"".join(m.get("body", b"") for m in sent[1:]) == b"x" * 1024
    assert handle.closed is True
    assert handle.bytes_sent == 1024
