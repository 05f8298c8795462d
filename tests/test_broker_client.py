"""
tests/test_broker_client.py — BrokerClient against a mocked API.
"""
import json

import httpx
import pytest

from studyshare.broker_client import BrokerClient
from studyshare.errors import GENERIC_ACCESS_ERROR, AccessError, StudyShareError

API_URL    = "https://api.study-share.example"
SIGNED_URL = "https://s3.example.com/papers/u1/123_exam.pdf?X-Amz-Signature=abc"


def _transport(status: int, payload=None, seen: list = None, raise_exc: Exception = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if raise_exc:
            raise raise_exc
        return httpx.Response(status, json=payload)
    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_request_access_posts_contract_body_with_bearer():
    seen = []
    async with BrokerClient(API_URL, "token-u1", transport=_transport(200, {"signedUrl": SIGNED_URL}, seen)) as broker:
        url = await broker.request_access("papers", "u1/123_exam.pdf", "p1")

    assert url == SIGNED_URL
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/get-signed-url"
    assert request.headers["Authorization"] == "Bearer token-u1"
    assert json.loads(request.content) == {"bucket": "papers", "filePath": "u1/123_exam.pdf", "itemId": "p1"}


@pytest.mark.asyncio
async def test_anonymous_client_sends_no_authorization():
    seen = []
    async with BrokerClient(API_URL, transport=_transport(200, {"signedUrl": SIGNED_URL}, seen)) as broker:
        await broker.request_access("papers", "u1/123_exam.pdf", "p1")

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
@pytest.mark.parametrize("status,message", [
    (403, "This file is not available for public access"),
    (404, "Item not found"),
    (400, "File path mismatch"),
])
async def test_broker_error_message_surfaced_verbatim(status, message):
    async with BrokerClient(API_URL, transport=_transport(status, {"error": message})) as broker:
        with pytest.raises(AccessError) as exc_info:
            await broker.request_access("papers", "u1/123_exam.pdf", "p1")

    assert exc_info.value.message == message
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_unreachable_broker_gives_generic_message():
    transport = _transport(0, raise_exc=httpx.ConnectError("connection refused"))
    async with BrokerClient(API_URL, transport=transport) as broker:
        with pytest.raises(AccessError) as exc_info:
            await broker.request_access("papers", "u1/123_exam.pdf", "p1")

    assert exc_info.value.message == GENERIC_ACCESS_ERROR


@pytest.mark.asyncio
async def test_no_retry_on_failure():
    seen = []
    async with BrokerClient(API_URL, transport=_transport(500, {"error": "Internal server error"}, seen)) as broker:
        with pytest.raises(AccessError):
            await broker.request_access("papers", "u1/123_exam.pdf", "p1")

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_increment_downloads():
    seen = []
    async with BrokerClient(API_URL, transport=_transport(200, {"id": "p1", "downloads": 7}, seen)) as broker:
        assert await broker.increment_downloads("notes", "p1") == 7

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/records/notes/p1/downloads"


@pytest.mark.asyncio
async def test_increment_failure_raises():
    async with BrokerClient(API_URL, transport=_transport(404, {"detail": "Item not found."})) as broker:
        with pytest.raises(StudyShareError) as exc_info:
            await broker.increment_downloads("notes", "p1")

    assert exc_info.value.status_code == 404
