from __future__ import annotations

import httpx
import orjson
import pytest
import pytest_asyncio

from pandadiary.app.errors import ConflictError, TransientError
from pandadiary.client.identity import DeviceIdentityProvider
from pandadiary.client.local_cache import LocalCache
from pandadiary.client.store_client import (
    EntryStoreClient,
    Outcome,
    StoreResult,
    classify_status,
)


@pytest_asyncio.fixture
async def identity(tmp_path):
    async with LocalCache(tmp_path / "cache.sqlite3") as cache:
        yield DeviceIdentityProvider(cache)


def _client(identity, handler) -> EntryStoreClient:
    return EntryStoreClient(
        identity,
        base_url="http://store.test/api",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize(
    "status, outcome",
    [
        (200, Outcome.OK),
        (201, Outcome.OK),
        (400, Outcome.INVALID),
        (404, Outcome.NOT_FOUND),
        (409, Outcome.CONFLICT),
        (503, Outcome.TRANSIENT),
        (504, Outcome.TRANSIENT),
        (500, Outcome.FATAL),
        (401, Outcome.FATAL),
    ],
)
def test_classify_status(status, outcome):
    assert classify_status(status) is outcome


def test_result_maps_back_to_error_taxonomy():
    assert StoreResult(Outcome.OK).raise_for_outcome().ok
    with pytest.raises(ConflictError):
        StoreResult(Outcome.CONFLICT, status=409).raise_for_outcome()
    assert isinstance(StoreResult(Outcome.TRANSIENT).error(), TransientError)


@pytest.mark.asyncio
async def test_upsert_sends_device_header_and_body(identity):
    device_id = await identity.current()
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        entry = {"date": "2024-01-01", "content": "Hello"}
        return httpx.Response(200, json={"success": True, "data": entry})

    client = _client(identity, handler)
    result = await client.upsert_entry("2024-01-01", "Hello")
    await client.aclose()

    assert result.outcome is Outcome.OK
    assert result.entry["content"] == "Hello"
    request = seen[0]
    assert request.method == "PATCH"
    assert request.url.path == "/api/entries/2024-01-01"
    assert request.headers["X-Device-ID"] == device_id
    assert orjson.loads(request.content) == {"content": "Hello"}


@pytest.mark.asyncio
async def test_invalid_date_sends_nothing(identity):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request should not be sent")

    client = _client(identity, handler)
    results = [
        await client.get_entry("2024-13-40"),
        await client.upsert_entry("2024-13-40", "x"),
        await client.entries_in_range("2024-02-01", "2024-01-01"),
        await client.recent_entries(0),
    ]
    await client.aclose()

    assert all(result.outcome is Outcome.INVALID for result in results)
    assert client.requests_sent == 0


@pytest.mark.asyncio
async def test_not_found_and_conflict_carry_messages(identity):
    await identity.current()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(
                409, json={"success": False, "error": "Entry already exists", "message": "dup"}
            )
        return httpx.Response(
            404, json={"success": False, "error": "Entry not found", "message": "none"}
        )

    client = _client(identity, handler)
    missing = await client.get_entry("2024-01-01")
    duplicate = await client.create_entry("2024-01-01", "x")
    await client.aclose()

    assert missing.outcome is Outcome.NOT_FOUND
    assert missing.message == "none"
    assert duplicate.outcome is Outcome.CONFLICT
    assert duplicate.extra["error"] == "Entry already exists"


@pytest.mark.asyncio
async def test_transport_failure_is_transient(identity, failing_transport):
    client = EntryStoreClient(
        identity, base_url="http://store.test/api", transport=failing_transport
    )

    result = await client.list_entries()
    await client.aclose()

    assert result.outcome is Outcome.TRANSIENT
    assert result.status is None
    assert failing_transport.calls == 1


@pytest.mark.asyncio
async def test_issued_identity_is_adopted_when_none_was_sent(identity, device_id):
    headers_seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        headers_seen.append(request.headers.get("X-Device-ID"))
        return httpx.Response(
            200,
            json={"success": True, "data": [], "count": 0},
            headers={"X-Device-ID": device_id},
        )

    client = _client(identity, handler)
    await client.list_entries()
    await client.list_entries()
    await client.aclose()

    assert headers_seen == [None, device_id]
    assert await identity.current() == device_id


@pytest.mark.asyncio
async def test_non_json_body_still_classifies(identity):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, content=b"<html>bad gateway</html>")

    client = _client(identity, handler)
    result = await client.health()
    await client.aclose()

    assert result.outcome is Outcome.TRANSIENT
    assert result.status == 502
    assert result.data is None
