from __future__ import annotations

import asyncio
from datetime import date

import pytest

from pandadiary.client import DiaryClient, Outcome, SaveStatus
from pandadiary.client.local_cache import LocalCache
from pandadiary.client.pulse import (
    CONNECTIVITY_CHANGED,
    REPLAY_FINISHED,
    SAVE_COMPLETED,
    SAVE_DEGRADED,
)


@pytest.fixture
def unreachable_client(tmp_path, failing_transport):
    return DiaryClient(
        cache_path=tmp_path / "offline-cache.sqlite3",
        base_url="http://unreachable.test/api",
        transport=failing_transport,
        autosave_delay=0.05,
    )


@pytest.mark.asyncio
async def test_online_save_reaches_store_and_cache(make_client):
    async with make_client() as client:
        report = await client.sync.save("2024-01-01", "Hello")

        assert report.status is SaveStatus.SAVED
        assert not report.degraded
        assert await client.cache.get_entry("2024-01-01") == "Hello"
        stored = await client.store.get_entry("2024-01-01")
        assert stored.entry["content"] == "Hello"
        assert client.pulse.latest(SAVE_COMPLETED).payload["date"] == "2024-01-01"


@pytest.mark.asyncio
async def test_unreachable_store_degrades_to_local_save(unreachable_client, failing_transport):
    async with unreachable_client as client:
        report = await client.sync.save("2024-01-01", "kept locally")

        assert report.status is SaveStatus.SAVED_LOCALLY
        assert report.outcome is Outcome.TRANSIENT
        assert failing_transport.calls == 1
        assert await client.cache.get_entry("2024-01-01") == "kept locally"
        event = client.pulse.latest(SAVE_DEGRADED)
        assert event.payload["outcome"] == "transient"


@pytest.mark.asyncio
async def test_offline_save_then_reconnect_replays(make_client):
    async with make_client(online=False) as client:
        report = await client.sync.save("2024-01-01", "draft")
        assert report.degraded
        assert client.store.requests_sent == 0

        replay = await client.sync.set_online(True)

        assert replay.succeeded == ["2024-01-01"]
        assert replay.complete
        stored = await client.store.get_entry("2024-01-01")
        assert stored.entry["content"] == "draft"
        assert client.pulse.latest(CONNECTIVITY_CHANGED).payload["online"] is True
        assert client.pulse.latest(REPLAY_FINISHED).payload["succeeded"] == ["2024-01-01"]


@pytest.mark.asyncio
async def test_replay_skips_blank_entries_and_is_repeatable(make_client):
    async with make_client(online=False) as client:
        await client.sync.save("2024-01-01", "one")
        await client.sync.save("2024-01-02", "   ")

        first = await client.sync.set_online(True)
        second = await client.sync.replay()

        assert first.skipped == ["2024-01-02"]
        assert second.succeeded == ["2024-01-01"]
        listed = await client.store.list_entries()
        assert [entry["date"] for entry in listed.entries] == ["2024-01-01"]


@pytest.mark.asyncio
async def test_connectivity_change_to_same_state_is_noop(make_client):
    async with make_client() as client:
        assert await client.sync.set_online(True) is None
        assert await client.sync.set_online(False) is None
        assert client.pulse.latest(CONNECTIVITY_CHANGED).payload["online"] is False


@pytest.mark.asyncio
async def test_load_prefers_store_then_falls_back(make_client):
    async with make_client() as client:
        await client.sync.save("2024-01-01", "from store")
        await client.cache.put_entry("2024-01-02", "only cached")

        assert await client.sync.load("2024-01-01") == "from store"
        assert await client.sync.load("2024-01-02") == ""

        await client.sync.set_online(False)
        assert await client.sync.load("2024-01-02") == "only cached"


@pytest.mark.asyncio
async def test_load_uses_cache_when_store_unreachable(unreachable_client):
    async with unreachable_client as client:
        await client.cache.put_entry("2024-03-03", "cached text")

        assert await client.sync.load("2024-03-03") == "cached text"
        assert await client.sync.load("2024-03-04") == ""


@pytest.mark.asyncio
async def test_delete_removes_store_copy_only(make_client):
    async with make_client() as client:
        await client.sync.save("2024-01-01", "Hello")

        result = await client.sync.delete("2024-01-01")

        assert result.ok
        assert (await client.store.get_entry("2024-01-01")).outcome is Outcome.NOT_FOUND
        assert await client.cache.get_entry("2024-01-01") == "Hello"

        again = await client.sync.delete("2024-01-01")
        assert again.outcome is Outcome.NOT_FOUND


@pytest.mark.asyncio
async def test_autosave_coalesces_edits(make_client):
    async with make_client() as client:
        for text in ("H", "He", "Hello"):
            client.sync.schedule_autosave("2024-05-05", text)

        assert client.sync.autosave_pending("2024-05-05")
        await asyncio.sleep(0.2)
        assert not client.sync.autosave_pending("2024-05-05")
        await client.sync.flush_autosaves()

        assert await client.cache.get_entry("2024-05-05") == "Hello"
        assert (await client.store.get_entry("2024-05-05")).entry["content"] == "Hello"


@pytest.mark.asyncio
async def test_close_flushes_pending_autosave(make_client, tmp_path):
    client = make_client("flush", autosave_delay=10)
    await client.start()
    client.sync.schedule_autosave("2024-06-06", "last words")

    await client.close()

    async with LocalCache(tmp_path / "flush-cache.sqlite3") as cache:
        assert await cache.get_entry("2024-06-06") == "last words"


@pytest.mark.asyncio
async def test_two_devices_share_nothing(make_client):
    async with make_client("a") as first, make_client("b") as second:
        await first.sync.save("2024-01-01", "first device")

        assert await second.sync.load("2024-01-01") == ""
        assert first.identity is not second.identity
        assert await first.identity.current() != await second.identity.current()


@pytest.mark.asyncio
async def test_session_navigation_drives_save_current(make_client):
    async with make_client(today=date(2024, 2, 28)) as client:
        assert client.session.navigate(1) == "2024-02-29"

        report = await client.sync.save_current("leap day")

        assert report.date == "2024-02-29"
        assert await client.cache.get_entry("2024-02-29") == "leap day"


@pytest.mark.asyncio
async def test_disabled_store_degrades_to_local_save(app, make_client):
    app.config["STORE_ENABLED"] = False

    async with make_client() as client:
        report = await client.sync.save("2024-07-07", "store is off")

        assert report.status is SaveStatus.SAVED_LOCALLY
        assert report.outcome is Outcome.TRANSIENT
        assert await client.cache.get_entry("2024-07-07") == "store is off"
        assert await client.sync.load("2024-07-07") == "store is off"
