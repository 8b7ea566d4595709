from __future__ import annotations

import pytest

from pandadiary.client import DEFAULT_MOOD, DiaryClient
from pandadiary.client.history import TRUNCATION_MARKER, truncate_preview


def test_truncate_preview():
    assert truncate_preview("short", 10) == "short"
    assert truncate_preview("x" * 10, 10) == "x" * 10
    assert truncate_preview("abcdef", 3) == "abc" + TRUNCATION_MARKER


@pytest.mark.asyncio
async def test_history_from_store_joins_cached_metadata(make_client):
    async with make_client() as client:
        await client.sync.save("2024-01-01", "first day")
        await client.sync.save("2024-01-03", "third day")
        await client.sync.set_mood("2024-01-03", "Happy", "😄")
        await client.sync.set_music("2024-01-03", "Blue in Green")

        items = await client.history.history()

        assert [item.date for item in items] == ["2024-01-03", "2024-01-01"]
        assert {item.source for item in items} == {"store"}
        newest, oldest = items
        assert (newest.mood, newest.emoji, newest.music) == ("Happy", "😄", "Blue in Green")
        assert (oldest.mood, oldest.emoji) == (DEFAULT_MOOD.mood, DEFAULT_MOOD.emoji)
        assert oldest.music is None


@pytest.mark.asyncio
async def test_history_offline_reads_cache_and_skips_blanks(make_client):
    async with make_client(online=False) as client:
        await client.sync.save("2024-02-01", "  kept  ")
        await client.sync.save("2024-02-02", "   ")

        items = await client.history.history()

        assert [(item.date, item.content, item.source) for item in items] == [
            ("2024-02-01", "kept", "cache")
        ]


@pytest.mark.asyncio
async def test_history_falls_back_to_cache_when_store_unreachable(
    tmp_path, failing_transport
):
    async with DiaryClient(
        cache_path=tmp_path / "cache.sqlite3",
        base_url="http://unreachable.test/api",
        transport=failing_transport,
    ) as client:
        await client.cache.put_entry("2024-03-01", "local only")

        items = await client.history.history()

        assert [item.source for item in items] == ["cache"]


@pytest.mark.asyncio
async def test_history_previews_are_truncated(make_client):
    async with make_client() as client:
        client.history.preview_length = 5
        await client.sync.save("2024-04-01", "A long reflective entry")

        (item,) = await client.history.history()

        assert item.preview == "A lon" + TRUNCATION_MARKER
        assert item.content == "A long reflective entry"
