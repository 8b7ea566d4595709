from __future__ import annotations

import logging

from pandadiary.client.local_cache import LocalCache
from pandadiary.client.models import DEFAULT_MOOD, HistoryItem
from pandadiary.client.session import DiarySession
from pandadiary.client.store_client import EntryStoreClient
from pandadiary.settings import settings

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "…"


def truncate_preview(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


class HistoryAggregator:
    """Compose the newest-first history view from the store or the cache."""

    def __init__(
        self,
        session: DiarySession,
        cache: LocalCache,
        store: EntryStoreClient,
        *,
        preview_length: int | None = None,
    ) -> None:
        self.session = session
        self.cache = cache
        self.store = store
        self.preview_length = preview_length or int(settings.CLIENT.preview_length)

    async def _source_entries(self) -> tuple[str, list[tuple[str, str]]]:
        if self.session.online:
            result = await self.store.list_entries()
            if result.ok:
                pairs = [
                    (str(entry.get("date")), str(entry.get("content") or ""))
                    for entry in result.entries
                ]
                return "store", pairs
            logger.info(
                "History fetch failed (%s); reading local cache",
                result.outcome.value,
            )
        return "cache", await self.cache.entries()

    async def history(self) -> list[HistoryItem]:
        source, pairs = await self._source_entries()
        items: list[HistoryItem] = []
        for date, content in pairs:
            text = content.strip()
            if not text:
                continue
            meta = await self.cache.metadata(date)
            mood = meta.mood or DEFAULT_MOOD
            items.append(
                HistoryItem(
                    date=date,
                    content=text,
                    preview=truncate_preview(text, self.preview_length),
                    mood=mood.mood,
                    emoji=mood.emoji,
                    music=meta.music,
                    source=source,
                )
            )
        items.sort(key=lambda item: item.date, reverse=True)
        return items
