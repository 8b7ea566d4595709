from __future__ import annotations

import logging
from pathlib import Path

import orjson
from aiosqlitepool import SQLiteConnectionPool

from pandadiary.app.db.base import BaseRepository
from pandadiary.app.errors import ValidationError
from pandadiary.app.services.validators import parse_iso_date
from pandadiary.client.models import DayMetadata, DayMood
from pandadiary.persistence.pool import apply_schema, open_pool
from pandadiary.settings import settings
from pandadiary.util import resolve_state_path, sql_path

logger = logging.getLogger(__name__)

SCHEMA_PATH = sql_path("local_cache.sql")

ENTRY_PREFIX = "diary_"
MOOD_PREFIX = "mood_"
MUSIC_PREFIX = "music_"
IDENTITY_KEY = "deviceId"


class _SlotStore(BaseRepository):
    """Flat key/value slots in a single ``local_slots`` table."""

    async def get(self, key: str) -> str | None:
        row = await self._fetch_one(
            "SELECT value FROM local_slots WHERE key = ?", (key,)
        )
        return row["value"] if row else None

    async def put(self, key: str, value: str) -> None:
        async with self.pool.connection() as conn:
            await conn.execute(
                """
                INSERT INTO local_slots (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value      = excluded.value,
                    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                """,
                (key, value),
            )
            await conn.commit()

    async def with_prefix(self, prefix: str) -> list[tuple[str, str]]:
        rows = await self._fetch_all(
            """
            SELECT key, value
            FROM local_slots
            WHERE substr(key, 1, ?) = ?
            ORDER BY key DESC
            """,
            (len(prefix), prefix),
        )
        return [(row["key"][len(prefix) :], row["value"]) for row in rows]


class LocalCache:
    """Client-resident persistent mirror of diary content and day metadata.

    One slot per date for entry content, mood and music, plus a singleton
    slot for the device identity. Nothing here is ever deleted implicitly:
    removing an entry from the store leaves its cached content in place.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = resolve_state_path(path or settings.CLIENT.cache_path)
        self._pool: SQLiteConnectionPool | None = None
        self._slots: _SlotStore | None = None

    async def __aenter__(self) -> "LocalCache":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def init(self) -> None:
        if self._pool is not None:
            return
        pool = open_pool(self.path, pool_size=2)
        try:
            await apply_schema(pool, SCHEMA_PATH)
        except Exception:
            await pool.close()
            raise
        self._pool = pool
        self._slots = _SlotStore(pool)
        logger.debug("Local cache opened at %s", self.path)

    async def close(self) -> None:
        if self._pool is not None:
            try:
                await self._pool.close()
            finally:
                self._pool = None
                self._slots = None

    @property
    def slots(self) -> _SlotStore:
        if self._slots is None:
            raise RuntimeError("Local cache is not initialised; call init() first.")
        return self._slots

    async def get_entry(self, date: str) -> str | None:
        return await self.slots.get(ENTRY_PREFIX + parse_iso_date(date))

    async def put_entry(self, date: str, content: str) -> None:
        await self.slots.put(ENTRY_PREFIX + parse_iso_date(date), content)

    async def entries(self) -> list[tuple[str, str]]:
        """Return every cached ``(date, content)`` pair, newest date first."""

        pairs: list[tuple[str, str]] = []
        for suffix, content in await self.slots.with_prefix(ENTRY_PREFIX):
            try:
                parse_iso_date(suffix)
            except ValidationError:
                logger.debug("Skipping non-dated cache slot %s%s", ENTRY_PREFIX, suffix)
                continue
            pairs.append((suffix, content))
        return pairs

    async def get_mood(self, date: str) -> DayMood | None:
        raw = await self.slots.get(MOOD_PREFIX + parse_iso_date(date))
        if raw is None:
            return None
        try:
            return DayMood.from_payload(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValueError, AttributeError):
            logger.warning("Ignoring malformed mood data for %s", date)
            return None

    async def put_mood(self, date: str, mood: DayMood) -> None:
        payload = orjson.dumps(mood.as_payload()).decode()
        await self.slots.put(MOOD_PREFIX + parse_iso_date(date), payload)

    async def get_music(self, date: str) -> str | None:
        return await self.slots.get(MUSIC_PREFIX + parse_iso_date(date))

    async def put_music(self, date: str, music: str) -> None:
        await self.slots.put(MUSIC_PREFIX + parse_iso_date(date), music)

    async def metadata(self, date: str) -> DayMetadata:
        return DayMetadata(
            mood=await self.get_mood(date), music=await self.get_music(date)
        )

    async def get_identity(self) -> str | None:
        return await self.slots.get(IDENTITY_KEY)

    async def put_identity(self, device_id: str) -> None:
        await self.slots.put(IDENTITY_KEY, device_id)
