from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from pandadiary.app.services.validators import parse_iso_date
from pandadiary.client.debounce import Debouncer
from pandadiary.client.local_cache import LocalCache
from pandadiary.client.models import DayMood
from pandadiary.client.pulse import (
    CONNECTIVITY_CHANGED,
    REPLAY_FINISHED,
    SAVE_COMPLETED,
    SAVE_DEGRADED,
    SyncPulse,
)
from pandadiary.client.session import DiarySession
from pandadiary.client.store_client import EntryStoreClient, Outcome, StoreResult
from pandadiary.settings import settings

logger = logging.getLogger(__name__)


class SaveStatus(Enum):
    SAVED = "saved"
    SAVED_LOCALLY = "saved_locally"


@dataclass(slots=True, frozen=True)
class SaveReport:
    date: str
    status: SaveStatus
    outcome: Outcome | None = None
    message: str = ""

    @property
    def degraded(self) -> bool:
        return self.status is SaveStatus.SAVED_LOCALLY


@dataclass(slots=True)
class ReplayReport:
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, Outcome] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def complete(self) -> bool:
        return not self.failed

    def as_payload(self) -> dict:
        return {
            "succeeded": list(self.succeeded),
            "failed": {date: outcome.value for date, outcome in self.failed.items()},
            "skipped": list(self.skipped),
        }


_OFFLINE = StoreResult(Outcome.TRANSIENT, message="offline")


class ReconciliationController:
    """Route reads and writes between the entry store and the local cache.

    Online, saves go to the store first; the local cache is written on every
    attempt regardless of the store outcome, and a failed store write is
    reported as a degraded success instead of an error. Going back online
    replays every cached entry through the idempotent upsert.
    """

    def __init__(
        self,
        session: DiarySession,
        cache: LocalCache,
        store: EntryStoreClient,
        *,
        pulse: SyncPulse | None = None,
        autosave_delay: float | None = None,
    ) -> None:
        self.session = session
        self.cache = cache
        self.store = store
        self.pulse = pulse or SyncPulse()
        self._autosave = Debouncer(
            autosave_delay
            if autosave_delay is not None
            else float(settings.CLIENT.autosave_delay)
        )

    @property
    def online(self) -> bool:
        return self.session.online

    async def set_online(self, online: bool) -> ReplayReport | None:
        """Apply a connectivity change; returns the replay report on reconnect."""

        was_online = self.session.online
        self.session.online = online
        if was_online == online:
            return None
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        self.pulse.emit(CONNECTIVITY_CHANGED, {"online": online})
        if not online:
            return None
        return await self.replay()

    async def replay(self) -> ReplayReport:
        """Upsert every cached entry to the store, recording each outcome.

        Partial failures are kept in the report and never rolled back; the
        next reconnect simply replays again.
        """

        report = ReplayReport()
        for date, content in await self.cache.entries():
            if not content.strip():
                report.skipped.append(date)
                continue
            result = await self.store.upsert_entry(date, content)
            if result.ok:
                report.succeeded.append(date)
            else:
                report.failed[date] = result.outcome
        if report.failed:
            logger.warning(
                "Replay finished with %d failures out of %d",
                len(report.failed),
                report.attempted,
            )
        else:
            logger.info("Replayed %d cached entries", len(report.succeeded))
        self.pulse.emit(REPLAY_FINISHED, report.as_payload())
        return report

    async def save(self, date: str, content: str) -> SaveReport:
        date = parse_iso_date(date)
        result = await self.store.upsert_entry(date, content) if self.online else _OFFLINE

        await self.cache.put_entry(date, content)

        if result.ok:
            self.pulse.emit(SAVE_COMPLETED, {"date": date})
            return SaveReport(date, SaveStatus.SAVED, result.outcome)

        logger.warning(
            "Entry %s saved to local cache only (%s)", date, result.outcome.value
        )
        self.pulse.emit(
            SAVE_DEGRADED,
            {"date": date, "outcome": result.outcome.value, "message": result.message},
        )
        return SaveReport(
            date, SaveStatus.SAVED_LOCALLY, result.outcome, result.message
        )

    async def save_current(self, content: str) -> SaveReport:
        return await self.save(self.session.date_key, content)

    def schedule_autosave(self, date: str, content: str) -> None:
        """Save ``content`` once edits for ``date`` have been quiet for a while."""

        date = parse_iso_date(date)

        async def _autosave() -> None:
            await self.save(date, content)

        self._autosave.schedule(date, _autosave)

    def autosave_pending(self, date: str) -> bool:
        return self._autosave.is_pending(date)

    async def flush_autosaves(self) -> None:
        await self._autosave.flush()

    async def load(self, date: str) -> str:
        """Return the content for ``date`` from the store, or the cache.

        A store NotFound means the day is empty. Any other failure, or being
        offline, falls back to the cached copy.
        """

        date = parse_iso_date(date)
        if self.online:
            result = await self.store.get_entry(date)
            if result.ok:
                return str((result.entry or {}).get("content") or "")
            if result.outcome is Outcome.NOT_FOUND:
                return ""
            logger.info(
                "Store read for %s failed (%s); using local cache",
                date,
                result.outcome.value,
            )
        return await self.cache.get_entry(date) or ""

    async def delete(self, date: str) -> StoreResult:
        """Delete the stored entry. The cached copy is left untouched."""

        date = parse_iso_date(date)
        if not self.online:
            return _OFFLINE
        return await self.store.delete_entry(date)

    async def set_mood(self, date: str, mood: str, emoji: str) -> DayMood:
        day_mood = DayMood(mood=mood, emoji=emoji)
        await self.cache.put_mood(date, day_mood)
        return day_mood

    async def set_music(self, date: str, music: str) -> None:
        await self.cache.put_music(date, music)

    async def close(self, *, discard_pending: bool = False) -> None:
        """Stop auto-saving; pending edits are saved unless discarded."""

        if discard_pending:
            await self._autosave.cancel_all()
        else:
            await self._autosave.flush()
