"""Client-side wiring of the cache, identity, store client and controller."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import httpx

from pandadiary.client.history import HistoryAggregator
from pandadiary.client.identity import DeviceIdentityProvider
from pandadiary.client.local_cache import LocalCache
from pandadiary.client.pulse import SyncPulse
from pandadiary.client.session import DiarySession
from pandadiary.client.store_client import EntryStoreClient
from pandadiary.client.sync import ReconciliationController

logger = logging.getLogger(__name__)


class DiaryClient:
    """Everything one device needs, built around a single :class:`DiarySession`."""

    def __init__(
        self,
        *,
        cache_path: str | Path | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        online: bool = True,
        today: date | None = None,
        autosave_delay: float | None = None,
    ) -> None:
        self.pulse = SyncPulse()
        self.cache = LocalCache(cache_path)
        self.identity = DeviceIdentityProvider(self.cache, self.pulse)
        self.session = DiarySession(identity=self.identity, online=online)
        if today is not None:
            self.session.current_date = today
        self.store = EntryStoreClient(
            self.identity, base_url=base_url, transport=transport
        )
        self.sync = ReconciliationController(
            self.session,
            self.cache,
            self.store,
            pulse=self.pulse,
            autosave_delay=autosave_delay,
        )
        self.history = HistoryAggregator(self.session, self.cache, self.store)

    async def __aenter__(self) -> "DiaryClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> str:
        """Open the cache and make sure a device identity exists."""

        await self.cache.init()
        device_id = await self.identity.current()
        logger.debug("Diary client started for device %s", device_id)
        return device_id

    async def close(self) -> None:
        try:
            await self.sync.close()
        finally:
            await self.store.aclose()
            await self.cache.close()
