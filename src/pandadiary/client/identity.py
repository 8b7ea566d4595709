from __future__ import annotations

import logging

from pandadiary.app.services.validators import is_device_id, new_device_id
from pandadiary.client.local_cache import LocalCache
from pandadiary.client.pulse import IDENTITY_ISSUED, SyncPulse

logger = logging.getLogger(__name__)


class DeviceIdentityProvider:
    """Owns the per-device partition key persisted in the local cache."""

    def __init__(self, cache: LocalCache, pulse: SyncPulse | None = None) -> None:
        self._cache = cache
        self._pulse = pulse
        self._device_id: str | None = None

    async def peek(self) -> str | None:
        """Return the persisted identity if it is well formed, without minting."""

        if self._device_id is None:
            stored = await self._cache.get_identity()
            if is_device_id(stored):
                self._device_id = stored
        return self._device_id

    async def current(self) -> str:
        """Return the device identity, minting and persisting one if needed.

        A stored value that is not a UUID v4 is treated as absent.
        """

        device_id = await self.peek()
        if device_id is not None:
            return device_id

        stored = await self._cache.get_identity()
        if stored is not None:
            logger.warning("Discarding malformed device id %r", stored)
        device_id = new_device_id()
        await self._cache.put_identity(device_id)
        self._device_id = device_id
        logger.info("Generated device id %s", device_id)
        return device_id

    async def adopt(self, issued: str | None) -> bool:
        """Persist an identity the store issued because none was sent.

        Returns ``True`` when the issued value was adopted.
        """

        if not issued or not is_device_id(issued):
            return False
        if await self.peek() is not None:
            return False
        await self._cache.put_identity(issued)
        self._device_id = issued
        logger.info("Adopted store-issued device id %s", issued)
        if self._pulse is not None:
            self._pulse.emit(IDENTITY_ISSUED, {"device_id": issued})
        return True
