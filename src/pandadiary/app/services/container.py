"""Application service and lifecycle helpers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from pandadiary.persistence.local_db import LocalDB


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppServices:
    """Bundle long-lived application services."""

    db: LocalDB

    @classmethod
    def create(cls, db_path: str | Path | None = None) -> "AppServices":
        return cls(db=LocalDB(db_path))


class AppLifecycle:
    """Manage startup and shutdown of long-lived application services."""

    def __init__(self, services: AppServices) -> None:
        self._services = services
        self._lock = asyncio.Lock()
        self._started = False

    async def __aenter__(self) -> "AppLifecycle":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            logger.debug("Starting application lifecycle: db.init")
            await self._services.db.init()
            self._started = True
            logger.info("Application lifecycle started")

    async def stop(self) -> None:
        async with self._lock:
            if not self._started:
                return
            self._started = False
            try:
                await self._services.db.close()
            except Exception:
                logger.exception("Failed to close database cleanly")
                raise
        logger.info("Application lifecycle stopped")

    @property
    def services(self) -> AppServices:
        return self._services


def get_services() -> AppServices:
    """Return the :class:`AppServices` container bound to the running app."""

    from quart import current_app

    services = current_app.extensions.get("pandadiary")
    if services is None:
        raise RuntimeError("App services container is not initialised")
    return services


def get_db() -> LocalDB:
    """Convenience accessor for the application database."""

    return get_services().db
