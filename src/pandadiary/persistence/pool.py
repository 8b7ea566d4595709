from __future__ import annotations

import logging
from pathlib import Path
from typing import cast

import aiosqlite
from aiosqlitepool import SQLiteConnectionPool
from aiosqlitepool.protocols import Connection as SQLitePoolConnection

from pandadiary.app.db.base import run_in_transaction
from pandadiary.settings import settings

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path) -> aiosqlite.Connection:
    conn = await aiosqlite.connect(db_path, timeout=float(settings.DATABASE.timeout))
    await conn.execute(f"PRAGMA busy_timeout = {int(settings.DATABASE.busy_timeout)}")
    await conn.execute(f"PRAGMA mmap_size = {int(settings.DATABASE.mmap_size)}")
    await conn.execute("PRAGMA foreign_keys = ON")
    await conn.execute("PRAGMA journal_mode = WAL")
    await conn.execute("PRAGMA synchronous = NORMAL")
    await conn.execute("PRAGMA temp_store = MEMORY")
    conn.row_factory = aiosqlite.Row
    return conn


def open_pool(db_path: Path, *, pool_size: int | None = None) -> SQLiteConnectionPool:
    """Return a connection pool whose connections share the standard pragmas."""

    async def _connection_factory() -> SQLitePoolConnection:
        return cast(SQLitePoolConnection, await create_connection(db_path))

    return SQLiteConnectionPool(
        _connection_factory,
        pool_size=int(pool_size or settings.DATABASE.pool_size),
        acquisition_timeout=int(settings.DATABASE.pool_acquire_timeout),
    )


async def apply_schema(pool: SQLiteConnectionPool, schema_path: Path) -> None:
    schema_sql = schema_path.read_text()
    async with pool.connection() as conn:
        await run_in_transaction(conn, conn.executescript, schema_sql)
