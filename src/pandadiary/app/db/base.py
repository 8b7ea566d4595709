from __future__ import annotations

from aiosqlitepool import SQLiteConnectionPool


async def run_in_transaction(conn, func, *args, **kwargs):
    """Execute the given coroutine within a transaction."""
    try:
        result = await func(*args, **kwargs)
        await conn.commit()
        return result
    except Exception:
        if conn.in_transaction:
            await conn.rollback()
        raise


class BaseRepository:
    """Common functionality shared by repository classes."""

    def __init__(self, pool: SQLiteConnectionPool):
        self.pool = pool

    async def _run_in_transaction(self, conn, func, *args, **kwargs):
        return await run_in_transaction(conn, func, *args, **kwargs)

    async def _fetch_one(self, sql: str, params: tuple = ()):
        async with self.pool.connection() as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            await cursor.close()
        return row

    async def _fetch_all(self, sql: str, params: tuple = ()):
        async with self.pool.connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            await cursor.close()
        return rows

    async def _write_returning(self, sql: str, params: tuple = ()):
        """Run a single ``… RETURNING`` write and commit it atomically."""

        async with self.pool.connection() as conn:

            async def _execute_and_fetch():
                cursor = await conn.execute(sql, params)
                row = await cursor.fetchone()
                await cursor.close()
                return row

            return await self._run_in_transaction(conn, _execute_and_fetch)
