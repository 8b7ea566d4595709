import logging
from pathlib import Path

from aiosqlitepool import SQLiteConnectionPool

from pandadiary.settings import settings
from pandadiary.util import resolve_state_path, sql_path

from pandadiary.app.db.entries import EntriesRepository
from pandadiary.persistence.pool import apply_schema, open_pool


SCHEMA_PATH = sql_path("schema.sql")


class LocalDB:
    """Facade around the entry store tables with shared connection pooling."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = resolve_state_path(db_path or settings.DATABASE.path)
        self.pool: SQLiteConnectionPool | None = None
        self._entries: EntriesRepository | None = None

    async def __aenter__(self) -> "LocalDB":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def init(self) -> None:
        if self.pool is not None:
            return

        if not self.db_path.exists():
            logging.getLogger(__name__).info(
                "Creating new database at %s", self.db_path
            )

        pool = open_pool(self.db_path)
        self.pool = pool
        try:
            await apply_schema(pool, SCHEMA_PATH)
            self._entries = EntriesRepository(pool)
        except Exception:
            await pool.close()
            self.pool = None
            self._entries = None
            raise

    async def close(self) -> None:
        if self.pool is not None:
            try:
                await self.pool.close()
            finally:
                self.pool = None
        self._entries = None

    @property
    def is_open(self) -> bool:
        return self.pool is not None

    @property
    def entries(self) -> EntriesRepository:
        """Return the entries repository.

        Raises a :class:`RuntimeError` when accessed before the database has been
        initialised so configuration errors are caught early.
        """

        if self._entries is None:
            raise RuntimeError(
                "Entries repository is not initialised; call init() before accessing it."
            )
        return self._entries
