from __future__ import annotations

import logging
import sqlite3
from datetime import date as _date_type, datetime, timedelta, timezone

from pandadiary.app.errors import ConflictError, NotFoundError
from pandadiary.app.services.validators import (
    parse_date_range,
    parse_days,
    parse_iso_date,
    require_content,
    require_device_id,
)

from .base import BaseRepository

logger = logging.getLogger(__name__)

_COLUMNS = "id, date, content, device_id, created_at, updated_at"
_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"


def _row_to_entry(row) -> dict:
    return {
        "id": row["id"],
        "date": row["date"],
        "content": row["content"],
        "device_id": row["device_id"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


class EntriesRepository(BaseRepository):
    """Diary entries keyed by ``(date, device_id)``.

    Every public method validates its arguments before touching the pool, so
    a malformed date never reaches SQLite. Writes are single statements: the
    uniqueness constraint decides conflicts and upserts are one conditional
    insert, which keeps concurrent writers from losing updates.
    """

    async def list_entries(self, device_id: str) -> list[dict]:
        device_id = require_device_id(device_id)
        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM diary_entries
            WHERE device_id = ?
            ORDER BY date DESC
            """,
            (device_id,),
        )
        return [_row_to_entry(row) for row in rows]

    async def get_entry(self, date: str, device_id: str) -> dict:
        date = parse_iso_date(date)
        device_id = require_device_id(device_id)
        row = await self._fetch_one(
            f"SELECT {_COLUMNS} FROM diary_entries WHERE date = ? AND device_id = ?",
            (date, device_id),
        )
        if row is None:
            raise NotFoundError(f"No entry found for date: {date}")
        return _row_to_entry(row)

    async def create_entry(self, date: str, content: str, device_id: str) -> dict:
        date = parse_iso_date(date)
        content = require_content(content)
        device_id = require_device_id(device_id)
        try:
            row = await self._write_returning(
                f"""
                INSERT INTO diary_entries (date, content, device_id)
                VALUES (?, ?, ?)
                RETURNING {_COLUMNS}
                """,
                (date, content, device_id),
            )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                f"An entry for {date} already exists. Use PUT to update."
            ) from exc
        logger.debug("Created entry %s for device %s", date, device_id)
        return _row_to_entry(row)

    async def replace_entry(self, date: str, content: str, device_id: str) -> dict:
        date = parse_iso_date(date)
        content = require_content(content)
        device_id = require_device_id(device_id)
        row = await self._write_returning(
            f"""
            UPDATE diary_entries
            SET content = ?, updated_at = {_NOW}
            WHERE date = ? AND device_id = ?
            RETURNING {_COLUMNS}
            """,
            (content, date, device_id),
        )
        if row is None:
            raise NotFoundError(
                f"No entry found for date: {date}. Use POST to create."
            )
        return _row_to_entry(row)

    async def upsert_entry(self, date: str, content: str, device_id: str) -> dict:
        date = parse_iso_date(date)
        content = require_content(content)
        device_id = require_device_id(device_id)
        row = await self._write_returning(
            f"""
            INSERT INTO diary_entries (date, content, device_id)
            VALUES (?, ?, ?)
            ON CONFLICT(date, device_id) DO UPDATE SET
                content    = excluded.content,
                updated_at = {_NOW}
            RETURNING {_COLUMNS}
            """,
            (date, content, device_id),
        )
        return _row_to_entry(row)

    async def delete_entry(self, date: str, device_id: str) -> dict:
        date = parse_iso_date(date)
        device_id = require_device_id(device_id)
        row = await self._write_returning(
            f"""
            DELETE FROM diary_entries
            WHERE date = ? AND device_id = ?
            RETURNING {_COLUMNS}
            """,
            (date, device_id),
        )
        if row is None:
            raise NotFoundError(f"No entry found for date: {date}")
        logger.debug("Deleted entry %s for device %s", date, device_id)
        return _row_to_entry(row)

    async def entries_in_range(
        self, start_date: str, end_date: str, device_id: str
    ) -> list[dict]:
        start_date, end_date = parse_date_range(start_date, end_date)
        device_id = require_device_id(device_id)
        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM diary_entries
            WHERE date BETWEEN ? AND ? AND device_id = ?
            ORDER BY date DESC
            """,
            (start_date, end_date, device_id),
        )
        return [_row_to_entry(row) for row in rows]

    async def recent_entries(
        self, days: int | str, device_id: str, *, today: _date_type | None = None
    ) -> list[dict]:
        """Entries dated on or after ``today - days``, newest first."""

        days = parse_days(days)
        device_id = require_device_id(device_id)
        today = today or datetime.now(timezone.utc).date()
        try:
            cutoff = (today - timedelta(days=days)).isoformat()
        except OverflowError:
            cutoff = _date_type.min.isoformat()
        rows = await self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM diary_entries
            WHERE date >= ? AND device_id = ?
            ORDER BY date DESC
            """,
            (cutoff, device_id),
        )
        return [_row_to_entry(row) for row in rows]
