from __future__ import annotations

import re
import uuid
from datetime import date

from pandadiary.app.errors import ValidationError

MAX_DAYS = 365 * 100

_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
_DAYS_PATTERN = re.compile(r"^[0-9]{1,9}$")
_UUID4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_PARTITION_KEY_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def parse_iso_date(raw: object) -> str:
    """Validate a strict ``YYYY-MM-DD`` calendar date and return it unchanged.

    Unlike :meth:`date.fromisoformat`, no other ISO shapes are accepted: the
    value must match the pattern exactly and name a real calendar day, so
    ``2024-13-40`` and ``20240101`` are both rejected.
    """

    if not isinstance(raw, str) or not _DATE_PATTERN.fullmatch(raw):
        raise ValidationError(
            "Date must be in YYYY-MM-DD format", error="Invalid date format"
        )
    try:
        date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(
            f"{raw} is not a valid calendar date", error="Invalid date format"
        ) from exc
    return raw


def parse_date_range(start: object, end: object) -> tuple[str, str]:
    start_date = parse_iso_date(start)
    end_date = parse_iso_date(end)
    if start_date > end_date:
        raise ValidationError(
            "Start date must be before or equal to end date",
            error="Invalid date range",
        )
    return start_date, end_date


def parse_days(raw: object) -> int:
    """Parse a whole number of days between 1 and :data:`MAX_DAYS`."""

    if isinstance(raw, bool):
        days = None
    elif isinstance(raw, int):
        days = raw
    else:
        text = str(raw).strip()
        days = int(text) if _DAYS_PATTERN.fullmatch(text) else None
    if days is None or not 0 < days <= MAX_DAYS:
        raise ValidationError(
            f"Days must be an integer between 1 and {MAX_DAYS}", error="Invalid days"
        )
    return days


def require_content(raw: object, *, field: str = "content") -> str:
    if not isinstance(raw, str) or not raw:
        raise ValidationError(
            f"{field.capitalize()} is required", error="Missing required fields"
        )
    return raw


def is_device_id(value: object) -> bool:
    """Return ``True`` when *value* has the shape of a UUID v4."""

    return isinstance(value, str) and bool(_UUID4_PATTERN.fullmatch(value))


def new_device_id() -> str:
    return str(uuid.uuid4())


def require_device_id(value: object) -> str:
    """Accept any RFC 4122 version 1-5 UUID as a partition key."""

    if not isinstance(value, str) or not _PARTITION_KEY_PATTERN.fullmatch(value):
        raise ValidationError(
            "Device ID must be a valid UUID", error="Invalid device ID format"
        )
    return value
