from __future__ import annotations

from typing import Any

from quart import current_app, request

from pandadiary.app.errors import StoreUnavailableError, ValidationError


def require_store_enabled() -> None:
    """Abort with 503 when entry operations are administratively disabled."""

    if not current_app.config.get("STORE_ENABLED", True):
        raise StoreUnavailableError(
            "Database operations are not available. "
            "Please use the local cache for data persistence."
        )


async def read_json_body() -> dict[str, Any]:
    payload = await request.get_json(force=True, silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload
