from __future__ import annotations

import logging

from quart import Blueprint, jsonify

from pandadiary.app.errors import ValidationError
from pandadiary.app.routes.helpers import read_json_body, require_store_enabled
from pandadiary.app.services.container import get_db
from pandadiary.app.services.device import (
    current_device,
    echo_minted_device,
    load_device,
)
from pandadiary.app.services.validators import (
    parse_date_range,
    parse_days,
    parse_iso_date,
    require_content,
)


logger = logging.getLogger(__name__)

entries_bp = Blueprint("entries", __name__, url_prefix="/api/entries")
entries_bp.before_request(load_device)
entries_bp.after_request(echo_minted_device)


@entries_bp.get("")
async def list_entries():
    require_store_enabled()
    entries = await get_db().entries.list_entries(current_device())
    return jsonify({"success": True, "data": entries, "count": len(entries)})


@entries_bp.get("/<date>")
async def get_entry(date: str):
    require_store_enabled()
    date = parse_iso_date(date)
    entry = await get_db().entries.get_entry(date, current_device())
    return jsonify({"success": True, "data": entry})


@entries_bp.post("")
async def create_entry():
    require_store_enabled()
    payload = await read_json_body()
    if not payload.get("date") or not payload.get("content"):
        raise ValidationError(
            "Date and content are required", error="Missing required fields"
        )
    date = parse_iso_date(payload["date"])
    content = require_content(payload["content"])
    entry = await get_db().entries.create_entry(date, content, current_device())
    logger.info("Created entry for %s", date)
    return (
        jsonify(
            {"success": True, "message": "Entry created successfully", "data": entry}
        ),
        201,
    )


@entries_bp.put("/<date>")
async def replace_entry(date: str):
    require_store_enabled()
    payload = await read_json_body()
    content = require_content(payload.get("content"))
    date = parse_iso_date(date)
    entry = await get_db().entries.replace_entry(date, content, current_device())
    return jsonify(
        {"success": True, "message": "Entry updated successfully", "data": entry}
    )


@entries_bp.patch("/<date>")
async def upsert_entry(date: str):
    require_store_enabled()
    payload = await read_json_body()
    content = require_content(payload.get("content"))
    date = parse_iso_date(date)
    entry = await get_db().entries.upsert_entry(date, content, current_device())
    return jsonify(
        {"success": True, "message": "Entry saved successfully", "data": entry}
    )


@entries_bp.delete("/<date>")
async def delete_entry(date: str):
    require_store_enabled()
    date = parse_iso_date(date)
    await get_db().entries.delete_entry(date, current_device())
    logger.info("Deleted entry for %s", date)
    return jsonify({"success": True, "message": "Entry deleted successfully"})


@entries_bp.get("/range/<start_date>/<end_date>")
async def entries_in_range(start_date: str, end_date: str):
    require_store_enabled()
    start_date, end_date = parse_date_range(start_date, end_date)
    entries = await get_db().entries.entries_in_range(
        start_date, end_date, current_device()
    )
    return jsonify(
        {
            "success": True,
            "data": entries,
            "count": len(entries),
            "range": {"startDate": start_date, "endDate": end_date},
        }
    )


@entries_bp.get("/recent/<days>")
async def recent_entries(days: str):
    require_store_enabled()
    days_value = parse_days(days)
    entries = await get_db().entries.recent_entries(days_value, current_device())
    return jsonify(
        {"success": True, "data": entries, "count": len(entries), "days": days_value}
    )
