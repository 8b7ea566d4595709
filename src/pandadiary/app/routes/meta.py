from __future__ import annotations

from datetime import datetime, timezone

from quart import Blueprint, current_app, jsonify

from pandadiary.app.services.container import get_db

meta_bp = Blueprint("meta", __name__, url_prefix="/api")


def _store_state() -> str:
    if not current_app.config.get("STORE_ENABLED", True):
        return "disabled (local cache only)"
    return "available" if get_db().is_open else "not initialised"


@meta_bp.get("/health")
async def health():
    return jsonify(
        {
            "success": True,
            "message": f"{current_app.config['APP_NAME']} API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": current_app.config["VERSION"],
            "store": _store_state(),
        }
    )


@meta_bp.get("")
async def index():
    header = current_app.config.get("DEVICE_HEADER", "X-Device-ID")
    return jsonify(
        {
            "name": f"{current_app.config['APP_NAME']} API",
            "version": current_app.config["VERSION"],
            "store": _store_state(),
            "endpoints": {
                "health": "GET /api/health",
                "entries": {
                    "getAll": "GET /api/entries",
                    "getByDate": "GET /api/entries/:date",
                    "create": "POST /api/entries",
                    "update": "PUT /api/entries/:date",
                    "upsert": "PATCH /api/entries/:date",
                    "delete": "DELETE /api/entries/:date",
                    "getRange": "GET /api/entries/range/:startDate/:endDate",
                    "getRecent": "GET /api/entries/recent/:days",
                },
            },
            "authentication": f"Device ID based (sent via {header} header)",
        }
    )
