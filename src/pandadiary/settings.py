from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dynaconf import Dynaconf

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

logger = logging.getLogger(__name__)


def _resolve_config_dir() -> Path | None:
    env_override = os.environ.get("PANDADIARY_CONFIG_DIR")
    candidates: list[Path] = []

    if env_override:
        candidates.append(Path(env_override).expanduser())

    candidates.append(PROJECT_ROOT / "config")
    candidates.append(PROJECT_ROOT.parent / "config")

    for candidate in candidates:
        expanded = candidate.expanduser()
        if expanded.is_dir():
            return expanded.resolve()

    if env_override:
        raise RuntimeError(
            f"Unable to locate configuration directory {env_override}. "
            "Set PANDADIARY_CONFIG_DIR to a valid directory."
        )
    return None


CONFIG_DIR = _resolve_config_dir()


DEFAULTS: dict[str, Any] = {
    "APP_NAME": "Panda Diary",
    "VERSION": "1.0.0",
    "LOG_LEVEL": "INFO",
    "DEBUG": False,
    "APP": {
        "host": "127.0.0.1",
        "port": 3000,
    },
    "DATABASE": {
        "path": "panda_diary.sqlite3",
        "pool_size": 10,
        "pool_acquire_timeout": 10,
        "timeout": 5.0,
        "busy_timeout": 5000,
        "mmap_size": 10 * 1024 * 1024,
    },
    "STORE": {
        "enabled": True,
    },
    "DEVICE": {
        "header": "X-Device-ID",
    },
    "CLIENT": {
        "api_base_url": "http://localhost:3000/api",
        "cache_path": "panda_diary_cache.sqlite3",
        "request_timeout": 10.0,
        "autosave_delay": 2.0,
        "preview_length": 100,
    },
}

_settings_files: list[Path] = []
if CONFIG_DIR is not None:
    _settings_files = [
        CONFIG_DIR / "settings.toml",
        CONFIG_DIR / ".secrets.toml",
        CONFIG_DIR / "settings.local.toml",
    ]

settings = Dynaconf(
    envvar_prefix="PANDADIARY",
    settings_files=_settings_files,
    environments=True,
    env_switcher="PANDADIARY_ENV",
    load_dotenv=True,
    envvar_parse_values=True,
    merge_enabled=True,
    defaults=DEFAULTS,
)


_MISSING = object()


def _ensure_defaults(prefix: str, defaults: dict[str, Any]) -> None:
    for key, value in defaults.items():
        dotted = f"{prefix}.{key}" if prefix else key
        existing = settings.get(dotted, _MISSING)

        if isinstance(value, dict):
            if existing is _MISSING:
                settings.set(dotted, value.copy())
                existing = settings.get(dotted, _MISSING)
            if isinstance(existing, Mapping):
                _ensure_defaults(dotted, value)
            continue

        if existing is _MISSING:
            settings.set(dotted, value)


_ensure_defaults("", DEFAULTS)


def _positive_float(dotted: str, default: float) -> None:
    raw = settings.get(dotted, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s (%r), using %s", dotted, raw, default)
        value = default
    if value <= 0:
        value = default
    settings.set(dotted, value)


def _positive_int(dotted: str, default: int) -> None:
    raw = settings.get(dotted, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s (%r), using %s", dotted, raw, default)
        value = default
    if value <= 0:
        value = default
    settings.set(dotted, value)


_positive_float("CLIENT.autosave_delay", DEFAULTS["CLIENT"]["autosave_delay"])
_positive_float("CLIENT.request_timeout", DEFAULTS["CLIENT"]["request_timeout"])
_positive_int("CLIENT.preview_length", DEFAULTS["CLIENT"]["preview_length"])
_positive_int("DATABASE.pool_size", DEFAULTS["DATABASE"]["pool_size"])

__all__ = ["settings", "DEFAULTS"]
