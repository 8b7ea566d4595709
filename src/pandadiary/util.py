from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}


def str_to_bool(value: str | bool) -> bool:
    """Read a settings flag that may arrive as a bool or as env-var text."""

    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValueError(f"Cannot convert '{value}' to a boolean.")


def sql_path(name: str) -> Path:
    """Return a schema file shipped in the package's ``sql`` directory."""

    path = PACKAGE_DIR / "sql" / name
    if not path.is_file():
        raise FileNotFoundError(f"Missing packaged schema {path}")
    return path


def resolve_state_path(configured_path: str | Path) -> Path:
    """Expand and resolve a writable state file path, creating its parent."""

    path = Path(configured_path).expanduser().resolve(strict=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path
