"""Entry point for running the Panda Diary API as a module."""

from __future__ import annotations

from pandadiary.settings import settings


def main() -> None:
    """Run the Quart development server with configuration overrides."""

    from pandadiary.app import create_app

    app = create_app()
    host = settings.get("APP.host")
    raw_port = settings.get("APP.port")
    port = int(raw_port) if raw_port is not None else 3000
    app.run(host=host or "127.0.0.1", port=port)


if __name__ == "__main__":
    main()
