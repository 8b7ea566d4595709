from quart import Quart, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException
import logging

from pandadiary.app.errors import DiaryError, NotFoundError
from pandadiary.settings import settings
from pandadiary.util import str_to_bool

load_dotenv()


def create_app(services=None):
    """Build the Quart application.

    ``services`` defaults to an :class:`AppServices` bundle built from
    settings; tests pass their own to point the store at a temporary file.
    """

    from .services.container import AppLifecycle, AppServices

    services = services or AppServices.create()
    lifecycle = AppLifecycle(services)

    app = Quart(__name__)
    app.config.update(
        APP_NAME=settings.APP_NAME,
        VERSION=settings.VERSION,
        DEBUG_ERRORS=str_to_bool(settings.get("DEBUG", False)),
        STORE_ENABLED=str_to_bool(settings.get("STORE.enabled", True)),
        DEVICE_HEADER=settings.get("DEVICE.header", "X-Device-ID"),
    )

    app.extensions["pandadiary"] = services
    app.extensions["pandadiary_lifecycle"] = lifecycle

    logging.basicConfig(
        level=settings.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    from .routes.entries import entries_bp
    from .routes.meta import meta_bp

    app.register_blueprint(entries_bp)
    app.register_blueprint(meta_bp)

    @app.before_serving
    async def _start_lifecycle() -> None:
        await lifecycle.start()

    @app.after_serving
    async def _stop_lifecycle() -> None:
        await lifecycle.stop()

    @app.errorhandler(DiaryError)
    async def handle_diary_error(e: DiaryError):
        if isinstance(e, NotFoundError):
            app.logger.debug("Not found: %s", e.message)
        else:
            app.logger.info("%s: %s", e.error, e.message)
        return jsonify({"success": False, "error": e.error, "message": e.message}), e.status

    @app.errorhandler(HTTPException)
    async def handle_http_exception(e: HTTPException):
        return (
            jsonify(
                {
                    "success": False,
                    "error": e.name,
                    "message": e.description or e.name,
                }
            ),
            e.code or 500,
        )

    @app.errorhandler(Exception)
    async def handle_exception(e):
        app.logger.exception("Unhandled exception: %s", e)
        message = "Something went wrong"
        if app.config["DEBUG_ERRORS"]:
            message = str(e)
        return (
            jsonify(
                {"success": False, "error": "Internal server error", "message": message}
            ),
            500,
        )

    app.logger.info("Application initialized")
    return app
