from __future__ import annotations

import logging

from quart import current_app, g, request

from pandadiary.app.services.validators import new_device_id, require_device_id

logger = logging.getLogger(__name__)

_DEVICE_KEY = "pandadiary_device_id"
_MINTED_KEY = "pandadiary_device_minted"


def device_header() -> str:
    return current_app.config.get("DEVICE_HEADER", "X-Device-ID")


async def load_device() -> None:
    """Resolve the partition key for the request.

    The header wins over the ``deviceId`` query parameter. When neither is
    present a fresh identity is minted and echoed back by
    :func:`echo_minted_device`; a present but malformed value is rejected.
    """

    raw = request.headers.get(device_header()) or request.args.get("deviceId")
    if not raw:
        device_id = new_device_id()
        setattr(g, _MINTED_KEY, True)
        logger.info("Issued new device id %s", device_id)
    else:
        device_id = require_device_id(raw.strip())
    setattr(g, _DEVICE_KEY, device_id)


async def echo_minted_device(response):
    if getattr(g, _MINTED_KEY, False):
        response.headers[device_header()] = getattr(g, _DEVICE_KEY)
    return response


def current_device() -> str:
    device_id = getattr(g, _DEVICE_KEY, None)
    if device_id is None:
        raise RuntimeError("Device id requested outside of a device-scoped request")
    return device_id
