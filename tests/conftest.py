"""Shared fixtures for the diary store and client tests."""

from __future__ import annotations

import uuid

import httpx
import pytest
import pytest_asyncio

from pandadiary.app import create_app
from pandadiary.app.services.container import AppServices
from pandadiary.client import DiaryClient
from pandadiary.persistence.local_db import LocalDB


@pytest.fixture
def device_id() -> str:
    return str(uuid.uuid4())


@pytest_asyncio.fixture
async def db(tmp_path):
    async with LocalDB(tmp_path / "store.sqlite3") as local_db:
        yield local_db


@pytest_asyncio.fixture
async def app(tmp_path):
    services = AppServices.create(tmp_path / "server.sqlite3")
    quart_app = create_app(services)
    async with quart_app.test_app():
        yield quart_app


@pytest.fixture
def test_client(app):
    return app.test_client()


@pytest.fixture
def make_client(app, tmp_path):
    """Build a :class:`DiaryClient` talking to the in-process app over ASGI."""

    def _factory(name: str = "device", **kwargs) -> DiaryClient:
        kwargs.setdefault("autosave_delay", 0.05)
        client = DiaryClient(
            cache_path=tmp_path / f"{name}-cache.sqlite3",
            base_url="http://testserver/api",
            transport=httpx.ASGITransport(app=app),
            **kwargs,
        )
        return client

    return _factory


class FailingTransport(httpx.AsyncBaseTransport):
    """Transport that fails every request as if the network were down."""

    def __init__(self) -> None:
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        raise httpx.ConnectError("network unreachable", request=request)


@pytest.fixture
def failing_transport() -> FailingTransport:
    return FailingTransport()
