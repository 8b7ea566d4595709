from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
import orjson

from pandadiary.app.errors import (
    ConflictError,
    DiaryError,
    InternalError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from pandadiary.app.services.validators import (
    parse_date_range,
    parse_days,
    parse_iso_date,
)
from pandadiary.client.identity import DeviceIdentityProvider
from pandadiary.settings import settings

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Closed set of results a store call can produce."""

    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    TRANSIENT = "transient"
    FATAL = "fatal"


_OUTCOME_ERRORS: dict[Outcome, type[DiaryError]] = {
    Outcome.NOT_FOUND: NotFoundError,
    Outcome.CONFLICT: ConflictError,
    Outcome.INVALID: ValidationError,
    Outcome.TRANSIENT: TransientError,
    Outcome.FATAL: InternalError,
}


def classify_status(status: int) -> Outcome:
    if 200 <= status < 300:
        return Outcome.OK
    if status == 404:
        return Outcome.NOT_FOUND
    if status == 409:
        return Outcome.CONFLICT
    if status in (400, 422):
        return Outcome.INVALID
    if status in (408, 429, 502, 503, 504):
        return Outcome.TRANSIENT
    return Outcome.FATAL


@dataclass(slots=True, frozen=True)
class StoreResult:
    outcome: Outcome
    status: int | None = None
    data: Any = None
    message: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def entry(self) -> dict | None:
        return self.data if self.ok and isinstance(self.data, dict) else None

    @property
    def entries(self) -> list[dict]:
        return list(self.data) if self.ok and isinstance(self.data, list) else []

    def error(self) -> DiaryError | None:
        """Return the taxonomy error matching this outcome, if any."""

        error_cls = _OUTCOME_ERRORS.get(self.outcome)
        return error_cls(self.message or None) if error_cls else None

    def raise_for_outcome(self) -> "StoreResult":
        error = self.error()
        if error is not None:
            raise error
        return self


class EntryStoreClient:
    """Async HTTP client for the entry store.

    Remote failures never raise: every call returns a :class:`StoreResult`
    whose :class:`Outcome` is derived from the status code or the transport
    exception type. Arguments are validated first, so a malformed date
    yields ``Outcome.INVALID`` without any request being sent.
    """

    def __init__(
        self,
        identity: DeviceIdentityProvider,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.identity = identity
        self.base_url = base_url or settings.CLIENT.api_base_url
        self.device_header = settings.get("DEVICE.header", "X-Device-ID")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or float(settings.CLIENT.request_timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self.requests_sent = 0

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "EntryStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _request(
        self, method: str, path: str, *, payload: dict | None = None
    ) -> StoreResult:
        device_id = await self.identity.peek()
        headers = {self.device_header: device_id} if device_id else {}
        content = orjson.dumps(payload) if payload is not None else None

        self.requests_sent += 1
        try:
            resp = await self._client.request(
                method, path, content=content, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("Store request %s %s failed: %s", method, path, exc)
            return StoreResult(Outcome.TRANSIENT, message=str(exc) or type(exc).__name__)
        except httpx.HTTPError as exc:
            logger.error("Store request %s %s failed: %s", method, path, exc)
            return StoreResult(Outcome.FATAL, message=str(exc))

        if device_id is None:
            await self.identity.adopt(resp.headers.get(self.device_header))

        try:
            body = orjson.loads(resp.content) if resp.content else {}
        except orjson.JSONDecodeError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        outcome = classify_status(resp.status_code)
        if outcome is Outcome.NOT_FOUND:
            logger.debug("Store %s %s: not found", method, path)
        elif outcome is not Outcome.OK:
            logger.warning(
                "Store %s %s answered %s: %s",
                method,
                path,
                resp.status_code,
                body.get("message") or resp.reason_phrase,
            )
        extra = {k: v for k, v in body.items() if k not in ("data", "message")}
        return StoreResult(
            outcome,
            status=resp.status_code,
            data=body.get("data"),
            message=str(body.get("message") or ""),
            extra=extra,
        )

    @staticmethod
    def _invalid(exc: ValidationError) -> StoreResult:
        return StoreResult(Outcome.INVALID, status=None, message=exc.message)

    async def list_entries(self) -> StoreResult:
        return await self._request("GET", "/entries")

    async def get_entry(self, date: str) -> StoreResult:
        try:
            date = parse_iso_date(date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request("GET", f"/entries/{date}")

    async def create_entry(self, date: str, content: str) -> StoreResult:
        try:
            date = parse_iso_date(date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request(
            "POST", "/entries", payload={"date": date, "content": content}
        )

    async def replace_entry(self, date: str, content: str) -> StoreResult:
        try:
            date = parse_iso_date(date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request(
            "PUT", f"/entries/{date}", payload={"content": content}
        )

    async def upsert_entry(self, date: str, content: str) -> StoreResult:
        try:
            date = parse_iso_date(date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request(
            "PATCH", f"/entries/{date}", payload={"content": content}
        )

    async def delete_entry(self, date: str) -> StoreResult:
        try:
            date = parse_iso_date(date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request("DELETE", f"/entries/{date}")

    async def entries_in_range(self, start_date: str, end_date: str) -> StoreResult:
        try:
            start_date, end_date = parse_date_range(start_date, end_date)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request("GET", f"/entries/range/{start_date}/{end_date}")

    async def recent_entries(self, days: int) -> StoreResult:
        try:
            days = parse_days(days)
        except ValidationError as exc:
            return self._invalid(exc)
        return await self._request("GET", f"/entries/recent/{days}")

    async def health(self) -> StoreResult:
        return await self._request("GET", "/health")
