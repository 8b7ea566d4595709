from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from blinker import Namespace, Signal

logger = logging.getLogger(__name__)

SAVE_COMPLETED = "save.completed"
SAVE_DEGRADED = "save.degraded"
REPLAY_FINISHED = "replay.finished"
CONNECTIVITY_CHANGED = "connectivity.changed"
IDENTITY_ISSUED = "identity.issued"


@dataclass(slots=True, frozen=True)
class PulseEvent:
    """Snapshot of a published client notification."""

    topic: str
    payload: Mapping[str, Any]
    timestamp: float

    def as_payload(self) -> dict[str, Any]:
        """Return a mutable copy of the payload."""

        return dict(self.payload)


class SyncPulse:
    """Informational notifications for the UI layer.

    Receivers are connected to a topic signal (or to :attr:`broadcast` for
    every topic) and are called with ``event``, ``topic`` and ``payload``
    keyword arguments. A receiver returning a coroutine has it scheduled on
    the running loop. Nothing published here ever blocks or fails a save.
    """

    def __init__(self) -> None:
        self._latest: dict[str, PulseEvent] = {}
        self._namespace = Namespace()
        self.broadcast = Signal("sync_pulse:*")
        self._pending: set[asyncio.Task] = set()

    def signal(self, topic: str) -> Signal:
        """Return a blinker :class:`Signal` for ``topic``."""

        return self._namespace.signal(topic)

    def emit(self, topic: str, payload: Mapping[str, Any]) -> PulseEvent:
        """Record ``payload`` under ``topic`` and notify subscribers."""

        data = MappingProxyType(dict(payload))
        event = PulseEvent(topic=topic, payload=data, timestamp=time.monotonic())
        self._latest[topic] = event
        self._notify_signal(self.signal(topic), event)
        self._notify_signal(self.broadcast, event)
        return event

    def latest(self, topic: str) -> PulseEvent | None:
        return self._latest.get(topic)

    def _notify_signal(self, signal: Signal, event: PulseEvent) -> None:
        for receiver in list(signal.receivers_for(self)):
            try:
                result = receiver(
                    self,
                    event=event,
                    topic=event.topic,
                    payload=event.payload,
                )
            except Exception:
                logger.exception("Pulse listener failed for topic %s", event.topic)
                continue
            self._handle_result(result)

    def _handle_result(self, result: Any) -> None:
        if not asyncio.iscoroutine(result):
            return
        try:
            task = asyncio.get_running_loop().create_task(result)
        except RuntimeError:
            result.close()
            logger.debug("Dropped async pulse listener outside of a running loop")
            return
        self._pending.add(task)
        task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async pulse listener failed", exc_info=exc)
