from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class Debouncer:
    """One cancellable delayed task per key.

    Scheduling a key again before its quiet interval elapses cancels the
    pending task and starts a new one with the latest action, so a burst of
    edits collapses into a single call.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._pending: dict[Hashable, tuple[asyncio.Task, Action]] = {}
        self._running: set[asyncio.Task] = set()

    def schedule(self, key: Hashable, action: Action) -> None:
        previous = self._pending.pop(key, None)
        if previous is not None:
            previous[0].cancel()
        task = asyncio.create_task(self._wait_then_run(key, action))
        self._pending[key] = (task, action)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    async def _wait_then_run(self, key: Hashable, action: Action) -> None:
        await asyncio.sleep(self.delay)
        current = self._pending.get(key)
        if current is None or current[0] is not asyncio.current_task():
            return
        del self._pending[key]
        await self._run(action)

    async def _run(self, action: Action) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._running.add(task)
        try:
            await action()
        except Exception:
            logger.exception("Debounced action failed")
        finally:
            if task is not None:
                self._running.discard(task)

    async def flush(self) -> None:
        """Run every pending action now and wait for in-flight ones."""

        pending = list(self._pending.values())
        self._pending.clear()
        for task, _ in pending:
            task.cancel()
        for task, _ in pending:
            with suppress(asyncio.CancelledError):
                await task
        for _, action in pending:
            await self._run(action)
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def cancel_all(self) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for task, _ in pending:
            task.cancel()
        for task, _ in pending:
            with suppress(asyncio.CancelledError):
                await task
