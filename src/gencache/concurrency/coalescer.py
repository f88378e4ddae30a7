"""Single-flight request coalescer."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """Runs at most one computation per key at a time.

    Callers arriving while a key's work is in flight await that same task
    and receive its value, or the very same exception instance. The table
    entry is removed by a done callback when the task settles, so a failure
    never poisons the key for later callers.

    Cancelling a waiting caller (the originator included) never cancels the
    shared task; other waiters still get the outcome.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[T]] = {}
        self._started = 0
        self._coalesced = 0

    async def handle(self, key: str, work: Callable[[], Awaitable[T]]) -> T:
        # No await between the lookup and the insert: this is the critical section.
        task = self._pending.get(key)
        if task is None:
            logger.debug("Processing new request for key %r", key)
            task = asyncio.ensure_future(work())
            self._pending[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
            self._started += 1
        else:
            logger.debug("Coalescing request for key %r onto in-flight work", key)
            self._coalesced += 1
        return await asyncio.shield(task)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "pending": len(self._pending),
            "started": self._started,
            "coalesced": self._coalesced,
        }

    def _settle(self, key: str, task: asyncio.Task[T]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark the exception retrieved in case every waiter was cancelled.
        if not task.cancelled():
            task.exception()
