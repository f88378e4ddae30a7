"""Concurrency limiter for calls toward the backend."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ConcurrencyLimiter:
    """Caps the number of backend calls in flight at once.

    Callers over the limit queue on a semaphore until a slot frees up.
    """

    def __init__(self, max_concurrent: int = 3) -> None:
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self._max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)

        # Stats
        self._active = 0
        self._peak = 0
        self._total = 0

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        async with self._semaphore:
            self._active += 1
            self._total += 1
            self._peak = max(self._peak, self._active)
            try:
                yield
            finally:
                self._active -= 1

    @property
    def stats(self) -> dict:
        return {
            "active": self._active,
            "peak": self._peak,
            "total": self._total,
            "max_concurrent": self._max_concurrent,
        }
