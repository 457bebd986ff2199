from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotCache(Generic[T]):
    """Single-slot, time-bounded cache for one collection result.

    The slot holds the last successful snapshot and the time it was
    produced. ``get_or_collect`` returns the stored snapshot while it is
    younger than ``window`` seconds, otherwise runs ``collect`` and stores
    its result. A failed collection raises and leaves the slot untouched.

    The lock is held across collection, so concurrent misses share a
    single collection cycle.
    """

    def __init__(
        self,
        window: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self._clock = clock
        self._lock = asyncio.Lock()
        self._snapshot: T | None = None
        self._produced_at: float | None = None

    def _fresh(self, now: float) -> bool:
        return self._produced_at is not None and (now - self._produced_at) < self.window

    async def get_or_collect(self, collect: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            if self._fresh(self._clock()):
                logger.debug("Snapshot cache hit")
                return self._snapshot  # type: ignore[return-value]

            snapshot = await collect()
            # produced_at is the time collection finished
            self._snapshot = snapshot
            self._produced_at = self._clock()
            return snapshot

    def invalidate(self) -> None:
        self._snapshot = None
        self._produced_at = None

    @property
    def age(self) -> float | None:
        """Seconds since the stored snapshot was produced, or None."""
        if self._produced_at is None:
            return None
        return self._clock() - self._produced_at
