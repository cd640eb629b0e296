# apps/api/app/core/cache.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_MISSING = object()


def make_cache(ttl_seconds: float, max_items: int = 800,
               clock: Callable[[], float] = time.monotonic) -> TTLCache:
    """LRU-bounded TTL map; clock is injectable so tests can step time."""
    if max_items < 1:
        raise ValueError("max_items must be >= 1")
    return TTLCache(maxsize=max_items, ttl=ttl_seconds, timer=clock)


class AsyncMemo:
    """
    Compute-once memoization for coroutine results.

    Concurrent callers for the same key share one in-flight task; successful
    results land in the backing TTLCache, failures are never cached. A forced
    call supersedes whatever is in flight, and only the newest task may write
    its result back.
    """

    def __init__(self, cache: TTLCache):
        self.cache = cache
        self._in_flight: Dict[Hashable, "asyncio.Future[Any]"] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def get_or_compute(
        self,
        key: Hashable,
        factory: Callable[[], Awaitable[Any]],
        force: bool = False,
    ) -> Any:
        if not force:
            hit = self.cache.get(key, _MISSING)
            if hit is not _MISSING:
                return hit
            pending = self._in_flight.get(key)
            if pending is not None:
                return await asyncio.shield(pending)

        task = asyncio.ensure_future(factory())
        self._in_flight[key] = task

        def _settle(done: "asyncio.Future[Any]") -> None:
            if self._in_flight.get(key) is not done:
                logger.debug("memo result for %r superseded, not cached", key)
                return
            del self._in_flight[key]
            if done.cancelled() or done.exception() is not None:
                return
            self.cache[key] = done.result()

        task.add_done_callback(_settle)
        # a cancelled caller must not cancel the computation other callers await
        return await asyncio.shield(task)


class HostGate:
    """Async semaphore bounding concurrent calls to one upstream host."""

    def __init__(self, limit: int = 2):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._sem = asyncio.Semaphore(limit)

    async def __aenter__(self) -> "HostGate":
        await self._sem.acquire()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._sem.release()


class NoopGate:
    async def __aenter__(self) -> "NoopGate":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None
