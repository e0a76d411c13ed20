"""Staleness-windowed query cache with in-flight de-duplication.

Each resolver/aggregator owns its own ``QueryCache``. A cached value is
reused without re-validation until its window elapses; concurrent callers
asking for the same key while a fetch is pending share that one fetch.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class QueryCache:
    """Per-key TTL cache for async fetches."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Clock = time.monotonic,
        name: str = "cache",
    ):
        """
        Args:
            ttl_seconds: Staleness window
            clock: Monotonic time source (injectable for tests)
            name: Label used in log lines
        """
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._pending: dict[str, asyncio.Task] = {}

    def get(self, key: str) -> Any | None:
        """Return a fresh cached value, or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at < self.ttl_seconds:
            logger.debug(f"[{self.name}] Cache hit: {key}")
            return value
        del self._entries[key]
        return None

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one and dropping expired entries."""
        now = self._clock()
        expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        self._entries[key] = (value, now)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value for ``key`` or run ``fetch`` to produce it.

        None results and exceptions are not cached. A second caller for a key
        whose fetch is still pending awaits the same task.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fetch))
            self._pending[key] = task
        else:
            logger.debug(f"[{self.name}] Joining in-flight fetch: {key}")

        # shield so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _run(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await fetch()
            if value is not None:
                self.set(key, value)
            return value
        finally:
            self._pending.pop(key, None)
