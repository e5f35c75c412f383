"""
Status cache — short-lived in-memory copy of the lightweight status view.

Dashboards poll the status list often; the registry's store read is
cheap but not free. Entries expire after ``ttl`` seconds and are
cleared by the registry on every mutating operation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from toolhub.core.models import ToolStatus

logger = logging.getLogger(__name__)

StatusLoader = Callable[[], Awaitable[list[ToolStatus]]]


class ToolStatusCache:
    """TTL cache of a ``list[ToolStatus]``.

    Args:
        ttl: Seconds an entry stays valid. 0 disables caching.
        clock: Monotonic clock (injectable for tests).
    """

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl
        self._clock = clock
        self._statuses: dict[str, ToolStatus] = {}
        self._order: list[str] = []
        self._loaded_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def is_fresh(self) -> bool:
        if self._loaded_at is None or self._ttl <= 0:
            return False
        if any(tool_id not in self._statuses for tool_id in self._order):
            return False
        return (self._clock() - self._loaded_at) < self._ttl

    def peek(self) -> list[ToolStatus] | None:
        """Cached statuses if fresh, else None. Never loads."""
        if not self.is_fresh:
            return None
        return [self._statuses[t].model_copy() for t in self._order]

    def put(self, statuses: list[ToolStatus]) -> None:
        self._statuses = {s.id: s.model_copy() for s in statuses}
        self._order = [s.id for s in statuses]
        self._loaded_at = self._clock()

    async def get(self, loader: StatusLoader) -> list[ToolStatus]:
        """Cached statuses, or the loader's result (then cached).

        Concurrent callers on a cold cache share one load.
        """
        cached = self.peek()
        if cached is not None:
            return cached

        async with self._lock:
            cached = self.peek()
            if cached is not None:
                return cached
            statuses = await loader()
            self.put(statuses)
            logger.debug("Status cache refilled with %d tools", len(statuses))
            return [s.model_copy() for s in statuses]

    def invalidate(self) -> None:
        """Drop everything."""
        self._statuses.clear()
        self._order = []
        self._loaded_at = None

    def invalidate_tool(self, tool_id: str) -> None:
        """Drop one tool; the next ``get`` reloads the whole view."""
        self._statuses.pop(tool_id, None)
