"""TTL cache for market-data responses.

Entries are keyed by a deterministic serialization of (endpoint, params) and
are valid while ``now - stored_at < ttl``. Expired entries are evicted lazily
on lookup and also by a background sweep, so keys that are never read again
do not accumulate.
"""

import asyncio
import json
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from coinchat.logging import get_logger

logger = get_logger(__name__)


def make_cache_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a cache key independent of parameter insertion order.

    None-valued params are dropped, matching what goes on the wire.
    """
    cleaned = {k: v for k, v in (params or {}).items() if v is not None}
    return f"{endpoint}_{json.dumps(cleaned, sort_keys=True, default=str)}"


@dataclass
class CacheEntry:
    """A cached response body and when it was stored."""

    key: str
    data: Any
    stored_at: float


@dataclass
class CacheStats:
    total: int
    valid: int
    expired: int


class ResponseCache:
    """In-memory TTL cache with an optional periodic sweep task.

    Args:
        ttl_seconds: How long an entry stays valid (default 5 minutes).
        cleanup_interval: Seconds between background sweeps (default 10 minutes).
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        cleanup_interval: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    def __len__(self) -> int:
        return len(self._entries)

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at < self._ttl

    def get(self, key: str) -> Any | None:
        """Return cached data for ``key``, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_fresh(entry, self._clock()):
            return entry.data
        del self._entries[key]
        return None

    def put(self, key: str, data: Any) -> None:
        """Store ``data`` under ``key``, overwriting any previous entry."""
        self._entries[key] = CacheEntry(key=key, data=data, stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()
        logger.info("response_cache_cleared")

    def stats(self) -> CacheStats:
        now = self._clock()
        valid = sum(1 for entry in self._entries.values() if self._is_fresh(entry, now))
        return CacheStats(
            total=len(self._entries),
            valid=valid,
            expired=len(self._entries) - valid,
        )

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items() if not self._is_fresh(entry, now)
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("response_cache_swept", removed=len(expired))
        return len(expired)

    async def start(self) -> None:
        """Begin the periodic sweep in the background."""
        if self._running:
            logger.warning("response_cache_sweep_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("response_cache_sweep_started", interval=self._cleanup_interval)

    async def stop(self) -> None:
        """Cancel the periodic sweep."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("response_cache_sweep_stopped")

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup()
