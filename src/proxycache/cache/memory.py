"""In-process backend: a :class:`TTLStore` plus its cleanup sweep."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from proxycache.cache.base import CacheBackend
from proxycache.cache.entry import CacheEntry
from proxycache.cache.scheduler import CleanupScheduler
from proxycache.cache.ttl_store import TTLStore


class MemoryBackend(CacheBackend):
    """Stores entries in a :class:`TTLStore` and sweeps it in the background.

    Args:
        ttl: Entry time-to-live in seconds.
        cleanup_interval: Seconds between sweeps; defaults to *ttl*.
        shards: Lock shards for the underlying store.
        start_cleanup: Start the sweep thread immediately.
        clock: Monotonic time source passed to the store.
    """

    def __init__(
        self,
        ttl: float,
        cleanup_interval: Optional[float] = None,
        shards: int = 1,
        start_cleanup: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store: TTLStore[CacheEntry] = TTLStore(ttl, shards=shards, clock=clock)
        self._cleanup_interval = ttl if cleanup_interval is None else cleanup_interval
        self._scheduler: Optional[CleanupScheduler] = None
        if start_cleanup:
            self._scheduler = self._store.schedule_cleanup(self._cleanup_interval)

    @property
    def kind(self) -> str:
        return "memory"

    @property
    def store(self) -> TTLStore[CacheEntry]:
        return self._store

    @property
    def scheduler(self) -> Optional[CleanupScheduler]:
        return self._scheduler

    def get(self, key: str) -> Optional[CacheEntry]:
        entry, found = self._store.get(key)
        return entry if found else None

    def set(self, key: str, entry: CacheEntry) -> None:
        self._store.put(key, entry)

    def delete(self, key: str) -> None:
        self._store.delete(key)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def describe(self) -> dict[str, Any]:
        return {
            "ttl_seconds": self._store.ttl,
            "cleanup_interval_seconds": self._cleanup_interval,
            "shards": self._store.shard_count,
        }

    def close(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop(timeout=5)
            self._scheduler = None
