"""Generic thread-safe key/value store with per-record expiry.

:class:`TTLStore` maps string keys to arbitrary values. Every record carries
its own absolute expiry time (``now + ttl`` at insertion) and is treated as
absent once that time passes, whether or not a sweep has removed it yet.
Physical removal of expired records happens lazily on :meth:`TTLStore.get`
and proactively through :meth:`TTLStore.purge_expired`, which the
:class:`~proxycache.cache.scheduler.CleanupScheduler` calls on a timer.

The map is split into shards, each guarded by its own lock. A key always
hashes to the same shard, so ``put``/``get``/``delete`` for one key are
atomic with respect to each other. With ``shards=1`` (the default) a single
lock guards the whole map.

Example::

    store: TTLStore[str] = TTLStore(ttl=60)
    store.put("GET-/users", "cached")
    value, found = store.get("GET-/users")
    scheduler = store.schedule_cleanup()
    ...
    scheduler.cancel()
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

from proxycache.cache.entry import TTLRecord

if TYPE_CHECKING:
    from proxycache.cache.scheduler import CleanupScheduler

V = TypeVar("V")


class _Shard(Generic[V]):
    __slots__ = ("lock", "records")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.records: dict[str, TTLRecord[V]] = {}


class TTLStore(Generic[V]):
    """Thread-safe TTL mapping from string keys to values of type ``V``.

    Args:
        ttl: Time-to-live in seconds applied to every :meth:`put`.
        shards: Number of independently locked partitions.
        clock: Monotonic time source; injectable for tests.

    Raises:
        ValueError: If *ttl* is not positive or *shards* is less than 1.
    """

    def __init__(
        self,
        ttl: float,
        shards: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if shards < 1:
            raise ValueError(f"shards must be at least 1, got {shards}")
        self._ttl = ttl
        self._clock = clock
        self._shards: list[_Shard[V]] = [_Shard() for _ in range(shards)]

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def shard_count(self) -> int:
        return len(self._shards)

    def _shard_for(self, key: str) -> _Shard[V]:
        if len(self._shards) == 1:
            return self._shards[0]
        return self._shards[hash(key) % len(self._shards)]

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def put(self, key: str, value: V) -> None:
        """Insert or replace *key*, expiring ``ttl`` seconds from now."""
        record = TTLRecord(value=value, expires_at=self._clock() + self._ttl)
        shard = self._shard_for(key)
        with shard.lock:
            shard.records[key] = record

    def get(self, key: str) -> tuple[Optional[V], bool]:
        """Look up *key*.

        Returns:
            ``(value, True)`` if a live record exists, otherwise
            ``(None, False)``. An expired record is dropped on the way out.
        """
        shard = self._shard_for(key)
        with shard.lock:
            record = shard.records.get(key)
            if record is None:
                return None, False
            if record.is_expired(self._clock()):
                del shard.records[key]
                return None, False
            return record.value, True

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        shard = self._shard_for(key)
        with shard.lock:
            shard.records.pop(key, None)

    def clear(self) -> None:
        """Remove every record."""
        for shard in self._shards:
            with shard.lock:
                shard.records.clear()

    def purge_expired(self) -> int:
        """Remove all expired records and return how many were dropped.

        Each shard is scanned under its lock to collect expired keys, then
        the keys are removed one at a time, re-checking expiry so that a
        ``put`` racing the sweep is never discarded.
        """
        removed = 0
        for shard in self._shards:
            now = self._clock()
            with shard.lock:
                expired = [
                    key for key, record in shard.records.items() if record.is_expired(now)
                ]
            for key in expired:
                with shard.lock:
                    record = shard.records.get(key)
                    if record is not None and record.is_expired(self._clock()):
                        del shard.records[key]
                        removed += 1
        return removed

    def schedule_cleanup(
        self,
        interval: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> CleanupScheduler:
        """Start a background sweep of this store.

        Args:
            interval: Seconds between sweeps. Defaults to the store's TTL.
            cancel: Event that stops the sweep when set. A fresh event is
                created when omitted; use :meth:`CleanupScheduler.cancel`.

        Returns:
            The running :class:`~proxycache.cache.scheduler.CleanupScheduler`.
        """
        from proxycache.cache.scheduler import CleanupScheduler

        if interval is None:
            interval = self._ttl
        scheduler = CleanupScheduler(self, interval, cancel=cancel)
        scheduler.start()
        return scheduler

    def __len__(self) -> int:
        """Physical record count, including expired records not yet swept."""
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get(key)[1]
