"""Durable TTL-aware backend built on :mod:`diskcache`.

Unlike :class:`~proxycache.cache.disk.DiskBackend`, entries written here
expire: every :meth:`DiskCacheBackend.set` passes ``expire=ttl`` to
:meth:`diskcache.Cache.set`, and diskcache drops the record on read once the
deadline passes. Entries are stored as plain dicts and re-validated into
:class:`~proxycache.cache.entry.CacheEntry` on the way out.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional

import diskcache
from pydantic import ValidationError

from proxycache.cache.base import CacheBackend
from proxycache.cache.entry import CacheEntry
from proxycache.exceptions import CacheError, CacheWriteError

logger = logging.getLogger(__name__)


class DiskCacheBackend(CacheBackend):
    """SQLite-indexed persistent store with per-entry expiry.

    Args:
        directory: Directory for the :class:`diskcache.Cache` files.
        ttl: Entry time-to-live in seconds.
    """

    def __init__(self, directory: str | Path, ttl: float) -> None:
        self._directory = Path(directory)
        self._ttl = ttl
        self._cache: Optional[diskcache.Cache] = None

    @property
    def kind(self) -> str:
        return "diskcache"

    def _open(self) -> diskcache.Cache:
        if self._cache is None:
            try:
                self._cache = diskcache.Cache(str(self._directory))
            except (OSError, sqlite3.Error) as exc:
                raise CacheError(f"Cannot open cache at {self._directory}: {exc}") from exc
        return self._cache

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            data = self._open().get(key)
        except (OSError, sqlite3.Error) as exc:
            raise CacheError(f"Cannot read cache entry {key!r}: {exc}") from exc
        if data is None:
            return None
        try:
            return CacheEntry.model_validate(data)
        except ValidationError:
            logger.debug("Discarding undecodable entry for %s", key)
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        try:
            self._open().set(key, entry.model_dump(), expire=self._ttl)
        except (OSError, sqlite3.Error, CacheError) as exc:
            raise CacheWriteError(f"Cannot write cache entry {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._open().delete(key)
        except (OSError, sqlite3.Error) as exc:
            raise CacheWriteError(f"Cannot delete cache entry {key!r}: {exc}") from exc

    def clear(self) -> None:
        try:
            self._open().clear()
        except (OSError, sqlite3.Error) as exc:
            raise CacheWriteError(f"Cannot clear cache at {self._directory}: {exc}") from exc

    def purge_expired(self) -> int:
        """Remove expired rows now instead of waiting for a read."""
        return self._open().expire()

    def __len__(self) -> int:
        return len(self._open())

    def describe(self) -> dict[str, Any]:
        return {"directory": str(self._directory), "ttl_seconds": self._ttl}

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None
