"""Abstract base class for response cache backends.

Every backend stores :class:`~proxycache.cache.entry.CacheEntry` values by
string key and shares one contract:

* :meth:`CacheBackend.get` returns ``None`` for a missing or expired key and
  raises :class:`~proxycache.exceptions.CacheError` only for I/O failures.
* :meth:`CacheBackend.set` replaces any prior entry and raises
  :class:`~proxycache.exceptions.CacheWriteError` when it cannot store.
* :meth:`CacheBackend.clear` succeeds on an already empty store.

Backends are wrapped by :class:`~proxycache.cache.cache.ResponseCache`,
which turns lookup failures into misses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from proxycache.cache.entry import CacheEntry


class CacheBackend(ABC):
    """Storage strategy behind :class:`~proxycache.cache.cache.ResponseCache`."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Return the backend identifier (``"memory"``, ``"disk"``, ...)."""
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for *key*, or ``None`` on a miss."""
        ...

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        """Store *entry* under *key*, replacing any previous entry."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        ...

    @abstractmethod
    def __len__(self) -> int: ...

    def describe(self) -> dict[str, Any]:
        """Backend-specific details merged into :meth:`ResponseCache.stats`."""
        return {}

    def close(self) -> None:
        """Release background threads or file handles. Safe to call twice."""
