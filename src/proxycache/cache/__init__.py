"""Response cache engine for proxycache.

This package provides :class:`ResponseCache`, the facade the proxy handler
uses, and the backends behind it:

* :class:`MemoryBackend` -- a generic :class:`TTLStore` swept by a
  :class:`CleanupScheduler`;
* :class:`DiskBackend` -- one directory per key with ``status``,
  ``headers`` and ``body`` files, no expiry;
* :class:`DiskCacheBackend` -- a :mod:`diskcache` store with per-entry TTL.

Entries are :class:`CacheEntry` values keyed by :func:`make_key`.
"""

from proxycache.cache.base import CacheBackend
from proxycache.cache.cache import ResponseCache, create_cache
from proxycache.cache.disk import DiskBackend
from proxycache.cache.entry import CacheEntry, TTLRecord, make_key
from proxycache.cache.memory import MemoryBackend
from proxycache.cache.persistent import DiskCacheBackend
from proxycache.cache.scheduler import CleanupScheduler
from proxycache.cache.ttl_store import TTLStore

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CleanupScheduler",
    "DiskBackend",
    "DiskCacheBackend",
    "MemoryBackend",
    "ResponseCache",
    "TTLRecord",
    "TTLStore",
    "create_cache",
    "make_key",
]
