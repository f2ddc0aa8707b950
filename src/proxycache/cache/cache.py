"""Backend-independent response cache facade.

:class:`ResponseCache` is the only cache object the proxy handler talks to.
It delegates to a :class:`~proxycache.cache.base.CacheBackend` and applies
one propagation policy regardless of backend:

* lookups never raise -- a backend :class:`~proxycache.exceptions.CacheError`
  is logged and reported as a miss so the caller fetches upstream;
* writes raise :class:`~proxycache.exceptions.CacheWriteError` so the caller
  can decide to serve the fresh response anyway.

Use :func:`create_cache` to build the backend named in a
:class:`~proxycache.models.CacheConfig`.

See Also:
    :class:`~proxycache.models.CacheConfig` -- backend, TTL and sweep
    interval settings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from proxycache.cache.base import CacheBackend
from proxycache.cache.disk import DiskBackend
from proxycache.cache.entry import CacheEntry
from proxycache.cache.memory import MemoryBackend
from proxycache.cache.persistent import DiskCacheBackend
from proxycache.exceptions import CacheError
from proxycache.models import CacheBackendKind, CacheConfig

logger = logging.getLogger(__name__)


class ResponseCache:
    """Uniform ``get``/``set``/``clear`` interface over any backend.

    Args:
        backend: The storage strategy to delegate to.

    Example::

        from proxycache.cache import MemoryBackend, ResponseCache, make_key

        with ResponseCache(MemoryBackend(ttl=300)) as cache:
            key = make_key("GET", "/users")
            cache.set(key, CacheEntry(status_code=200, body=b"[]"))
            hit = cache.get(key)
    """

    def __init__(self, backend: CacheBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def get(self, key: str) -> Optional[CacheEntry]:
        """Look up *key*.

        Returns:
            The cached entry, or ``None`` on a miss, after expiry, or when
            the backend failed to read.
        """
        try:
            return self._backend.get(key)
        except CacheError as exc:
            logger.warning("Cache lookup for %s failed, treating as miss: %s", key, exc)
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        """Store *entry* under *key*, replacing any existing entry.

        Raises:
            CacheWriteError: If the backend could not persist the entry.
        """
        self._backend.set(key, entry)

    put = set

    def delete(self, key: str) -> None:
        """Remove a single entry. Missing keys are ignored."""
        self._backend.delete(key)

    def clear(self) -> None:
        """Remove every entry from the backend."""
        self._backend.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``backend`` and ``size`` plus backend-specific details."""
        try:
            size: Optional[int] = len(self._backend)
        except CacheError as exc:
            logger.warning("Cannot size cache: %s", exc)
            size = None
        return {"backend": self._backend.kind, "size": size, **self._backend.describe()}

    def close(self) -> None:
        """Stop background sweeps and release backend resources."""
        self._backend.close()

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def create_cache(
    config: CacheConfig,
    cache_dir: str | Path,
    start_cleanup: bool = True,
) -> ResponseCache:
    """Build a :class:`ResponseCache` for the backend selected in *config*.

    Args:
        config: Cache settings (backend, TTL, sweep interval, shards).
        cache_dir: Default root for persistent backends; ignored when
            ``config.directory`` is set.
        start_cleanup: Start the memory backend's sweep thread. CLI
            commands that only inspect or clear the cache pass ``False``.

    Returns:
        A ready-to-use :class:`ResponseCache`.
    """
    root = Path(config.directory) if config.directory else Path(cache_dir)
    backend: CacheBackend
    if config.backend == CacheBackendKind.DISK:
        backend = DiskBackend(root / "responses")
    elif config.backend == CacheBackendKind.DISKCACHE:
        backend = DiskCacheBackend(root / "diskcache", ttl=config.ttl_seconds)
    else:
        backend = MemoryBackend(
            ttl=config.ttl_seconds,
            cleanup_interval=config.effective_cleanup_interval,
            shards=config.shards,
            start_cleanup=start_cleanup,
        )
    logger.debug("Using %s cache backend", backend.kind)
    return ResponseCache(backend)
