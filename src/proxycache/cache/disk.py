"""Durable file-per-field response store.

Each entry lives in its own directory under the backend root::

    <root>/<encoded key>/status    decimal status code
    <root>/<encoded key>/headers   one JSON object per header name
    <root>/<encoded key>/body      raw response bytes

The directory name is the cache key percent-encoded with
:func:`urllib.parse.quote`, so ``GET-/users`` becomes ``GET-%2Fusers`` and
keys containing ``/`` never nest inside one another.

Header lines look like ``{"name": "set-cookie", "values": ["a=1", "b=2"]}``.
JSON escaping gives every field an explicit boundary, so commas and
newlines inside header values survive a round trip.

Files are written through :func:`~proxycache.config.atomic_write` in the
order ``body``, ``headers``, ``status``, after any existing ``status`` has
been unlinked. A reader that finds any of the three missing treats the key
as a miss, so an interrupted write (first or overwrite) is never surfaced
as a partial entry. Reads and writes of one key are serialised by a
per-backend lock shard, so a reader inside this process never observes an
overwrite half applied. There is no expiry: entries persist until
:meth:`DiskBackend.delete` or :meth:`DiskBackend.clear`.
"""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from pydantic import ValidationError

from proxycache.cache.base import CacheBackend
from proxycache.cache.entry import CacheEntry, HeaderLine
from proxycache.config import atomic_write
from proxycache.exceptions import CacheError, CacheWriteError

logger = logging.getLogger(__name__)

STATUS_FILE = "status"
HEADERS_FILE = "headers"
BODY_FILE = "body"


def encode_key(key: str) -> str:
    """Map a cache key to a single safe directory name."""
    if not key:
        raise ValueError("cache key must not be empty")
    name = quote(key, safe="")
    if name.startswith("."):
        name = "%2E" + name[1:]
    return name


def serialize_headers(headers: dict[str, list[str]]) -> str:
    """Render a header multimap as newline-terminated JSON lines."""
    return "".join(
        HeaderLine(name=name, values=values).model_dump_json() + "\n"
        for name, values in headers.items()
    )


def parse_headers(data: str | bytes) -> dict[str, list[str]]:
    """Parse the ``headers`` file, dropping lines that do not decode or validate."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    headers: dict[str, list[str]] = {}
    for lineno, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = HeaderLine.model_validate_json(line.decode("utf-8"))
        except (UnicodeDecodeError, ValidationError):
            logger.debug("Skipping malformed header line %d: %r", lineno, line[:80])
            continue
        headers.setdefault(record.name, []).extend(record.values)
    return headers


class DiskBackend(CacheBackend):
    """Filesystem-backed store that survives process restarts.

    Args:
        root: Directory holding one sub-directory per key. Created lazily
            on the first :meth:`set`.
        shards: Number of locks that key reads and writes are spread over.
    """

    def __init__(self, root: str | Path, shards: int = 16) -> None:
        if shards < 1:
            raise ValueError(f"shards must be at least 1, got {shards}")
        self._root = Path(root)
        self._locks = [threading.Lock() for _ in range(shards)]

    @property
    def kind(self) -> str:
        return "disk"

    @property
    def root(self) -> Path:
        return self._root

    def entry_dir(self, key: str) -> Path:
        return self._root / encode_key(key)

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def get(self, key: str) -> Optional[CacheEntry]:
        """Read an entry back.

        Returns:
            The entry, or ``None`` when any of the three files is missing
            or the status file does not hold an integer.

        Raises:
            CacheError: On I/O failures other than a missing file (for
                example a permission error).
        """
        directory = self.entry_dir(key)
        try:
            with self._lock_for(key):
                status_raw = (directory / STATUS_FILE).read_bytes()
                headers_raw = (directory / HEADERS_FILE).read_bytes()
                body = (directory / BODY_FILE).read_bytes()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None
        except OSError as exc:
            raise CacheError(f"Cannot read cache entry {key!r}: {exc}") from exc

        try:
            status_code = int(status_raw.decode("ascii").strip())
        except (UnicodeDecodeError, ValueError):
            logger.debug("Corrupt status file for %s, treating as a miss", key)
            return None

        return CacheEntry(
            status_code=status_code,
            headers=parse_headers(headers_raw),
            body=body,
        )

    def set(self, key: str, entry: CacheEntry) -> None:
        """Write *entry* to ``<root>/<key>/``, replacing any previous entry.

        The old ``status`` file is removed before anything else is written,
        and again if the write fails, so a failed overwrite leaves a miss
        rather than the old metadata next to the new body.

        Raises:
            CacheWriteError: If the directory or any file cannot be written.
        """
        directory = self.entry_dir(key)
        status_path = directory / STATUS_FILE
        with self._lock_for(key):
            try:
                directory.mkdir(parents=True, exist_ok=True)
                status_path.unlink(missing_ok=True)
                atomic_write(directory / BODY_FILE, entry.body)
                atomic_write(directory / HEADERS_FILE, serialize_headers(entry.headers))
                atomic_write(status_path, f"{entry.status_code}\n")
            except OSError as exc:
                try:
                    status_path.unlink(missing_ok=True)
                except OSError:
                    logger.debug("Could not invalidate cache entry %s after failed write", key)
                raise CacheWriteError(f"Cannot write cache entry {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._lock_for(key):
                shutil.rmtree(self.entry_dir(key))
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise CacheWriteError(f"Cannot delete cache entry {key!r}: {exc}") from exc

    def clear(self) -> None:
        """Remove the whole root directory (every key)."""
        try:
            shutil.rmtree(self._root)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise CacheWriteError(f"Cannot clear cache at {self._root}: {exc}") from exc

    def __len__(self) -> int:
        if not self._root.is_dir():
            return 0
        return sum(1 for p in self._root.iterdir() if p.is_dir())

    def describe(self) -> dict[str, Any]:
        return {"directory": str(self._root)}
