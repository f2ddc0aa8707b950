"""Value types stored by the cache engine.

* :class:`CacheEntry` -- one upstream response (status, header multimap, body).
* :class:`TTLRecord` -- a value wrapped with its absolute expiry time, used
  only by :class:`~proxycache.cache.ttl_store.TTLStore`.
* :class:`HeaderLine` -- one line of the disk backend's ``headers`` file.

Cache keys are built by :func:`make_key`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

V = TypeVar("V")


def make_key(method: str, path: str, query: Optional[str] = None) -> str:
    """Build the cache key ``"<METHOD>-<PATH>"`` for a request.

    The query string is left out unless passed explicitly, so
    ``/users?page=1`` and ``/users?page=2`` share a key by default.

    Args:
        method: HTTP method, any case.
        path: Request path without the query string.
        query: Optional raw query string to fold into the key.

    Returns:
        The cache key string.
    """
    key = f"{method.upper()}-{path}"
    if query:
        key = f"{key}?{query}"
    return key


class CacheEntry(BaseModel):
    """A cached upstream response.

    ``headers`` maps each header name to its values in the order they were
    received; dict insertion order keeps the names ordered too. Entries are
    frozen: storing a new response for a key replaces the whole entry.

    Example::

        entry = CacheEntry(
            status_code=200,
            headers={"content-type": ["application/json"]},
            body=b'{"id": 1}',
        )
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: dict[str, list[str]] = Field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_response(cls, response: httpx.Response) -> CacheEntry:
        """Build an entry from an :class:`httpx.Response`, keeping repeated headers."""
        headers: dict[str, list[str]] = {}
        for name, value in response.headers.multi_items():
            headers.setdefault(name, []).append(value)
        return cls(
            status_code=response.status_code,
            headers=headers,
            body=response.content,
        )

    def header_items(self) -> Iterator[tuple[str, str]]:
        """Yield ``(name, value)`` pairs in stored order."""
        for name, values in self.headers.items():
            for value in values:
                yield name, value


class HeaderLine(BaseModel):
    """One header name and its ordered values, serialised as a JSON line."""

    name: str = Field(min_length=1)
    values: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class TTLRecord(Generic[V]):
    """A stored value and the monotonic time at which it stops being served."""

    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
