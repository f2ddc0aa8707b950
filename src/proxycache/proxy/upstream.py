"""Upstream fetch client for the caching proxy.

:class:`UpstreamClient` wraps :class:`httpx.Client` and turns one proxied
request into a :class:`~proxycache.cache.entry.CacheEntry` (status, header
multimap, body) -- the only shape the cache engine consumes. Hop-by-hop
headers are stripped in both directions, and because httpx transparently
decodes compressed bodies, ``content-encoding`` and ``content-length`` are
dropped from the stored headers as well.

Must be used as a context manager so that the underlying connection pool is
opened and closed, mirroring how the rest of the code base drives httpx.
"""

from __future__ import annotations

from typing import Iterable, Optional

import httpx

from proxycache.cache.entry import CacheEntry
from proxycache.exceptions import UpstreamError
from proxycache.output import get_output

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

_REQUEST_SKIP = HOP_BY_HOP_HEADERS | {"host", "content-length"}
_RESPONSE_SKIP = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}


def filter_headers(
    items: Iterable[tuple[str, str]], skip: frozenset[str]
) -> list[tuple[str, str]]:
    """Drop headers whose lower-cased name is in *skip*, keeping order."""
    return [(name, value) for name, value in items if name.lower() not in skip]


class UpstreamClient:
    """Forwards requests to a single origin.

    Args:
        origin: Base URL of the upstream server (``http://host:port``).
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with UpstreamClient("http://dummyjson.com") as upstream:
            entry = upstream.fetch("GET", "/products/1")
    """

    def __init__(
        self,
        origin: str,
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._origin = origin.rstrip("/")
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def origin(self) -> str:
        return self._origin

    def __enter__(self) -> UpstreamClient:
        self._client = httpx.Client(
            base_url=self._origin,
            timeout=self._timeout,
            verify=self._verify_ssl,
            follow_redirects=False,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def fetch(
        self,
        method: str,
        path: str,
        body: Optional[bytes] = None,
        headers: Optional[Iterable[tuple[str, str]]] = None,
        query: Optional[str] = None,
    ) -> CacheEntry:
        """Send one request upstream and capture the response.

        Args:
            method: HTTP method, forwarded unchanged.
            path: Request path, appended to the origin.
            body: Raw request body, if any.
            headers: Client request headers; hop-by-hop and ``Host`` are
                not forwarded.
            query: Raw query string forwarded after ``?``.

        Returns:
            A :class:`CacheEntry` holding the upstream status, headers and
            fully read body.

        Raises:
            UpstreamError: On connection, timeout, or protocol failures.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        url = f"{path}?{query}" if query else path
        forwarded = filter_headers(headers or [], _REQUEST_SKIP)
        get_output().debug(f"Forwarding {method} {self._origin}{url}")

        try:
            response = self._client.request(
                method,
                url,
                headers=forwarded,
                content=body or None,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise UpstreamError(f"Upstream request {method} {url} failed: {exc}") from exc

        entry = CacheEntry.from_response(response)
        kept: dict[str, list[str]] = {}
        for name, value in filter_headers(entry.header_items(), _RESPONSE_SKIP):
            kept.setdefault(name, []).append(value)
        return entry.model_copy(update={"headers": kept})
