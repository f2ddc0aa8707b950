"""Threaded caching reverse proxy.

:class:`CachingProxyServer` listens on a :class:`http.server.ThreadingHTTPServer`
(one thread per request) and routes every request through
:meth:`CachingProxyServer.handle_request`:

1. The cache key is ``"<METHOD>-<PATH>"`` (see :func:`~proxycache.cache.make_key`).
2. GET requests consult the :class:`~proxycache.cache.ResponseCache` first;
   a hit is replayed with ``X-Cache: HIT`` without contacting the origin.
3. Everything else is forwarded through the
   :class:`~proxycache.proxy.upstream.UpstreamClient` and returned with
   ``X-Cache: MISS``. GET responses are written back to the cache.

A failed cache write is reported as a warning and the fresh response is
still served. An unreachable origin yields ``502 Bad Gateway``. Two
concurrent misses for the same key both go upstream; the last write wins.
"""

from __future__ import annotations

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

from proxycache.cache import CacheEntry, ResponseCache, make_key
from proxycache.exceptions import CacheError, UpstreamError
from proxycache.models import ServerConfig
from proxycache.output import get_output
from proxycache.proxy.upstream import HOP_BY_HOP_HEADERS, UpstreamClient

CACHE_STATUS_HEADER = "X-Cache"
CACHEABLE_METHODS = frozenset({"GET"})

_BAD_GATEWAY = CacheEntry(
    status_code=502,
    headers={"content-type": ["text/plain; charset=utf-8"]},
    body=b"error forwarding request\n",
)


class CachingProxyServer:
    """Caching reverse proxy in front of a single origin.

    Args:
        config: Listening address and origin settings.
        cache: Response cache consulted for GET requests.
        upstream: An entered :class:`UpstreamClient` for the origin.

    Example::

        with ResponseCache(MemoryBackend(ttl=3600)) as cache, \\
                UpstreamClient(config.origin) as upstream:
            server = CachingProxyServer(config, cache, upstream)
            server.serve_forever()
    """

    def __init__(
        self,
        config: ServerConfig,
        cache: ResponseCache,
        upstream: UpstreamClient,
    ) -> None:
        self._config = config
        self._cache = cache
        self._upstream = upstream
        self._httpd: Optional[_ProxyHTTPServer] = None
        self._serving = False

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def server_address(self) -> tuple[str, int]:
        """The bound ``(host, port)``; binds the socket on first access."""
        host, port = self._bind().server_address[:2]
        return str(host), int(port)

    # ------------------------------------------------------------------ #
    # Request routing
    # ------------------------------------------------------------------ #

    def handle_request(
        self,
        method: str,
        target: str,
        headers: Optional[Iterable[tuple[str, str]]] = None,
        body: Optional[bytes] = None,
    ) -> tuple[CacheEntry, str]:
        """Serve one request from the cache or the origin.

        Args:
            method: HTTP method of the client request.
            target: Request target (path plus optional query string).
            headers: Client request headers.
            body: Raw client request body.

        Returns:
            ``(entry, cache_status)`` where *cache_status* is ``"HIT"`` or
            ``"MISS"``.

        Raises:
            UpstreamError: If the origin could not be reached.
        """
        method = method.upper()
        parts = urlsplit(target)
        path = parts.path or "/"
        key = make_key(method, path, parts.query if self._config.key_includes_query else None)
        output = get_output()

        if method in CACHEABLE_METHODS:
            cached = self._cache.get(key)
            if cached is not None:
                output.info(f"HIT:  {key}")
                return cached, "HIT"

        output.info(f"MISS: {key}")
        entry = self._upstream.fetch(
            method, path, body=body, headers=headers, query=parts.query or None
        )

        if method in CACHEABLE_METHODS:
            try:
                self._cache.set(key, entry)
            except CacheError as exc:
                output.warning(f"Response for {key} not cached: {exc}")

        return entry, "MISS"

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def _bind(self) -> _ProxyHTTPServer:
        if self._httpd is None:
            self._httpd = _ProxyHTTPServer(
                (self._config.host, self._config.port), ProxyRequestHandler, self
            )
        return self._httpd

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        """Accept connections until :meth:`shutdown` is called."""
        httpd = self._bind()
        self._serving = True
        try:
            httpd.serve_forever(poll_interval=poll_interval)
        finally:
            self._serving = False

    def serve_in_background(self) -> threading.Thread:
        """Run :meth:`serve_forever` on a daemon thread and return it."""
        self._bind()
        self._serving = True
        thread = threading.Thread(target=self.serve_forever, name="proxycache-server", daemon=True)
        thread.start()
        return thread

    def shutdown(self) -> None:
        """Stop the accept loop and close the listening socket."""
        if self._httpd is not None:
            # BaseServer.shutdown blocks until a running loop exits.
            if self._serving:
                self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None


class _ProxyHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(
        self,
        address: tuple[str, int],
        handler: type[BaseHTTPRequestHandler],
        proxy: CachingProxyServer,
    ) -> None:
        self.proxy = proxy
        super().__init__(address, handler)


class ProxyRequestHandler(BaseHTTPRequestHandler):
    """Bridges :mod:`http.server` to :meth:`CachingProxyServer.handle_request`."""

    server: _ProxyHTTPServer

    def _read_body(self) -> Optional[bytes]:
        """Read the request body.

        Raises:
            ValueError: If ``Content-Length`` is not a non-negative integer.
        """
        length = int(self.headers.get("Content-Length") or 0)
        if length < 0:
            raise ValueError(f"negative Content-Length: {length}")
        if length == 0:
            return None
        return self.rfile.read(length)

    def _proxy(self) -> None:
        try:
            body = self._read_body()
        except ValueError:
            self.send_error(400, "Invalid Content-Length")
            return
        try:
            entry, cache_status = self.server.proxy.handle_request(
                self.command, self.path, headers=self.headers.items(), body=body
            )
        except UpstreamError as exc:
            get_output().error(str(exc))
            entry, cache_status = _BAD_GATEWAY, "MISS"
        self._write_entry(entry, cache_status)

    def _write_entry(self, entry: CacheEntry, cache_status: str) -> None:
        self.send_response(entry.status_code)
        for name, value in entry.header_items():
            lowered = name.lower()
            if lowered in HOP_BY_HOP_HEADERS or lowered in ("content-length", "x-cache"):
                continue
            self.send_header(name, value)
        self.send_header(CACHE_STATUS_HEADER, cache_status)
        self.send_header("Content-Length", str(len(entry.body)))
        self.end_headers()
        if self.command != "HEAD" and entry.body:
            self.wfile.write(entry.body)

    do_GET = _proxy
    do_HEAD = _proxy
    do_POST = _proxy
    do_PUT = _proxy
    do_PATCH = _proxy
    do_DELETE = _proxy
    do_OPTIONS = _proxy

    def log_message(self, format: str, *args: Any) -> None:
        get_output().debug(f"{self.address_string()} - {format % args}")
