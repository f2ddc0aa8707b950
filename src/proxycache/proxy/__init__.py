"""Caching reverse proxy built around :mod:`proxycache.cache`.

* :class:`UpstreamClient` -- httpx-based fetch of one request from the origin.
* :class:`CachingProxyServer` -- threaded HTTP server that serves GET hits
  from the cache and marks responses with ``X-Cache: HIT|MISS``.
"""

from proxycache.proxy.server import CachingProxyServer
from proxycache.proxy.upstream import UpstreamClient

__all__ = ["CachingProxyServer", "UpstreamClient"]
