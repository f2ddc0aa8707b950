"""Serve command -- run the caching reverse proxy.

Resolves the effective configuration (CLI flags over environment over
project and global config), builds the configured cache backend, and
blocks serving requests until interrupted. The memory backend's cleanup
sweep and the upstream connection pool are shut down on exit.
"""

from __future__ import annotations

from typing import Optional

import typer

from proxycache.models import CacheBackendKind


def serve_command(
    port: Optional[int] = typer.Option(None, "--port", "-P", help="Port to listen on."),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind."),
    origin: Optional[str] = typer.Option(
        None, "--origin", help="Upstream origin base URL."
    ),
    ttl: Optional[float] = typer.Option(
        None, "--ttl", help="Cache entry time-to-live in seconds."
    ),
    backend: Optional[CacheBackendKind] = typer.Option(
        None, "--backend", "-b", help="Cache backend: memory, disk or diskcache."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Root directory for persistent backends."
    ),
    cleanup_interval: Optional[float] = typer.Option(
        None, "--cleanup-interval", help="Seconds between expiry sweeps (memory backend)."
    ),
    key_includes_query: Optional[bool] = typer.Option(
        None,
        "--key-includes-query/--key-ignores-query",
        help="Include the query string in cache keys.",
    ),
) -> None:
    """Start the caching proxy in front of an origin.

    Example::

        proxycache serve --origin http://dummyjson.com --ttl 3600
        proxycache serve --backend disk --cache-dir ./cache
    """
    from proxycache.cache import create_cache
    from proxycache.config import get_cache_dir, resolve_config
    from proxycache.exceptions import InvalidUsageError
    from proxycache.output import info, success
    from proxycache.proxy import CachingProxyServer, UpstreamClient

    if ttl is not None and ttl <= 0:
        raise InvalidUsageError("--ttl must be positive")
    if cleanup_interval is not None and cleanup_interval <= 0:
        raise InvalidUsageError("--cleanup-interval must be positive")

    config = resolve_config(
        cli_overrides={
            "server": {
                "port": port,
                "host": host,
                "origin": origin,
                "key_includes_query": key_includes_query,
            },
            "cache": {
                "ttl_seconds": ttl,
                "backend": backend.value if backend else None,
                "directory": cache_dir,
                "cleanup_interval_seconds": cleanup_interval,
            },
        }
    )

    cache = create_cache(config.cache, get_cache_dir())
    with cache, UpstreamClient(
        config.server.origin,
        timeout=config.server.timeout,
        verify_ssl=config.server.verify_ssl,
    ) as upstream:
        server = CachingProxyServer(config.server, cache, upstream)
        bound_host, bound_port = server.server_address
        success(f"Caching proxy listening on http://{bound_host}:{bound_port}")
        info(
            f"Origin {config.server.origin}, {cache.backend.kind} cache, "
            f"TTL {config.cache.ttl_seconds:g}s"
        )
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            info("Shutting down.")
        finally:
            server.shutdown()
