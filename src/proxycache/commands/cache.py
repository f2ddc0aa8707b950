"""Cache commands -- inspect and empty the persistent response cache.

Only the ``disk`` and ``diskcache`` backends outlive the proxy process; for
the ``memory`` backend these commands act on an empty, freshly created
store and say so.
"""

from __future__ import annotations

from typing import Optional

import typer

from proxycache.models import CacheBackendKind
from proxycache.output import format_response, success, warning


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(backend: Optional[CacheBackendKind], cache_dir: Optional[str]):
    from proxycache.cache import create_cache
    from proxycache.config import get_cache_dir, resolve_config

    config = resolve_config(
        cli_overrides={
            "cache": {
                "backend": backend.value if backend else None,
                "directory": cache_dir,
            }
        }
    )
    if config.cache.backend == CacheBackendKind.MEMORY:
        warning("The memory backend does not persist between runs.")
    return create_cache(config.cache, get_cache_dir(), start_cleanup=False)


@cache_app.command("stats")
def cache_stats(
    backend: Optional[CacheBackendKind] = typer.Option(
        None, "--backend", "-b", help="Cache backend to inspect."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Root directory for persistent backends."
    ),
) -> None:
    """Show the number of cached entries and where they are stored.

    Example::

        proxycache cache stats --backend disk
        proxycache --json cache stats
    """
    with _open_cache(backend, cache_dir) as cache:
        format_response(cache.stats())


@cache_app.command("clear")
def cache_clear(
    backend: Optional[CacheBackendKind] = typer.Option(
        None, "--backend", "-b", help="Cache backend to clear."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Root directory for persistent backends."
    ),
) -> None:
    """Remove every cached response.

    Example::

        proxycache cache clear --backend disk
    """
    with _open_cache(backend, cache_dir) as cache:
        cache.clear()
        success(f"Cleared {cache.backend.kind} cache.")
