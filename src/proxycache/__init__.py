"""proxycache -- a caching reverse proxy for idempotent HTTP requests.

GET responses from the upstream origin are stored under ``"<METHOD>-<PATH>"``
keys and replayed without contacting the origin until their time-to-live
elapses. Two storage designs are available: an in-process TTL store swept
by a background thread, and a disk store that survives restarts.

Typical workflow::

    proxycache serve --origin http://dummyjson.com --ttl 3600
    proxycache cache stats
    proxycache cache clear

Modules:
    app: Typer application and CLI entry point.
    cache: TTL store, cleanup scheduler, disk backends and cache facade.
    proxy: Upstream client and threaded caching proxy server.
    models: Pydantic configuration models.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
