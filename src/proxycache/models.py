"""Configuration models shared across proxycache modules.

All persisted settings are Pydantic v2 models serialised as JSON in the
user's config directory (see :mod:`proxycache.config`):

* :class:`ServerConfig` -- where the proxy listens and which origin it fronts.
* :class:`CacheConfig` -- which backend stores responses and for how long.
* :class:`OutputConfig` -- default diagnostics/data format.
* :class:`GlobalConfig` -- the root object holding the three above.

The cached value type itself, :class:`~proxycache.cache.entry.CacheEntry`,
lives next to the cache engine in :mod:`proxycache.cache.entry`.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

OUTPUT_FORMATS = ("auto", "json", "plain", "rich")


class CacheBackendKind(str, enum.Enum):
    """Storage backends selectable through :attr:`CacheConfig.backend`.

    ``MEMORY`` is the in-process TTL store with a background sweep, ``DISK``
    the file-per-field store without expiry, and ``DISKCACHE`` a durable
    store that still honours the TTL.
    """

    MEMORY = "memory"
    DISK = "disk"
    DISKCACHE = "diskcache"


class ServerConfig(BaseModel):
    """Listening address and upstream origin for ``proxycache serve``."""

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, description="TCP port to listen on")
    origin: str = Field(
        default="http://dummyjson.com", description="Upstream origin base URL"
    )
    timeout: int = Field(default=30, description="Upstream request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify upstream SSL certificates")
    key_includes_query: bool = Field(
        default=False,
        description="Fold the query string into the cache key (off: /a?x=1 and /a?x=2 share an entry)",
    )

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {value}")
        return value

    @field_validator("origin")
    @classmethod
    def _strip_origin(cls, value: str) -> str:
        return value.rstrip("/")


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`.

    ``cleanup_interval_seconds`` defaults to the TTL itself when unset.
    ``directory`` overrides the XDG cache directory for the persistent
    backends.
    """

    backend: CacheBackendKind = Field(
        default=CacheBackendKind.MEMORY, description="memory, disk or diskcache"
    )
    ttl_seconds: float = Field(default=3600, description="Entry time-to-live in seconds")
    cleanup_interval_seconds: Optional[float] = Field(
        default=None, description="Background sweep interval (defaults to the TTL)"
    )
    directory: Optional[str] = Field(
        default=None, description="Root directory for persistent backends"
    )
    shards: int = Field(default=1, description="Lock shards for the memory backend")

    @field_validator("ttl_seconds")
    @classmethod
    def _check_ttl(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("ttl_seconds must be positive")
        return value

    @field_validator("cleanup_interval_seconds")
    @classmethod
    def _check_interval(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("cleanup_interval_seconds must be positive")
        return value

    @field_validator("shards")
    @classmethod
    def _check_shards(cls, value: int) -> int:
        if value < 1:
            raise ValueError("shards must be at least 1")
        return value

    @property
    def effective_cleanup_interval(self) -> float:
        """The sweep interval, falling back to the TTL."""
        return self.cleanup_interval_seconds or self.ttl_seconds


class OutputConfig(BaseModel):
    """Default output format stored in :class:`GlobalConfig`.

    Used by the root command when neither ``--json`` nor ``--plain`` is given.
    """

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.lower()
        if value not in OUTPUT_FORMATS:
            raise ValueError(f"format must be one of {', '.join(OUTPUT_FORMATS)}")
        return value


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/proxycache/config.json``.

    Loaded and saved by :func:`~proxycache.config.load_global_config` and
    :func:`~proxycache.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~proxycache.config.resolve_config`
    for the full precedence chain.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
