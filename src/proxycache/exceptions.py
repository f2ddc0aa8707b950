"""Exception hierarchy for proxycache.

All exceptions inherit from :class:`ProxyCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`proxycache.exit_codes`.
The top-level error handler in :func:`proxycache.app.main` catches
``ProxyCacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

A cache *miss* is never an exception: lookups return ``None`` (or a
``found`` flag) and only genuine I/O problems raise.

Subclass hierarchy::

    ProxyCacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- UpstreamError       (exit 6)
    +-- CacheError          (exit 8)
        +-- CacheWriteError (exit 8)
"""

from proxycache.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_UPSTREAM_ERROR,
)


class ProxyCacheError(Exception):
    """Base exception for all proxycache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`proxycache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ProxyCacheError):
    """Raised for invalid CLI arguments or option values."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(ProxyCacheError):
    """Raised for configuration problems (invalid JSON, values that fail validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class UpstreamError(ProxyCacheError):
    """Raised on network-level failures talking to the origin (timeout, DNS, refused)."""

    exit_code = EXIT_UPSTREAM_ERROR


class CacheError(ProxyCacheError):
    """Raised when a cache backend hits an I/O failure it cannot degrade to a miss."""

    exit_code = EXIT_CACHE_ERROR


class CacheWriteError(CacheError):
    """Raised when storing or clearing entries fails (directory creation, file writes).

    Callers that just fetched a fresh upstream response should log this and
    still serve the response; the only consequence is that it is not cached.
    """
