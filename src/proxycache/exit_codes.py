"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~proxycache.exceptions.ProxyCacheError` subclass.
Service managers and shell wrappers can inspect the exit code to tell a
bad invocation from a broken cache directory without parsing stderr.

Example::

    $ proxycache serve --ttl -5
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the TTL must be positive
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or option values."""

EXIT_UPSTREAM_ERROR = 6
"""The upstream origin could not be reached (timeout, DNS failure, connection refused)."""

EXIT_CACHE_ERROR = 8
"""The cache store could not be read, written, or cleared."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
