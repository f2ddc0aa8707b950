"""Shared test fixtures for proxycache.

Provides a controllable clock for expiry tests, isolated config
environments, sample cache entries, output state management, and a CLI
runner. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from proxycache.cache import CacheEntry
from proxycache.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop handlers the CLI callback attaches to the ``proxycache`` logger.

    The handler binds the stderr stream active during the CliRunner
    invocation, which is closed once the test finishes.
    """
    yield
    logger = logging.getLogger("proxycache")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock, safe to read from several threads."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at t=1000s."""
    return FakeClock()


# ---------------------------------------------------------------------------
# Entry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_entry() -> CacheEntry:
    """A JSON response with a repeated header and a comma inside a value."""
    return CacheEntry(
        status_code=200,
        headers={
            "content-type": ["application/json"],
            "set-cookie": ["a=1; Path=/", "b=2; Expires=Wed, 21 Oct 2026 07:28:00 GMT"],
            "x-trace": ["first", "second", "third"],
        },
        body=b'{"users": [{"id": 1, "name": "Ada"}]}',
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all PROXYCACHE_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "PROXYCACHE_ORIGIN",
        "PROXYCACHE_PORT",
        "PROXYCACHE_TTL",
        "PROXYCACHE_BACKEND",
        "PROXYCACHE_CACHE_DIR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
