"""Output formatting system with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (cache stats, config dumps). This is
  what downstream tools pipe and parse.
* **stderr** -- all diagnostics (startup banner, HIT/MISS lines, warnings,
  errors). Never contaminates the data stream.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags. Created once in
   :func:`~proxycache.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``
   instance so callers do not need to pass the manager around.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Maintains two Rich :class:`~rich.console.Console` instances -- one for
    stdout (data) and one for stderr (diagnostics). Proxy request threads
    write HIT/MISS lines through the same manager; Rich consoles serialise
    concurrent writes internally.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render structured data to stdout in the resolved :attr:`format`.

        Args:
            data: Typically a dict (cache stats, config dump) or a string.
        """
        if self._format == OutputFormat.JSON:
            self._print_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._print_rich(data)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        """Print a green success message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a yellow warning to stderr. NOT suppressed by ``--quiet``."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print a bold-red error to stderr. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown when ``--verbose`` is active."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]\\[debug] {message}[/dim]")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _print_json(self, data: Any) -> None:
        if isinstance(data, str):
            self.print_data(data)
        else:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in _flatten(data):
                self.print_data(f"{key}\t{value}")
        else:
            self.print_data(str(data))

    def _print_rich(self, data: Any) -> None:
        if isinstance(data, (dict, list)):
            json_str = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(json_str, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _flatten(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """Flatten nested dicts into dotted ``(key, value)`` pairs for plain output."""
    items: list[tuple[str, Any]] = []
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            items.extend(_flatten(value, prefix=f"{name}."))
        else:
            items.append((name, value))
    return items


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def format_response(data: Any) -> None:
    """Render structured data to stdout via the global OutputManager."""
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def debug(message: str) -> None:
    get_output().debug(message)
