"""Typer application and CLI entry point for proxycache.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``serve``, ``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~proxycache.exceptions.ProxyCacheError` instances exit with their
own code; any other exception is written to a crash log under the data
directory.

See Also:
    :mod:`proxycache.config`: Configuration resolution.
    :mod:`proxycache.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from proxycache import __version__
from proxycache.commands.cache import cache_app
from proxycache.commands.config import config_app
from proxycache.commands.serve import serve_command
from proxycache.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="proxycache",
    help="Caching reverse proxy for idempotent HTTP requests.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("serve")(serve_command)
app.add_typer(cache_app, name="cache", help="Inspect and clear the response cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"proxycache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output (HIT/MISS lines)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~proxycache.output.OutputManager` from CLI
    flags, falling back to the configured ``output.format``. Routes library
    ``logging`` records (cache backends, sweep thread) to stderr at DEBUG
    level under ``--verbose``, WARNING otherwise.
    """
    from proxycache.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat(_configured_format())

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _configured_format() -> str:
    from proxycache.config import resolve_config
    from proxycache.exceptions import ConfigError

    try:
        return resolve_config().output.format
    except ConfigError:
        # The sub-command resolves config again and reports the error.
        return "auto"


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("proxycache")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from proxycache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``proxycache`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from proxycache.exceptions import ProxyCacheError
        from proxycache.output import error

        if isinstance(exc, ProxyCacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
