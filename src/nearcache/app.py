"""Typer application factory and CLI entry point for nearcache.

This module wires together the top-level Typer application and registers
the built-in sub-command groups (``cache``, ``fetch``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
maps :class:`~nearcache.exceptions.NearcacheError` to its exit code, and
writes a crash log for anything unexpected.

See Also:
    :mod:`nearcache.config`: Configuration resolution.
    :mod:`nearcache.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from nearcache import __version__
from nearcache.commands.cache import cache_app
from nearcache.commands.config import config_app
from nearcache.commands.fetch import fetch_app
from nearcache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="nearcache",
    help="Location-aware response cache for the discovery client.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(cache_app, name="cache", help="Inspect and manage the response cache.")
app.add_typer(fetch_app, name="fetch", help="Load resources through the cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"nearcache {__version__}")
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
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output, including cache hits and misses."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the cache: every read misses, nothing is stored."
    ),
    store_dir: Optional[str] = typer.Option(
        None, "--store-dir", help="Directory of the durable cache store."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the API base URL."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~nearcache.output.OutputManager`, routes
    the ``nearcache`` logger through it, and stores shared options in
    ``ctx.obj`` for the sub-commands.
    """
    from nearcache.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose
    ctx.obj["no_cache"] = no_cache
    ctx.obj["store_dir"] = store_dir
    ctx.obj["base_url"] = base_url


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback under the data directory and return its path."""
    from nearcache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``nearcache`` console script.

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
        sys.exit(130)
    except Exception as exc:
        from nearcache.exceptions import NearcacheError
        from nearcache.output import error

        if isinstance(exc, NearcacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
