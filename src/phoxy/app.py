"""Typer application and CLI entry point for phoxy.

The root application carries the options shared by every sub-command
(adapter and directory overrides, output format, verbosity) and registers
the ``cache`` and ``config`` command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`phoxy.commands.cache`: Cache inspection and management commands.
    :mod:`phoxy.config`: Configuration resolution.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from phoxy import __version__
from phoxy.commands.cache import cache_app
from phoxy.commands.config import config_app
from phoxy.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="phoxy",
    help="Inspect and manage the phoxy proxy response cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(cache_app, name="cache", help="Inspect and manage cached responses.")
app.add_typer(config_app, name="config", help="View and modify configuration.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"phoxy {__version__}")
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
    adapter: Optional[str] = typer.Option(
        None, "--adapter", "-a", help="Cache adapter: array, filesystem, diskcache."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory of the on-disk cache."
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file to use instead of the default."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~phoxy.output.OutputManager`, configures
    logging for ``--verbose``, and stores the shared options in
    ``ctx.obj`` for the sub-commands.
    """
    from phoxy.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["adapter"] = adapter
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["config_file"] = config_file
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _configure_logging(verbose: bool) -> None:
    """Send phoxy's log records to stderr; debug level with ``--verbose``."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("phoxy").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from phoxy.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``phoxy`` console script.

    Unhandled :class:`~phoxy.exceptions.PhoxyError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

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
        from phoxy.exceptions import PhoxyError
        from phoxy.output import error

        if isinstance(exc, PhoxyError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
