"""Typer application and CLI entry point for userauth.

The ``userauth`` command is an administration tool around the library: it
manages the settings file and the file-backed remember-me token store. The
authentication coordinator itself is embedded by applications and has no
CLI surface.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unexpected exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from userauth import __version__
from userauth.commands.config import config_app
from userauth.commands.token import token_app
from userauth.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="userauth",
    help="Administer userauth settings and remember-me tokens.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(token_app, name="token", help="Remember-me token management.")
app.add_typer(config_app, name="config", help="Settings management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"userauth {__version__}")
        raise typer.Exit()


def _enable_debug_logging() -> None:
    """Send ``userauth`` log records at DEBUG and above to stderr."""
    logger = logging.getLogger("userauth")
    if not any(getattr(h, "_userauth_cli", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        handler._userauth_cli = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
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
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global output manager from the CLI flags."""
    from userauth.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _enable_debug_logging()


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback under the data directory and return its path."""
    from userauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``userauth`` console script.

    :class:`~userauth.exceptions.UserAuthError` exits with the error's
    ``exit_code``; any other exception produces a crash log and a generic
    failure exit.
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
        from userauth.exceptions import UserAuthError
        from userauth.output import error

        if isinstance(exc, UserAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
