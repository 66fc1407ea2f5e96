"""Typer application and CLI entry point for querycache.

The ``querycache`` command inspects and invalidates a cache described by a
configuration file (see :mod:`querycache.config`). It never populates
entries: that requires the application's fetch function.

Commands::

    querycache status            # table of registered queries and their state
    querycache show all_books    # print a cached value
    querycache clear --force     # delete every registered entry

The configuration file is taken from ``--config`` or, failing that, found in
the working directory by :func:`~querycache.config.find_configuration`.
"""

from __future__ import annotations

import logging
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from querycache import __version__
from querycache.exceptions import ConfigurationError, QueryCacheError
from querycache.exit_codes import EXIT_GENERIC_FAILURE

_MISSING = object()

app = typer.Typer(
    name="querycache",
    help="Inspect and clear named-query disk caches.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"querycache {__version__}")
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
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Cache configuration file (JSON or YAML)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~querycache.output.OutputManager` and stores
    shared options in ``ctx.obj``.
    """
    from querycache.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _setup_logging()

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["force"] = force


def _setup_logging() -> None:
    """Send library log records to stderr through Rich at DEBUG level."""
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    root = logging.getLogger("querycache")
    root.handlers = [handler]
    root.setLevel(logging.DEBUG)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report a :class:`QueryCacheError` on stderr and exit with its code."""
    from querycache.output import error

    try:
        yield
    except QueryCacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _open_cache(ctx: typer.Context) -> Any:
    """Load the configuration selected by ``--config`` and build the cache."""
    from querycache.cache import QueryCache
    from querycache.config import find_configuration, load_configuration
    from querycache.output import debug

    path = ctx.obj.get("config") if ctx.obj else None
    if path is None:
        path = find_configuration()
    if path is None:
        raise ConfigurationError(
            "No configuration file found. Pass --config or create querycache.yaml"
        )
    debug(f"Using configuration {path}")
    return QueryCache(load_configuration(path))


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show every registered query and whether it is cached.

    Example::

        querycache status
        querycache --json status
    """
    from querycache.output import info, print_table

    with _handle_errors():
        cache = _open_cache(ctx)
        rows = [
            [
                entry.name,
                "cached" if entry.cached else "absent",
                str(entry.size) if entry.size is not None else "-",
            ]
            for entry in cache.entries()
        ]
        info(f"Cache directory: {cache.cache_path}")
        print_table(["query", "state", "bytes"], rows, title="Cached queries")


@app.command("show")
def show_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Registered query name."),
) -> None:
    """Print the cached value of one query without fetching it.

    Example::

        querycache show all_books
    """
    from querycache.output import error, format_value

    with _handle_errors():
        cache = _open_cache(ctx)
        value = cache.peek(name, default=_MISSING)
        if value is _MISSING:
            error(f"Query '{name}' is not cached")
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
        format_value(value)


@app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Delete the cached entry of every registered query.

    Files in the cache directory that do not belong to a registered query
    are left alone. Asks for confirmation unless ``--force`` is active.

    Example::

        querycache clear
        querycache --force clear
    """
    from querycache.output import info, success

    with _handle_errors():
        cache = _open_cache(ctx)
        present = cache.cached_names()
        if not present:
            info("Nothing to clear.")
            return

        force = ctx.obj.get("force", False) if ctx.obj else False
        if not force:
            confirmed = typer.confirm(
                f"Delete {len(present)} cached entr{'y' if len(present) == 1 else 'ies'}?"
            )
            if not confirmed:
                info("Cancelled.")
                raise typer.Exit()

        removed = cache.purge()
        success(f"Cleared {len(removed)} cached entr{'y' if len(removed) == 1 else 'ies'}.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``querycache`` console script.

    :class:`~querycache.exceptions.QueryCacheError` instances that escape a
    command cause a clean exit with the error's ``exit_code``.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except QueryCacheError as exc:
        from querycache.output import error

        error(str(exc))
        sys.exit(exc.exit_code)
