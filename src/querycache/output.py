"""Terminal output for the querycache CLI.

Cached values and the status table are written to stdout; everything else
(progress notes, confirmations of success, errors, debug lines) goes to
stderr so that ``querycache show all_books --json | jq`` stays clean.

Three renderings exist. ``rich`` is used on an interactive terminal with
colour enabled, ``plain`` when piped or when colour is off (``NO_COLOR``,
``TERM=dumb`` or ``--no-color``), and ``json`` when asked for explicitly.

The CLI callback builds one :class:`OutputManager` and installs it with
:func:`set_output`; commands call the module-level functions.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Rendering for stdout. ``AUTO`` picks ``RICH`` or ``PLAIN`` at startup."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders cached values and tables, and writes diagnostics.

    Args:
        format: Requested rendering.
        no_color: Never emit colour or markup.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages.
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
            rich_ok = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def format_value(self, data: Any) -> None:
        """Write one cached value.

        Plain mode prints a list one item per line and a mapping one
        ``key<TAB>value`` pair per line; a mapping inside a list becomes one
        tab-separated line of its values.
        """
        if self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
            return
        text = json.dumps(data, indent=2, ensure_ascii=False)
        if self._format == OutputFormat.JSON:
            self.print_data(text)
        else:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "", "{}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "", "[green]{}[/green]")

    def error(self, message: str) -> None:
        self._diagnostic(message, "Error: ", "[bold red]Error:[/bold red] {}")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(message, "[debug] ", "[dim]\\[debug] {}[/dim]")

    def _diagnostic(self, message: str, prefix: str, markup: str) -> None:
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(message))


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{_plain_cell(value)}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(_plain_cell(v) for v in item.values())
            if isinstance(item, dict)
            else _plain_cell(item)
            for item in data
        ]
    return [_plain_cell(data)]


def _plain_cell(value: Any) -> str:
    # Strings print bare; everything else in its JSON spelling (null, true, [..]).
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# --- global instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """The installed manager, or a default one created on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Tests call this between runs."""
    global _output
    _output = None


def format_value(data: Any) -> None:
    get_output().format_value(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
