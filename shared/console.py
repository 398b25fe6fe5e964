"""
Ordinal Console
================

Thin layer over :class:`rich.console.Console` so every renderer prints
with one theme: rule-style section headings, tagged status messages,
simple tables and a spinner for slow reads.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Sequence

from rich.console import Console
from rich.status import Status
from rich.table import Table
from rich.theme import Theme

THEME = Theme(
    {
        "ordinal.heading": "bold magenta",
        "ordinal.ok": "green",
        "ordinal.warn": "yellow",
        "ordinal.fail": "bold red",
        "ordinal.note": "cyan",
        "ordinal.border": "bright_cyan",
        "ordinal.column": "bold bright_magenta",
    }
)

# message kind -> (style, tag)
_TAGS: dict[str, tuple[str, str]] = {
    "success": ("ordinal.ok", "OK"),
    "warning": ("ordinal.warn", "WARN"),
    "error": ("ordinal.fail", "ERROR"),
    "info": ("ordinal.note", "INFO"),
}


class OrdinalConsole:
    """Themed console used by the CLI and :mod:`ordinal.output`.

    Args:
        quiet: Discard all output.
        record: Keep a transcript retrievable with :meth:`export_text`.
        width: Fixed width; auto-detected when ``None``.
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        width: int | None = None,
    ) -> None:
        self._console = Console(
            theme=THEME, quiet=quiet, record=record, width=width, highlight=False
        )

    @property
    def rich(self) -> Console:
        """The wrapped Rich console, for renderables built elsewhere."""
        return self._console

    def section(self, title: str) -> None:
        self._console.rule(f"[ordinal.heading]{title}[/ordinal.heading]", style="ordinal.border")
        self._console.print()

    def _tagged(self, kind: str, message: str) -> None:
        style, tag = _TAGS[kind]
        self._console.print(f"[{style}]{tag}[/{style}] {message}")

    def success(self, message: str) -> None:
        self._tagged("success", message)

    def warning(self, message: str) -> None:
        self._tagged("warning", message)

    def error(self, message: str) -> None:
        self._tagged("error", message)

    def info(self, message: str) -> None:
        self._tagged("info", message)

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
        *,
        styles: Sequence[str] = (),
    ) -> None:
        """Print *rows* under *columns*; cells are converted with ``str``."""
        tbl = Table(
            title=title or None,
            border_style="ordinal.border",
            header_style="ordinal.column",
        )
        for index, column in enumerate(columns):
            tbl.add_column(column, style=styles[index] if index < len(styles) else None)
        for row in rows:
            tbl.add_row(*map(str, row))
        self._console.print(tbl)

    @contextmanager
    def status(self, message: str) -> Iterator[Status]:
        """Show a spinner with *message* while the block runs."""
        with self._console.status(message, spinner="dots") as spinner:
            yield spinner

    def print(self, *objects: Any, **kwargs: Any) -> None:
        self._console.print(*objects, **kwargs)

    def blank(self, count: int = 1) -> None:
        self._console.print("\n" * (count - 1))

    def divider(self) -> None:
        self._console.rule(style="dim")

    def export_text(self) -> str:
        """Recorded output as plain text; needs ``record=True``."""
        return self._console.export_text()
