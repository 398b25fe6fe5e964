"""
Ordinal Console Output
=======================

Rich-powered terminal display for export extraction results: an image
summary panel, the section table, and the export table with optional
call snippets.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from shared.console import OrdinalConsole

from ordinal.analyzers.decoration import stdcall_argument_bytes
from ordinal.analyzers.snippets import make_snippet
from ordinal.core.models import UNKNOWN_TYPE, ExportedFunction, ExportTable, Section


def _hex(value: int | None, width: int = 8) -> str:
    if value is None:
        return "-"
    return f"0x{value:0{width}x}"


def _type_cell(type_name: str) -> str:
    """Dim unknown types so real prototypes stand out."""
    if type_name == UNKNOWN_TYPE:
        return f"[dim]{UNKNOWN_TYPE}[/dim]"
    return escape(type_name)


def _params_cell(fn: ExportedFunction) -> str:
    params = ", ".join(_type_cell(p) for p in fn.param_types)
    arg_bytes = stdcall_argument_bytes(fn.name)
    if arg_bytes is not None and all(p == UNKNOWN_TYPE for p in fn.param_types):
        params = f"{params} [dim]({arg_bytes} arg bytes)[/dim]".strip()
    return params


# ---------------------------------------------------------------------------
# OrdinalConsoleOutput
# ---------------------------------------------------------------------------

class OrdinalConsoleOutput:
    """Rich terminal display for :class:`ExportTable` results.

    Usage::

        output = OrdinalConsoleOutput()
        output.display(table, snippets=True)
    """

    def __init__(self, console: OrdinalConsole | None = None) -> None:
        self._console: OrdinalConsole = console or OrdinalConsole()

    def display(self, table: ExportTable, *, snippets: bool = False) -> None:
        """Display the complete extraction result."""
        self._console.section("ORDINAL -- PE Export Table")

        self.display_header(table)

        if table.sections:
            self.display_sections(table.sections)

        if table.functions:
            self.display_exports(table.functions)
            if snippets:
                self.display_snippets(table.functions)
        else:
            self._console.warning("No exported functions found.")

        if table.unresolved_names:
            self._console.warning(
                f"{table.unresolved_names} export name(s) could not be resolved."
            )

        self._console.divider()

    def display_header(self, table: ExportTable) -> None:
        """Display the image summary panel."""
        image_class = table.image_class.value.upper() if table.image_class else "?"
        bits = table.image_class.bits if table.image_class else 0
        named = sum(1 for fn in table.functions if fn.named)

        lines: list[str] = [
            f"[bold]File:[/bold]      {escape(table.path)}",
            f"[bold]Size:[/bold]      {table.size:,} bytes ({table.size / 1024:.1f} KiB)",
            f"[bold]Format:[/bold]    {image_class} ({bits}-bit)",
            f"[bold]Sections:[/bold]  {len(table.sections)}",
            f"[bold]Exports:[/bold]   {len(table.functions)} ({named} named)",
        ]
        if table.dll_name:
            lines.insert(1, f"[bold]Module:[/bold]    {escape(table.dll_name)}")

        panel = Panel(
            "\n".join(lines),
            title="[bold bright_cyan]Image Information[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.rich.print(panel)
        self._console.blank()

    def display_sections(self, sections: Sequence[Section]) -> None:
        """Display the section table used for RVA translation."""
        self._console.section("Sections")

        rows = [
            (
                i,
                escape(sec.name) or "[dim](none)[/dim]",
                _hex(sec.virtual_address),
                _hex(sec.virtual_size),
                _hex(sec.file_offset),
                _hex(sec.file_size),
            )
            for i, sec in enumerate(sections, 1)
        ]
        self._console.table(
            "",
            ["#", "Name", "VirtAddr", "VirtSize", "RawOffset", "RawSize"],
            rows,
            styles=["dim", "bold", "", "", "", ""],
        )
        self._console.blank()

    def display_exports(self, functions: Sequence[ExportedFunction]) -> None:
        """Display the export table."""
        self._console.section(f"Exports ({len(functions)})")

        tbl = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        tbl.add_column("Name", style="bold", min_width=16)
        tbl.add_column("Ordinal", justify="right")
        tbl.add_column("RVA", justify="right")
        tbl.add_column("Return")
        tbl.add_column("Parameters")

        for fn in functions:
            name = escape(fn.name) if fn.named else f"[italic dim]{escape(fn.name)}[/italic dim]"
            params = _params_cell(fn)
            tbl.add_row(
                name,
                str(fn.ordinal) if fn.ordinal is not None else "-",
                _hex(fn.rva),
                _type_cell(fn.return_type),
                params or "[dim](none)[/dim]",
            )

        self._console.rich.print(tbl)
        self._console.blank()

    def display_snippets(self, functions: Sequence[ExportedFunction]) -> None:
        """Display a call template per export."""
        self._console.section("Call Snippets")
        for fn in functions:
            self._console.print(escape(make_snippet(fn)))
        self._console.blank()
