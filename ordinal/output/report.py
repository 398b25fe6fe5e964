"""
Ordinal Report Generator
=========================

Writes extraction results to disk in three formats:

    * JSON: the full :class:`ExportTable` plus generation metadata, for
      machine consumption.
    * Symbol list: one export name per line.
    * Module-definition (``.def``): ``LIBRARY`` / ``EXPORTS`` listing with
      ``name @ordinal`` entries, usable by linkers to rebuild an import
      library.

References:
    - Microsoft. (2024). Module-Definition (.Def) Files. Microsoft Learn.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path, PureWindowsPath
from typing import Any

from ordinal.core.models import ExportTable


class OrdinalReportGenerator:
    """Writes :class:`ExportTable` results as JSON, text or ``.def`` files.

    Every ``generate_*`` method creates missing parent directories and
    returns the absolute path of the file it wrote.
    """

    def __init__(self, version: str = "1.0.0") -> None:
        self._version = version

    # ------------------------------------------------------------------ #
    #  JSON
    # ------------------------------------------------------------------ #

    def build_json(self, table: ExportTable) -> dict[str, Any]:
        """Return the JSON-serialisable report body for *table*."""
        return {
            "report_type": "ordinal_export_table",
            "version": self._version,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "export_count": len(table.functions),
            "image": table.model_dump(mode="json"),
        }

    def generate_json(self, table: ExportTable, output_path: str | Path) -> str:
        """Generate a structured JSON report.

        Args:
            table: The ExportTable to report.
            output_path: Filesystem path for the output JSON file.

        Returns:
            The absolute path of the generated report.
        """
        path = self._prepare(output_path)
        path.write_text(
            json.dumps(self.build_json(table), indent=2, default=str),
            encoding="utf-8",
        )
        return str(path.resolve())

    # ------------------------------------------------------------------ #
    #  Plain symbol list
    # ------------------------------------------------------------------ #

    def generate_symbol_list(self, table: ExportTable, output_path: str | Path) -> str:
        """Write one export name per line."""
        path = self._prepare(output_path)
        lines = [fn.name for fn in table.functions]
        path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
        return str(path.resolve())

    # ------------------------------------------------------------------ #
    #  Module-definition file
    # ------------------------------------------------------------------ #

    def render_def(self, table: ExportTable) -> str:
        """Render *table* as module-definition text."""
        library = table.dll_name or PureWindowsPath(table.path).name or "UNKNOWN"
        lines = [f"LIBRARY {library}", "EXPORTS"]
        for fn in table.functions:
            if not fn.named:
                if fn.ordinal is not None:
                    lines.append(f"    {fn.name} @{fn.ordinal} NONAME")
                continue
            if fn.ordinal is None:
                lines.append(f"    {fn.name}")
            else:
                lines.append(f"    {fn.name} @{fn.ordinal}")
        return "\n".join(lines) + "\n"

    def generate_def(self, table: ExportTable, output_path: str | Path) -> str:
        """Write a module-definition (``.def``) file for *table*."""
        path = self._prepare(output_path)
        path.write_text(self.render_def(table), encoding="utf-8")
        return str(path.resolve())

    # ------------------------------------------------------------------ #
    #  Dispatch
    # ------------------------------------------------------------------ #

    def generate(self, table: ExportTable, output_path: str | Path) -> str:
        """Pick the format from the file suffix (``.json``, ``.def``, else text)."""
        suffix = Path(output_path).suffix.lower()
        if suffix == ".json":
            return self.generate_json(table, output_path)
        if suffix == ".def":
            return self.generate_def(table, output_path)
        return self.generate_symbol_list(table, output_path)

    @staticmethod
    def _prepare(output_path: str | Path) -> Path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
