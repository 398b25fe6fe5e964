"""
Ordinal -- PE Export Table Extractor
=====================================

Ordinal reads the export directory of Windows PE32 and PE32+ images and
reports every exported function by name.  It runs on any platform, reads
the file with plain seeks and reads, and never maps or executes it.

Capabilities:
    - DOS / PE signature and optional header validation (PE32, PE32+)
    - Section-table RVA to file offset translation
    - Export name, ordinal and RVA decoding with per-entry fault tolerance
    - Parameter placeholders for decorated (``@``) names
    - Prototype enrichment from C header files
    - Console, JSON, symbol-list and module-definition output

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
    - Pietrek, M. (2002). An In-Depth Look into the Win32 Portable
      Executable File Format. MSDN Magazine.
"""

from ordinal.core.engine import OrdinalEngine
from ordinal.core.models import ExportedFunction, ExportTable
from ordinal.output.console import OrdinalConsoleOutput
from ordinal.output.report import OrdinalReportGenerator
from ordinal.parsers.export_table import parse_exports

__version__ = "1.0.0"
__all__ = [
    "OrdinalEngine",
    "ExportTable",
    "ExportedFunction",
    "parse_exports",
    "OrdinalConsoleOutput",
    "OrdinalReportGenerator",
]
