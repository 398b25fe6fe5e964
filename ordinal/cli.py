"""
Ordinal CLI -- PE Export Table Extractor
=========================================

Click-based command-line interface for listing the functions a PE32/PE32+
image exports, optionally enriched with prototypes from a C header.

Usage::

    # Export table of a DLL
    ordinal user32.dll

    # Merge prototypes from a header and show call snippets
    ordinal mylib.dll --header mylib.h --snippets

    # Only exports mentioning "Window"
    ordinal user32.dll --filter window

    # Machine-readable output
    ordinal user32.dll --json

    # Write a module-definition file
    ordinal mylib.dll --output mylib.def

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import nullcontext

import click

from shared.config import OrdinalConfig
from shared.console import OrdinalConsole
from shared.logger import OrdinalLogger

from ordinal.core.engine import OrdinalEngine
from ordinal.core.exceptions import OrdinalError
from ordinal.output.console import OrdinalConsoleOutput
from ordinal.output.report import OrdinalReportGenerator


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------

@click.command("ordinal")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--header", "-H",
    "header_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="C header whose prototypes enrich matching exports.",
)
@click.option(
    "--filter", "-f",
    "filter_text",
    default=None,
    help="Only show exports whose name or types contain TEXT (case-insensitive).",
)
@click.option(
    "--include-unnamed", "-u",
    is_flag=True,
    default=False,
    help="Also list ordinal-only exports as Ordinal_<n>.",
)
@click.option(
    "--no-decoration",
    is_flag=True,
    default=False,
    help="Do not guess parameters from decorated (@) names.",
)
@click.option(
    "--snippets", "-s",
    is_flag=True,
    default=False,
    help="Show a call template for every export.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output results as JSON to stdout.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the export list to a file (.json, .def, or plain text).",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
def ordinal_cli(
    path: str,
    header_path: str | None,
    filter_text: str | None,
    include_unnamed: bool,
    no_decoration: bool,
    snippets: bool,
    json_output: bool,
    output_path: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Ordinal -- PE Export Table Extractor.

    List the functions exported by a Windows PE32 or PE32+ image.  Types
    are reported as "unknown" unless a --header provides prototypes.

    PATH is the path to the DLL or EXE to inspect.

    Examples:

    \b
        python -m ordinal kernel32.dll --filter file
        python -m ordinal mylib.dll --header mylib.h --snippets
    """
    console = OrdinalConsole()

    try:
        config = OrdinalConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot load configuration: {exc}")
        sys.exit(1)

    if config.extractor.output_format == "json":
        json_output = True
    if include_unnamed:
        config.extractor.include_unnamed = True
    if no_decoration:
        config.extractor.decoration_heuristic = False

    settings = config.global_settings
    logger = OrdinalLogger(
        "cli",
        log_level="DEBUG" if verbose or settings.debug else settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
    )
    engine = OrdinalEngine(config=config, logger=logger)

    status = nullcontext() if json_output else console.status("Reading export table...")

    try:
        with status:
            table = asyncio.run(
                engine.extract_async(path, header=header_path, filter_text=filter_text)
            )
    except KeyboardInterrupt:
        console.warning("Extraction interrupted by user.")
        sys.exit(130)
    except (OrdinalError, OSError) as exc:
        console.error(f"Extraction failed: {exc}")
        if verbose:
            logger.exception("Extraction failed")
        sys.exit(1)

    report_gen = OrdinalReportGenerator(version=settings.version)

    # JSON output mode
    if json_output:
        click.echo(json.dumps(report_gen.build_json(table), indent=2, default=str))
    else:
        OrdinalConsoleOutput(console=console).display(table, snippets=snippets)
        if filter_text:
            console.info(f"Filter '{filter_text}': {len(table.functions)} match(es)")

    if output_path:
        try:
            report_path = report_gen.generate(table, output_path)
        except OSError as exc:
            console.error(f"Cannot write {output_path}: {exc}")
            sys.exit(1)
        if not json_output:
            console.success(f"Export list saved: {report_path}")


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for the ``ordinal`` console script."""
    ordinal_cli()


if __name__ == "__main__":
    main()
