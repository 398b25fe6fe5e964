"""
Ordinal Extraction Engine
==========================

Caller-side orchestration around the export extractor:

    1. Enforce the configured file-size limit
    2. Run the four-stage extractor (headers, sections, directory, exports)
    3. Merge prototypes from an optional C header
    4. Apply an optional free-text filter

The extractor itself is configuration-free and platform-independent; this
engine is where configuration, logging and enrichment live.  Each call is
self-contained, so one engine may serve several threads at once.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

from shared.config import OrdinalConfig
from shared.logger import OrdinalLogger

from ordinal.analyzers.decoration import policy_for
from ordinal.analyzers.enrichment import count_enriched, enrich
from ordinal.analyzers.search import filter_functions
from ordinal.core.exceptions import ImageTooLargeError, PEFormatError
from ordinal.core.models import ExportTable, Prototype
from ordinal.parsers.export_table import read_export_table
from ordinal.parsers.prototypes import parse_header_file
from ordinal.parsers.reader import ImageSource


class OrdinalEngine:
    """Extracts, enriches and filters the export table of a PE image.

    Usage::

        engine = OrdinalEngine()
        table = engine.extract("user32.dll", header="winuser.h")
        for fn in table.functions:
            print(fn.signature)

    Or from async code::

        table = await engine.extract_async("user32.dll")
    """

    def __init__(
        self,
        config: OrdinalConfig | None = None,
        logger: OrdinalLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Ordinal configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: OrdinalConfig = config or OrdinalConfig()
        self._logger: OrdinalLogger = logger or OrdinalLogger("engine")

    @property
    def config(self) -> OrdinalConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  Main extraction entry point
    # ------------------------------------------------------------------ #

    def extract(
        self,
        source: ImageSource,
        *,
        header: str | Path | None = None,
        filter_text: str | None = None,
    ) -> ExportTable:
        """Extract the export table of *source*.

        Args:
            source: Image path, in-memory buffer or seekable binary stream.
            header: Optional C header whose prototypes enrich matching exports.
            filter_text: Optional case-insensitive filter on name and types.

        Returns:
            The :class:`ExportTable`.  ``functions`` is empty both for images
            with no export directory and when nothing matches the filter.

        Raises:
            PEFormatError: The image headers are malformed.
            ImageTooLargeError: The file exceeds ``max_file_size``.
            OSError: The image or header cannot be read.
        """
        settings = self._config.extractor
        if isinstance(source, (str, os.PathLike)):
            self._check_size(Path(source))

        with self._logger.operation("extract"):
            try:
                with self._logger.timed(f"export table of {source!s:.120}"):
                    table = read_export_table(
                        source,
                        decoration_policy=policy_for(settings.decoration_heuristic),
                        include_unnamed=settings.include_unnamed,
                    )
            except PEFormatError as exc:
                self._logger.debug(str(exc), stage=exc.stage)
                raise

            self._logger.info(
                "%s: %s, %d sections, %d exports",
                table.path,
                table.image_class.value if table.image_class else "unknown",
                len(table.sections),
                len(table.functions),
            )
            if table.unresolved_names:
                self._logger.warning(
                    "%s: %d export names could not be resolved",
                    table.path,
                    table.unresolved_names,
                )

            functions = table.functions
            if header is not None:
                prototypes = self.load_prototypes(header)
                self._logger.info(
                    "Header %s: %d prototypes, %d matching exports",
                    header,
                    len(prototypes),
                    count_enriched(functions, prototypes),
                )
                functions = enrich(functions, prototypes)

            if filter_text:
                functions = filter_functions(functions, filter_text)
                self._logger.debug(
                    "Filter %r kept %d of %d exports",
                    filter_text,
                    len(functions),
                    len(table.functions),
                )

        return table.model_copy(update={"functions": functions})

    async def extract_async(
        self,
        source: ImageSource,
        *,
        header: str | Path | None = None,
        filter_text: str | None = None,
    ) -> ExportTable:
        """Run :meth:`extract` in the default executor.

        Keeps an event loop responsive while the file is read.  Cancelling
        the awaiting task abandons the result; the read itself completes.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.extract(source, header=header, filter_text=filter_text),
        )

    def load_prototypes(self, header: str | Path) -> dict[str, Prototype]:
        """Parse *header* into a name-to-prototype mapping."""
        with self._logger.operation("header"):
            return parse_header_file(header)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _check_size(self, path: Path) -> Optional[int]:
        """Raise :class:`ImageTooLargeError` if *path* exceeds the size limit."""
        size = path.stat().st_size
        limit = self._config.extractor.max_file_size
        if size > limit:
            self._logger.error(f"File too large: {size:,} bytes (max: {limit:,} bytes)")
            raise ImageTooLargeError(str(path), size, limit)
        return size
