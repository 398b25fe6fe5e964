"""
Ordinal Structured Logger
==========================

:class:`OrdinalLogger` routes records to a Rich console handler on stderr
and, when a log file is configured, to a size-rotated file in either a
plain or JSON-lines layout.  Each record carries the component name and
the current operation (``extract``, ``header`` ...), plus any keyword
fields passed at the call site::

    log = OrdinalLogger("engine")
    with log.operation("extract"):
        log.error("bad signature", stage="pe_signature")

Library modules under :mod:`ordinal.parsers` log through plain
``logging.getLogger(__name__)``; this wrapper is for the calling layer.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_STDERR_THEME = Theme(
    {
        "log.level.debug": "dim",
        "log.level.info": "bright_blue",
        "log.level.warning": "yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold reverse red",
    }
)

_PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(tool_name)s/%(operation)s] %(message)s"

# keyword arguments understood by logging.Logger.log itself
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class _JSONLinesFormatter(logging.Formatter):
    """One JSON object per record, for machine-readable log files."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "time": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "tool": getattr(record, "tool_name", None),
            "operation": getattr(record, "operation", None),
            "message": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if fields:
            entry["fields"] = fields
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _stderr_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True, theme=_STDERR_THEME),
        level=level,
        markup=False,
        show_path=False,
        rich_tracebacks=True,
    )
    return handler


def _file_handler(
    path: str | Path, level: int, json_lines: bool, max_bytes: int, backups: int
) -> logging.Handler:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        target, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    if json_lines:
        handler.setFormatter(_JSONLinesFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    return handler


class OrdinalLogger:
    """Component logger with operation scoping and timing.

    Args:
        tool_name: Component name; the stdlib logger is ``ordinal.<tool_name>``.
        log_level: Threshold name such as ``"DEBUG"`` or ``"WARNING"``.
        log_file: Rotating log file path, or ``None`` for console only.
        json_logs: Write the log file as JSON lines.
        max_bytes: Rotation threshold of the log file.
        backup_count: Rotated files kept next to the log file.
        console_output: Attach the Rich stderr handler.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        console_output: bool = True,
    ) -> None:
        self._tool_name = tool_name
        self._operation = "-"

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        self._logger = logging.getLogger(f"ordinal.{tool_name}")
        self._logger.setLevel(level)
        self._logger.propagate = False
        # a second instance for the same component replaces the handlers
        for old in list(self._logger.handlers):
            self._logger.removeHandler(old)
            old.close()

        if console_output:
            self._logger.addHandler(_stderr_handler(level))
        if log_file is not None:
            self._logger.addHandler(
                _file_handler(log_file, level, json_logs, max_bytes, backup_count)
            )

    @contextmanager
    def operation(self, name: str) -> Iterator[OrdinalLogger]:
        """Tag records emitted inside the block with *name*."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log how long the block took, at DEBUG level."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.debug("%s took %.3fs", label, time.perf_counter() - started)

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log *msg*; keyword arguments other than logging's own become fields."""
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        extra = dict(kwargs.pop("extra", None) or {})
        extra.update(tool_name=self._tool_name, operation=self._operation, fields=fields)
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """ERROR record with the active exception's traceback."""
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)
