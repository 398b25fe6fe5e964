"""
Ordinal Configuration
======================

Settings for the calling layer (engine, CLI, renderers), read from a TOML
file into slotted dataclasses.  The extractor itself takes no settings.

File layout::

    [global]
    log_level = "INFO"
    log_file = "logs/ordinal.log"

    [ordinal]
    include_unnamed = true

Keys a section does not declare are ignored, and absent keys keep their
defaults.

References:
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, TypeVar

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]

# config.toml beside the ordinal/ and shared/ packages
DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parents[1] / "config.toml"

OUTPUT_FORMATS: tuple[str, ...] = ("table", "json")

_Section = TypeVar("_Section")


@dataclass(slots=True)
class ExtractorConfig:
    """``[ordinal]``: how the engine runs the extractor."""

    max_file_size: int = 50 * 1024 * 1024
    include_unnamed: bool = False
    decoration_heuristic: bool = True
    output_format: str = "table"


@dataclass(slots=True)
class GlobalConfig:
    """``[global]``: logging and report metadata."""

    log_level: str = "INFO"
    log_file: str | None = None
    log_json: bool = False
    debug: bool = False
    version: str = "1.0.0"


def _section(kind: type[_Section], values: Mapping[str, Any]) -> _Section:
    known = {f.name for f in dataclasses.fields(kind)}  # type: ignore[arg-type]
    return kind(**{k: v for k, v in values.items() if k in known})


@dataclass(slots=True)
class OrdinalConfig:
    """Both configuration sections.

    Usage:
        >>> cfg = OrdinalConfig.load()
        >>> cfg.extractor.include_unnamed
        False
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> OrdinalConfig:
        """Read *path*, or ``config.toml`` at the project root when ``None``.

        A missing default file yields the defaults; a missing explicit file
        is an error.

        Raises:
            FileNotFoundError: *path* was given and does not exist.
            ValueError: Invalid TOML (``tomllib.TOMLDecodeError``) or an
                out-of-range setting.
        """
        source = DEFAULT_CONFIG_PATH if path is None else Path(path)
        if not source.is_file():
            if path is None:
                return cls()
            raise FileNotFoundError(f"Configuration file not found: {source}")

        document = tomllib.loads(source.read_text(encoding="utf-8"))
        config = cls(
            global_settings=_section(GlobalConfig, document.get("global", {})),
            extractor=_section(ExtractorConfig, document.get("ordinal", {})),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject settings the engine cannot honour.

        Raises:
            ValueError: Describing the first offending key.
        """
        limit = self.extractor.max_file_size
        if not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"ordinal.max_file_size must be a positive integer, got {limit!r}")
        if self.extractor.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"ordinal.output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.extractor.output_format!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


_cached: OrdinalConfig | None = None


def get_config(path: str | Path | None = None) -> OrdinalConfig:
    """Shared configuration; loaded on first use or whenever *path* is given."""
    global _cached
    if _cached is None or path is not None:
        _cached = OrdinalConfig.load(path)
    return _cached
