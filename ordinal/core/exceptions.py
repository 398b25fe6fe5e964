"""
Ordinal Exceptions
===================

Typed failures raised by the extractor.  Only header-level damage is an
error; a missing or unreadable export table is reported as an empty
result instead.
"""

from __future__ import annotations


class OrdinalError(Exception):
    """Base class for all Ordinal exceptions."""


class PEFormatError(OrdinalError):
    """The image headers are malformed.

    Attributes:
        path: Display path of the image.
        stage: Header stage that failed (``dos_header``, ``pe_signature``,
            ``file_header``, ``optional_header`` or ``section_table``).
    """

    def __init__(self, message: str, *, path: str = "<memory>", stage: str = "") -> None:
        self.path = path
        self.stage = stage
        super().__init__(f"{path}: {message} (stage: {stage})" if stage else f"{path}: {message}")


class NotAPEImage(PEFormatError):
    """The DOS ``MZ`` or ``PE\\0\\0`` signature is missing."""


class InvalidPESignature(NotAPEImage):
    """The DOS header is valid but no ``PE\\0\\0`` signature sits at e_lfanew."""


class UnsupportedOptionalHeaderMagic(PEFormatError):
    """The optional header magic is neither PE32 nor PE32+."""

    def __init__(self, magic: int, *, path: str = "<memory>", stage: str = "optional_header") -> None:
        self.magic = magic
        super().__init__(
            f"unsupported optional header magic 0x{magic:04X}",
            path=path,
            stage=stage,
        )


class TruncatedImage(PEFormatError):
    """A fixed-layout read ran past the end of the image."""

    def __init__(
        self,
        offset: int,
        wanted: int,
        available: int,
        *,
        path: str = "<memory>",
        stage: str = "",
    ) -> None:
        self.offset = offset
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"truncated image: needed {wanted} bytes at 0x{offset:X}, "
            f"{available} available",
            path=path,
            stage=stage,
        )


class ImageTooLargeError(OrdinalError):
    """The image exceeds the configured ``max_file_size``."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"{path}: file too large: {size:,} bytes (max: {limit:,} bytes)"
        )
