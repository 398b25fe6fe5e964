"""
PE/COFF Header Parsing
=======================

The first three stages of export extraction:

    1. Image header reader -- DOS ``MZ`` stub, ``PE\\0\\0`` signature,
       COFF file header and optional header magic (PE32 vs PE32+).
    2. Section table reader -- the ordered section headers that drive every
       later RVA translation.
    3. Directory locator -- DataDirectory[0], the export directory.

Stages 1 and 2 raise typed errors on malformed input.  Stage 3 never
raises: a missing or unreadable data directory simply means the image has
no exports.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
    - Pietrek, M. (1994). Peering Inside the PE: A Tour of the Win32
      Portable Executable File Format. Microsoft Systems Journal.
"""

from __future__ import annotations

import logging
import struct
from typing import NamedTuple, Optional

from ordinal.core.exceptions import (
    InvalidPESignature,
    NotAPEImage,
    TruncatedImage,
    UnsupportedOptionalHeaderMagic,
)
from ordinal.core.models import ImageClass, ImageHeaders, Section
from ordinal.parsers.reader import ImageReader

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# PE Constants
# ---------------------------------------------------------------------------

MZ_MAGIC: bytes = b"MZ"
PE_SIGNATURE: int = 0x00004550  # "PE\0\0" read as a little-endian DWORD
E_LFANEW_OFFSET: int = 0x3C

PE32_MAGIC: int = 0x10B
PE32PLUS_MAGIC: int = 0x20B

_IMAGE_CLASSES: dict[int, ImageClass] = {
    PE32_MAGIC: ImageClass.PE32,
    PE32PLUS_MAGIC: ImageClass.PE32_PLUS,
}

# Machine, NumberOfSections, TimeDateStamp, PointerToSymbolTable,
# NumberOfSymbols, SizeOfOptionalHeader, Characteristics
_FILE_HEADER_FMT: str = "<HHIIIHH"

# Name[8], VirtualSize, VirtualAddress, SizeOfRawData, PointerToRawData;
# the trailing 16 bytes of IMAGE_SECTION_HEADER are not needed.
_SECTION_FMT: str = "<8sIIII"
SECTION_HEADER_SIZE: int = 40

IMAGE_DIRECTORY_ENTRY_EXPORT: int = 0
_DATA_DIRECTORY_ENTRY_SIZE: int = 8


class DataDirectory(NamedTuple):
    """One IMAGE_DATA_DIRECTORY entry."""
    rva: int
    size: int


# ---------------------------------------------------------------------------
# Stage 1: image headers
# ---------------------------------------------------------------------------

def read_image_headers(reader: ImageReader) -> ImageHeaders:
    """Validate the DOS and PE signatures and capture the file header.

    Args:
        reader: Reader positioned anywhere in the image.

    Returns:
        The parsed :class:`ImageHeaders`.

    Raises:
        NotAPEImage: The image does not start with ``MZ``.
        InvalidPESignature: No ``PE\\0\\0`` signature at e_lfanew.
        UnsupportedOptionalHeaderMagic: Magic is neither 0x10B nor 0x20B.
        TruncatedImage: A header field lies past end of file.
    """
    if reader.size < len(MZ_MAGIC) or reader.read_at(0, 2, "dos_header") != MZ_MAGIC:
        raise NotAPEImage(
            "not a PE image (MZ header missing)",
            path=reader.path,
            stage="dos_header",
        )

    e_lfanew = reader.u32_at(E_LFANEW_OFFSET, "dos_header")

    signature = reader.u32_at(e_lfanew, "pe_signature")
    if signature != PE_SIGNATURE:
        raise InvalidPESignature(
            f"invalid PE signature 0x{signature:08X} at 0x{e_lfanew:X}",
            path=reader.path,
            stage="pe_signature",
        )

    (
        machine,
        number_of_sections,
        time_date_stamp,
        _pointer_to_symbol_table,
        _number_of_symbols,
        size_of_optional_header,
        characteristics,
    ) = reader.unpack_at(_FILE_HEADER_FMT, e_lfanew + 4, "file_header")

    magic = reader.u16_at(e_lfanew + 24, "optional_header")
    image_class = _IMAGE_CLASSES.get(magic)
    if image_class is None:
        raise UnsupportedOptionalHeaderMagic(magic, path=reader.path)

    headers = ImageHeaders(
        pe_header_offset=e_lfanew,
        image_class=image_class,
        machine=machine,
        number_of_sections=number_of_sections,
        time_date_stamp=time_date_stamp,
        size_of_optional_header=size_of_optional_header,
        characteristics=characteristics,
    )
    logger.debug(
        "%s: e_lfanew=0x%X class=%s sections=%d optional_header=%d bytes",
        reader.path,
        e_lfanew,
        image_class.value,
        number_of_sections,
        size_of_optional_header,
    )
    return headers


# ---------------------------------------------------------------------------
# Stage 2: section table
# ---------------------------------------------------------------------------

def _section_name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].rstrip().decode("latin-1")


def read_section_table(reader: ImageReader, headers: ImageHeaders) -> tuple[Section, ...]:
    """Read all declared section headers in file order.

    Raises:
        TruncatedImage: Fewer section headers than declared are readable.
    """
    count = headers.number_of_sections
    if count == 0:
        return ()

    table = reader.read_at(
        headers.section_table_offset,
        count * SECTION_HEADER_SIZE,
        "section_table",
    )

    sections: list[Section] = []
    for i in range(count):
        raw_name, virtual_size, virtual_address, raw_size, raw_ptr = struct.unpack_from(
            _SECTION_FMT, table, i * SECTION_HEADER_SIZE
        )
        sections.append(Section(
            name=_section_name(raw_name),
            virtual_address=virtual_address,
            virtual_size=virtual_size,
            file_offset=raw_ptr,
            file_size=raw_size,
        ))
    return tuple(sections)


# ---------------------------------------------------------------------------
# Stage 3: export directory
# ---------------------------------------------------------------------------

def locate_export_directory(
    reader: ImageReader, headers: ImageHeaders
) -> Optional[DataDirectory]:
    """Return the export DataDirectory entry, or ``None`` when absent.

    ``None`` covers both a zero RVA (the image exports nothing) and a data
    directory that lies past end of file.
    """
    offset = (
        headers.optional_header_offset
        + headers.image_class.data_directory_offset
        + IMAGE_DIRECTORY_ENTRY_EXPORT * _DATA_DIRECTORY_ENTRY_SIZE
    )
    try:
        rva, size = reader.unpack_at("<II", offset, "data_directory")
    except TruncatedImage:
        logger.debug("%s: data directory at 0x%X is past end of file", reader.path, offset)
        return None

    if rva == 0:
        logger.debug("%s: no export directory", reader.path)
        return None
    return DataDirectory(rva, size)
