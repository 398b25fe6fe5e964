"""
PE Export Table Decoder
========================

Walks IMAGE_EXPORT_DIRECTORY and its three parallel arrays:

    AddressOfNames         u32 RVA of each exported name, lexically sorted
    AddressOfNameOrdinals  u16 index into AddressOfFunctions, per name
    AddressOfFunctions     u32 RVA of each exported function, by ordinal

Index *i* of the names array and index *i* of the name-ordinals array
describe the same export.  Every RVA is translated to a file offset through
the section table; nothing here depends on the image being loaded.

Packed, stripped and non-exporting images are ordinary inputs, so every
failure in this module degrades: an unreadable directory yields no exports,
and an unresolvable name skips only that entry.

References:
    - Microsoft. (2024). PE Format -- The .edata Section. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format#the-edata-section-image-only
"""

from __future__ import annotations

import logging
import struct
from typing import NamedTuple, Optional, Sequence

from ordinal.analyzers.decoration import DecorationPolicy, at_sign_policy
from ordinal.core.exceptions import TruncatedImage
from ordinal.core.models import (
    ExportDirectoryDescriptor,
    ExportedFunction,
    ExportTable,
    Section,
)
from ordinal.parsers.pe_headers import (
    locate_export_directory,
    read_image_headers,
    read_section_table,
)
from ordinal.parsers.reader import ImageReader, ImageSource, open_image

logger = logging.getLogger(__name__)

# Characteristics, TimeDateStamp, MajorVersion, MinorVersion, Name, Base,
# NumberOfFunctions, NumberOfNames, AddressOfFunctions, AddressOfNames,
# AddressOfNameOrdinals
_EXPORT_DIRECTORY_FMT: str = "<IIHHIIIIIII"
EXPORT_DIRECTORY_SIZE: int = 40


class DecodedExports(NamedTuple):
    """Output of :func:`decode_export_table`."""
    functions: tuple[ExportedFunction, ...] = ()
    descriptor: Optional[ExportDirectoryDescriptor] = None
    dll_name: Optional[str] = None
    unresolved: int = 0


# ---------------------------------------------------------------------------
# RVA translation
# ---------------------------------------------------------------------------

def rva_to_offset(rva: int, sections: Sequence[Section]) -> Optional[int]:
    """Translate an RVA to a file offset.

    The first section whose range ``[VirtualAddress, VirtualAddress +
    max(VirtualSize, SizeOfRawData))`` contains *rva* wins.

    Returns:
        The file offset, or ``None`` if no section maps *rva*.
    """
    for section in sections:
        if section.contains(rva):
            return section.file_offset + (rva - section.virtual_address)
    return None


# ---------------------------------------------------------------------------
# Directory and array readers
# ---------------------------------------------------------------------------

def read_export_directory(
    reader: ImageReader, offset: int
) -> Optional[ExportDirectoryDescriptor]:
    """Read the 40-byte export directory record at *offset*."""
    try:
        fields = reader.unpack_at(_EXPORT_DIRECTORY_FMT, offset, "export_directory")
    except TruncatedImage:
        logger.debug("%s: export directory at 0x%X is truncated", reader.path, offset)
        return None

    return ExportDirectoryDescriptor(
        name_rva=fields[4],
        ordinal_base=fields[5],
        function_count=fields[6],
        name_count=fields[7],
        address_of_functions_rva=fields[8],
        address_of_names_rva=fields[9],
        address_of_name_ordinals_rva=fields[10],
    )


def _read_array(
    reader: ImageReader,
    sections: Sequence[Section],
    rva: int,
    count: int,
    code: str,
    stage: str,
) -> Optional[tuple[int, ...]]:
    """Read *count* little-endian integers of struct type *code* at *rva*."""
    if count == 0:
        return ()
    offset = rva_to_offset(rva, sections)
    if offset is None:
        logger.debug("%s: %s RVA 0x%X is not mapped by any section", reader.path, stage, rva)
        return None
    # Bounds-check before building a format string from an untrusted count.
    try:
        data = reader.read_at(offset, count * struct.calcsize(f"<{code}"), stage)
    except TruncatedImage:
        logger.debug("%s: %s (%d entries) runs past end of file", reader.path, stage, count)
        return None
    return struct.unpack(f"<{count}{code}", data)


def _read_name_table(
    reader: ImageReader,
    sections: Sequence[Section],
    descriptor: ExportDirectoryDescriptor,
) -> list[tuple[int, int]]:
    """Return ``(name_rva, name_ordinal)`` pairs in name-table order.

    Both arrays are required; if either cannot be read the table is empty.
    """
    name_rvas = _read_array(
        reader, sections, descriptor.address_of_names_rva,
        descriptor.name_count, "I", "export_names",
    )
    if name_rvas is None:
        return []
    name_ordinals = _read_array(
        reader, sections, descriptor.address_of_name_ordinals_rva,
        descriptor.name_count, "H", "export_name_ordinals",
    )
    if name_ordinals is None:
        return []
    return list(zip(name_rvas, name_ordinals))


def _read_rva_string(
    reader: ImageReader, sections: Sequence[Section], rva: int
) -> Optional[str]:
    """Resolve *rva* and read the 8-bit NUL-terminated string there.

    Returns ``None`` when the RVA is unmapped or lands at or past the end of
    the file; an empty string at a readable offset is a valid name.
    """
    offset = rva_to_offset(rva, sections)
    if offset is None or reader.available(offset) == 0:
        return None
    return reader.read_cstring(offset).decode("latin-1")


# ---------------------------------------------------------------------------
# Stage 4: export table
# ---------------------------------------------------------------------------

def decode_export_table(
    reader: ImageReader,
    sections: Sequence[Section],
    export_rva: int,
    *,
    decoration_policy: DecorationPolicy = at_sign_policy,
    include_unnamed: bool = False,
) -> DecodedExports:
    """Decode the export directory at *export_rva*.

    Args:
        reader: Open image reader.
        sections: Section table from :func:`read_section_table`.
        export_rva: RVA of IMAGE_EXPORT_DIRECTORY.
        decoration_policy: Maps each name to placeholder parameter types.
        include_unnamed: Also emit ``Ordinal_<n>`` entries for functions that
            are exported by ordinal only.

    Returns:
        The decoded exports; empty when the directory cannot be read.
    """
    offset = rva_to_offset(export_rva, sections)
    if offset is None:
        logger.debug(
            "%s: export directory RVA 0x%X is not mapped by any section",
            reader.path,
            export_rva,
        )
        return DecodedExports()

    descriptor = read_export_directory(reader, offset)
    if descriptor is None:
        return DecodedExports()

    base = descriptor.ordinal_base
    function_rvas = _read_array(
        reader, sections, descriptor.address_of_functions_rva,
        descriptor.function_count, "I", "export_functions",
    ) or ()

    functions: list[ExportedFunction] = []
    unresolved = 0
    pairs = _read_name_table(reader, sections, descriptor)

    for name_rva, name_ordinal in pairs:
        name = _read_rva_string(reader, sections, name_rva)
        if name is None:
            unresolved += 1
            continue
        functions.append(ExportedFunction(
            name=name,
            param_types=decoration_policy(name),
            ordinal=base + name_ordinal,
            rva=function_rvas[name_ordinal] if name_ordinal < len(function_rvas) else None,
        ))

    if unresolved:
        logger.debug("%s: skipped %d unresolvable export names", reader.path, unresolved)

    if include_unnamed:
        named_slots = {name_ordinal for _, name_ordinal in pairs}
        for index, function_rva in enumerate(function_rvas):
            # Zero slots are gaps in the ordinal range, not exports.
            if function_rva == 0 or index in named_slots:
                continue
            functions.append(ExportedFunction(
                name=f"Ordinal_{base + index}",
                ordinal=base + index,
                rva=function_rva,
                named=False,
            ))

    return DecodedExports(
        functions=tuple(functions),
        descriptor=descriptor,
        dll_name=_read_rva_string(reader, sections, descriptor.name_rva),
        unresolved=unresolved,
    )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def read_export_table(
    source: ImageSource,
    *,
    decoration_policy: DecorationPolicy = at_sign_policy,
    include_unnamed: bool = False,
) -> ExportTable:
    """Run the full four-stage pipeline over *source*.

    Args:
        source: A path, an in-memory buffer or a seekable binary stream.
        decoration_policy: See :mod:`ordinal.analyzers.decoration`.
        include_unnamed: See :func:`decode_export_table`.

    Returns:
        The image's :class:`ExportTable`.  An image without an export
        directory yields an empty ``functions`` tuple.

    Raises:
        NotAPEImage: Missing ``MZ`` or ``PE\\0\\0`` signature.
        UnsupportedOptionalHeaderMagic: Neither PE32 nor PE32+.
        TruncatedImage: File ends inside the headers or section table.
        OSError: The path cannot be opened.
    """
    with open_image(source) as reader:
        headers = read_image_headers(reader)
        sections = read_section_table(reader, headers)
        table = ExportTable(
            path=reader.path,
            size=reader.size,
            image_class=headers.image_class,
            sections=sections,
        )

        directory = locate_export_directory(reader, headers)
        if directory is None:
            return table

        decoded = decode_export_table(
            reader,
            sections,
            directory.rva,
            decoration_policy=decoration_policy,
            include_unnamed=include_unnamed,
        )
        return table.model_copy(update={
            "dll_name": decoded.dll_name,
            "functions": decoded.functions,
            "unresolved_names": decoded.unresolved,
        })


def parse_exports(
    source: ImageSource,
    *,
    decoration_policy: DecorationPolicy = at_sign_policy,
    include_unnamed: bool = False,
) -> tuple[ExportedFunction, ...]:
    """Return the exported functions of *source* in name-table order.

    The result is never ``None``: an image without exports yields ``()``.
    Malformed headers raise; see :func:`read_export_table`.
    """
    return read_export_table(
        source,
        decoration_policy=decoration_policy,
        include_unnamed=include_unnamed,
    ).functions
