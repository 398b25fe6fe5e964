"""
Ordinal Data Models
====================

Pydantic-based data models for the PE export extraction pipeline.  Every
model is frozen: a parsed header, section or export is a value object that
is built once during a single extraction call and never mutated.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
    - Pietrek, M. (2002). An In-Depth Look into the Win32 Portable
      Executable File Format. MSDN Magazine.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

UNKNOWN_TYPE: str = "unknown"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ImageClass(str, enum.Enum):
    """Optional header flavour, selected by the optional header magic."""
    PE32 = "pe32"
    PE32_PLUS = "pe32+"

    @property
    def bits(self) -> int:
        """Address width of the image class."""
        return 64 if self is ImageClass.PE32_PLUS else 32

    @property
    def data_directory_offset(self) -> int:
        """Offset of DataDirectory[0] from the start of the optional header."""
        return 112 if self is ImageClass.PE32_PLUS else 96


# ---------------------------------------------------------------------------
# Header structures
# ---------------------------------------------------------------------------

class ImageHeaders(BaseModel):
    """Header fields captured once while validating the image.

    Attributes:
        pe_header_offset: File offset of the ``PE\\0\\0`` signature (e_lfanew).
        image_class: PE32 or PE32+.
        machine: COFF machine type.
        number_of_sections: Declared section count.
        time_date_stamp: COFF link timestamp.
        size_of_optional_header: Declared optional header size in bytes.
        characteristics: COFF characteristics flags.
    """
    model_config = ConfigDict(frozen=True)

    pe_header_offset: int
    image_class: ImageClass
    machine: int = 0
    number_of_sections: int = 0
    time_date_stamp: int = 0
    size_of_optional_header: int = 0
    characteristics: int = 0

    @property
    def file_header_offset(self) -> int:
        """File offset of the 20-byte COFF file header."""
        return self.pe_header_offset + 4

    @property
    def optional_header_offset(self) -> int:
        """File offset of the optional header (its magic field)."""
        return self.pe_header_offset + 24

    @property
    def section_table_offset(self) -> int:
        """File offset of the first 40-byte section header."""
        return self.optional_header_offset + self.size_of_optional_header


class Section(BaseModel):
    """One section header, the unit of RVA-to-file-offset translation.

    Attributes:
        name: Section name, trailing padding removed.
        virtual_address: RVA of the section when mapped.
        virtual_size: Size of the section when mapped.
        file_offset: PointerToRawData.
        file_size: SizeOfRawData.
    """
    model_config = ConfigDict(frozen=True)

    name: str = ""
    virtual_address: int = 0
    virtual_size: int = 0
    file_offset: int = 0
    file_size: int = 0

    @property
    def virtual_end(self) -> int:
        """Exclusive end of the RVA range this section translates."""
        return self.virtual_address + max(self.virtual_size, self.file_size)

    def contains(self, rva: int) -> bool:
        """Return ``True`` if *rva* falls inside this section's range."""
        return self.virtual_address <= rva < self.virtual_end


class ExportDirectoryDescriptor(BaseModel):
    """The fields of IMAGE_EXPORT_DIRECTORY used by the decoder."""
    model_config = ConfigDict(frozen=True)

    name_rva: int = 0
    ordinal_base: int = 0
    function_count: int = 0
    name_count: int = 0
    address_of_functions_rva: int = 0
    address_of_names_rva: int = 0
    address_of_name_ordinals_rva: int = 0


# ---------------------------------------------------------------------------
# Export results
# ---------------------------------------------------------------------------

class ExportedFunction(BaseModel):
    """A single exported symbol.

    Type information is not stored in the export table; ``return_type`` stays
    ``"unknown"`` and ``param_types`` only carries placeholders produced by
    the decoration heuristic unless a header prototype enriches the entry.

    Attributes:
        name: Exported name (``Ordinal_<n>`` for ordinal-only exports).
        return_type: Return type, ``"unknown"`` unless enriched.
        param_types: Parameter types in declaration order.
        ordinal: Biased export ordinal (``Base + name ordinal``).
        rva: Function RVA from AddressOfFunctions, if it could be read.
        named: ``False`` for ordinal-only exports.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    return_type: str = UNKNOWN_TYPE
    param_types: tuple[str, ...] = ()
    ordinal: Optional[int] = None
    rva: Optional[int] = None
    named: bool = True

    @property
    def signature(self) -> str:
        """Human-readable C-like signature."""
        return f"{self.return_type} {self.name}({', '.join(self.param_types)})"


class ExportTable(BaseModel):
    """Everything one extraction call learned about an image.

    Attributes:
        path: Display path of the image.
        size: Image size in bytes.
        image_class: PE32 / PE32+.
        dll_name: Module name recorded in the export directory, if any.
        sections: Section table in file order.
        functions: Exported functions in name-table order.
        unresolved_names: Name-table entries that could not be resolved.
    """
    model_config = ConfigDict(frozen=True)

    path: str = ""
    size: int = 0
    image_class: Optional[ImageClass] = None
    dll_name: Optional[str] = None
    sections: tuple[Section, ...] = ()
    functions: tuple[ExportedFunction, ...] = ()
    unresolved_names: int = 0

    @property
    def has_exports(self) -> bool:
        return bool(self.functions)


# ---------------------------------------------------------------------------
# Header prototypes
# ---------------------------------------------------------------------------

class Prototype(BaseModel):
    """A function prototype recovered from a C header.

    Attributes:
        return_type: Normalised return type (``"char *"``, ``"void"``).
        param_types: Normalised parameter types; ``()`` for ``(void)``.
    """
    model_config = ConfigDict(frozen=True)

    return_type: str = UNKNOWN_TYPE
    param_types: tuple[str, ...] = ()
