"""
Synthetic PE image builder for tests.

Produces minimal, well-formed PE32 / PE32+ images with a single section
holding the export directory.  The layout is fixed so tests can patch
individual fields afterwards:

    0x000  DOS header, e_lfanew = 0x80
    0x080  PE signature, COFF file header, optional header
    ...    section table
    0x400  section data (RVA 0x1000)
           +0x000 IMAGE_EXPORT_DIRECTORY
           +0x100 AddressOfFunctions
           +0x200 AddressOfNames
           +0x300 AddressOfNameOrdinals
           +0x380 module name
           +0x400 export name strings
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

E_LFANEW = 0x80
SECTION_RVA = 0x1000
SECTION_FILE_OFFSET = 0x400
SECTION_VIRTUAL_SIZE = 0x1000

DIRECTORY_OFF = 0x000
FUNCTIONS_OFF = 0x100
NAMES_OFF = 0x200
ORDINALS_OFF = 0x300
DLL_NAME_OFF = 0x380
STRINGS_OFF = 0x400

MAX_ENTRIES = 64


@dataclass
class PEImage:
    """A built image plus the file offsets tests need for patching."""

    data: bytearray
    optional_header_offset: int
    section_table_offset: int
    data_directory_offset: int

    @property
    def export_directory_offset(self) -> int:
        return SECTION_FILE_OFFSET + DIRECTORY_OFF

    @property
    def names_offset(self) -> int:
        return SECTION_FILE_OFFSET + NAMES_OFF

    @property
    def ordinals_offset(self) -> int:
        return SECTION_FILE_OFFSET + ORDINALS_OFF

    @property
    def functions_offset(self) -> int:
        return SECTION_FILE_OFFSET + FUNCTIONS_OFF

    def patch_u16(self, offset: int, value: int) -> "PEImage":
        struct.pack_into("<H", self.data, offset, value)
        return self

    def patch_u32(self, offset: int, value: int) -> "PEImage":
        struct.pack_into("<I", self.data, offset, value)
        return self

    def write(self, offset: int, raw: bytes) -> "PEImage":
        end = offset + len(raw)
        if end > len(self.data):
            self.data.extend(b"\x00" * (end - len(self.data)))
        self.data[offset:end] = raw
        return self

    def set_name_rva(self, index: int, rva: int) -> "PEImage":
        return self.patch_u32(self.names_offset + 4 * index, rva)

    def truncate(self, length: int) -> "PEImage":
        del self.data[length:]
        return self

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def save(self, path: Path) -> Path:
        path.write_bytes(self.to_bytes())
        return path


def _align(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment


def build_pe(
    names: Sequence[str] = (),
    *,
    pe32_plus: bool = False,
    exports: bool = True,
    ordinal_base: int = 1,
    function_count: Optional[int] = None,
    name_ordinals: Optional[Sequence[int]] = None,
    function_rvas: Optional[Sequence[int]] = None,
    dll_name: str = "sample.dll",
    section_name: bytes = b".edata",
    extra_sections: Sequence[tuple[bytes, int, int, int, int]] = (),
) -> PEImage:
    """Build a PE image exporting *names*.

    Args:
        names: Export names in name-table order.
        pe32_plus: Build a PE32+ (64-bit) image instead of PE32.
        exports: If ``False`` the export data directory RVA is zero.
        ordinal_base: IMAGE_EXPORT_DIRECTORY.Base.
        function_count: NumberOfFunctions, defaults to ``len(names)``.
        name_ordinals: AddressOfNameOrdinals values, defaults to ``0..n-1``.
        function_rvas: AddressOfFunctions values, defaults to
            ``0x2000 + 0x10 * i``.
        dll_name: Module name stored in the export directory.
        section_name: Name of the section holding the export data.
        extra_sections: Further ``(name, va, vsize, raw_ptr, raw_size)``
            section headers appended after the export section.
    """
    names = list(names)
    if function_count is None:
        function_count = len(names)
    if name_ordinals is None:
        name_ordinals = list(range(len(names)))
    if function_rvas is None:
        function_rvas = [0x2000 + 0x10 * i for i in range(function_count)]
    assert len(names) <= MAX_ENTRIES and function_count <= MAX_ENTRIES

    magic = 0x20B if pe32_plus else 0x10B
    size_of_optional_header = 240 if pe32_plus else 224
    data_directory_rel = 112 if pe32_plus else 96
    machine = 0x8664 if pe32_plus else 0x14C
    number_of_sections = 1 + len(extra_sections)

    # Section payload
    payload = bytearray(STRINGS_OFF)
    name_rvas: list[int] = []
    for name in names:
        name_rvas.append(SECTION_RVA + len(payload))
        payload += name.encode("latin-1") + b"\x00"

    struct.pack_into(
        "<IIHHIIIIIII",
        payload,
        DIRECTORY_OFF,
        0,                                      # Characteristics
        0x5F5E100,                              # TimeDateStamp
        0, 0,                                   # Major/MinorVersion
        SECTION_RVA + DLL_NAME_OFF,             # Name
        ordinal_base,
        function_count,
        len(names),
        SECTION_RVA + FUNCTIONS_OFF,
        SECTION_RVA + NAMES_OFF,
        SECTION_RVA + ORDINALS_OFF,
    )
    for i, rva in enumerate(function_rvas):
        struct.pack_into("<I", payload, FUNCTIONS_OFF + 4 * i, rva)
    for i, rva in enumerate(name_rvas):
        struct.pack_into("<I", payload, NAMES_OFF + 4 * i, rva)
    for i, ordinal in enumerate(name_ordinals):
        struct.pack_into("<H", payload, ORDINALS_OFF + 2 * i, ordinal)
    dll = dll_name.encode("latin-1")[:0x7F] + b"\x00"
    payload[DLL_NAME_OFF:DLL_NAME_OFF + len(dll)] = dll

    raw_size = _align(len(payload), 0x200)
    payload.extend(b"\x00" * (raw_size - len(payload)))

    # Headers
    data = bytearray(SECTION_FILE_OFFSET)
    data[0:2] = b"MZ"
    struct.pack_into("<I", data, 0x3C, E_LFANEW)
    struct.pack_into("<I", data, E_LFANEW, 0x00004550)
    struct.pack_into(
        "<HHIIIHH",
        data,
        E_LFANEW + 4,
        machine,
        number_of_sections,
        0x5F5E100,
        0,
        0,
        size_of_optional_header,
        0x2102,                                 # EXECUTABLE | 32BIT | DLL
    )
    optional_header_offset = E_LFANEW + 24
    struct.pack_into("<H", data, optional_header_offset, magic)
    data_directory_offset = optional_header_offset + data_directory_rel
    if exports:
        struct.pack_into("<II", data, data_directory_offset, SECTION_RVA, 40)

    section_table_offset = optional_header_offset + size_of_optional_header
    headers = [(section_name, SECTION_RVA, SECTION_VIRTUAL_SIZE, SECTION_FILE_OFFSET, raw_size)]
    headers.extend(extra_sections)
    for i, (sec_name, va, vsize, raw_ptr, rsize) in enumerate(headers):
        struct.pack_into(
            "<8sIIII",
            data,
            section_table_offset + 40 * i,
            sec_name,
            vsize,
            va,
            rsize,
            raw_ptr,
        )

    data += payload
    return PEImage(
        data=data,
        optional_header_offset=optional_header_offset,
        section_table_offset=section_table_offset,
        data_directory_offset=data_directory_offset,
    )
