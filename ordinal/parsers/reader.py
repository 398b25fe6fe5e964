"""
Random-Access Image Reader
===========================

Bounds-checked, little-endian reads over a seekable binary stream.

Every read names the pipeline stage it belongs to, so a read that runs
past the end of the image surfaces as :class:`TruncatedImage` tagged with
that stage instead of a bare :mod:`struct` error.  The whole file is never
loaded into memory; each read seeks to its absolute offset first.
"""

from __future__ import annotations

import io
import os
import struct
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Union

from ordinal.core.exceptions import TruncatedImage

ImageSource = Union[str, "os.PathLike[str]", bytes, bytearray, memoryview, BinaryIO]

# Upper bound for a single NUL-terminated export name.
MAX_NAME_LENGTH: int = 4096

_CHUNK_SIZE: int = 64


class ImageReader:
    """Seek-and-read access to one PE image.

    Args:
        stream: A readable, seekable binary stream.
        path: Display path used in error messages.
    """

    def __init__(self, stream: BinaryIO, path: str = "<memory>") -> None:
        self._stream = stream
        self._path = path
        self._size = stream.seek(0, io.SEEK_END)

    @property
    def path(self) -> str:
        return self._path

    @property
    def size(self) -> int:
        """Total size of the image in bytes."""
        return self._size

    def available(self, offset: int) -> int:
        """Number of bytes readable from *offset* to end of image."""
        if offset < 0:
            return 0
        return max(self._size - offset, 0)

    def read_at(self, offset: int, length: int, stage: str) -> bytes:
        """Read exactly *length* bytes at *offset*.

        Raises:
            TruncatedImage: If fewer than *length* bytes are available.
        """
        available = self.available(offset)
        if offset < 0 or length > available:
            raise TruncatedImage(
                offset, length, available, path=self._path, stage=stage
            )
        self._stream.seek(offset)
        data = self._stream.read(length)
        if len(data) != length:
            raise TruncatedImage(
                offset, length, len(data), path=self._path, stage=stage
            )
        return data

    def unpack_at(self, fmt: str, offset: int, stage: str) -> tuple:
        """Read and unpack a fixed-layout :mod:`struct` record at *offset*."""
        return struct.unpack(fmt, self.read_at(offset, struct.calcsize(fmt), stage))

    def u16_at(self, offset: int, stage: str) -> int:
        return self.unpack_at("<H", offset, stage)[0]

    def u32_at(self, offset: int, stage: str) -> int:
        return self.unpack_at("<I", offset, stage)[0]

    def read_cstring(self, offset: int, limit: int = MAX_NAME_LENGTH) -> bytes:
        """Read a NUL-terminated byte string starting at *offset*.

        Stops at the first NUL, at end of image, or after *limit* bytes,
        whichever comes first.  Returns ``b""`` for an offset at or past
        end of image.
        """
        remaining = min(self.available(offset), limit)
        if remaining <= 0:
            return b""

        self._stream.seek(offset)
        parts: list[bytes] = []
        while remaining > 0:
            chunk = self._stream.read(min(_CHUNK_SIZE, remaining))
            if not chunk:
                break
            nul = chunk.find(b"\x00")
            if nul != -1:
                parts.append(chunk[:nul])
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)


# ---------------------------------------------------------------------------
# Source acquisition
# ---------------------------------------------------------------------------

def describe_source(source: ImageSource) -> str:
    """Return a display path for any accepted image source."""
    if isinstance(source, (str, os.PathLike)):
        return str(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return "<memory>"
    return str(getattr(source, "name", "<stream>"))


@contextmanager
def open_image(source: ImageSource) -> Iterator[ImageReader]:
    """Open *source* for one read session.

    Paths are opened here and closed on every exit path.  In-memory buffers
    are wrapped in :class:`io.BytesIO`.  Caller-supplied streams are used
    as-is and left open for the caller to close.

    Raises:
        FileNotFoundError: If a path does not exist.
    """
    path = describe_source(source)
    if isinstance(source, (str, os.PathLike)):
        with open(Path(source), "rb") as fh:
            yield ImageReader(fh, path)
    elif isinstance(source, (bytes, bytearray, memoryview)):
        with io.BytesIO(bytes(source)) as buf:
            yield ImageReader(buf, path)
    else:
        yield ImageReader(source, path)
