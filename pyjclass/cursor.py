"""
Sequential big-endian reader over a finite byte source.
"""

import struct
from typing import BinaryIO, Union

from .errors import UnexpectedEnd

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO]

_U2 = struct.Struct(">H")
_U4 = struct.Struct(">I")
_I4 = struct.Struct(">i")


def _as_bytes(source: ByteSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, "read"):
        data = source.read()
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("Byte source must be opened in binary mode")
        return bytes(data)
    raise TypeError(f"Unsupported byte source: {type(source).__name__}")


class ByteCursor:
    """Reads fixed-width JVM integers (u1/u2/u4) and raw byte runs."""

    def __init__(self, source: ByteSource, base_offset: int = 0):
        self.data = _as_bytes(source)
        self.pos = 0
        # Offset of data[0] in the enclosing stream, for error positions.
        self.base_offset = base_offset

    @property
    def position(self) -> int:
        """Absolute offset of the next byte to be read."""
        return self.base_offset + self.pos

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def _require(self, n: int):
        if n > len(self.data) - self.pos:
            raise UnexpectedEnd(self.position, n, len(self.data) - self.pos)

    def read_u1(self) -> int:
        self._require(1)
        val = self.data[self.pos]
        self.pos += 1
        return val

    def read_u2(self) -> int:
        self._require(2)
        val = _U2.unpack_from(self.data, self.pos)[0]
        self.pos += 2
        return val

    def read_u4(self) -> int:
        self._require(4)
        val = _U4.unpack_from(self.data, self.pos)[0]
        self.pos += 4
        return val

    def read_i4(self) -> int:
        self._require(4)
        val = _I4.unpack_from(self.data, self.pos)[0]
        self.pos += 4
        return val

    def read_bytes(self, length: int) -> bytes:
        """Return the next ``length`` bytes as an owned buffer."""
        self._require(length)
        val = self.data[self.pos:self.pos + length]
        self.pos += length
        return val

    def sub_cursor(self, length: int) -> "ByteCursor":
        """Consume ``length`` bytes and return a cursor bounded to them."""
        start = self.position
        return ByteCursor(self.read_bytes(length), base_offset=start)
