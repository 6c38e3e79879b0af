"""Big-endian reading of binary class-file data."""

from __future__ import annotations

import struct
from typing import Union

_U16 = struct.Struct(">H")
_I16 = struct.Struct(">h")
_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_U64 = struct.Struct(">Q")


class StreamError(Exception):
    """Raised when data ends early or a position lies outside the data."""


class ByteReader:
    """A cursor over a byte buffer, reading big-endian integers."""

    def __init__(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._data = bytes(data)
        self._position = 0

    def __len__(self) -> int:
        return len(self._data)

    def _take(self, count: int) -> bytes:
        if count < 0:
            raise StreamError(f"cannot read a negative number of bytes ({count})")
        end = self._position + count
        if end > len(self._data):
            available = len(self._data) - self._position
            raise StreamError(
                f"unexpected end of data: need {count} bytes at offset {self._position}, {available} left"
            )
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u16(self) -> int:
        return _U16.unpack(self._take(2))[0]

    def read_i16(self) -> int:
        return _I16.unpack(self._take(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self._take(4))[0]

    def read_i32(self) -> int:
        return _I32.unpack(self._take(4))[0]

    def read_u64(self) -> int:
        return _U64.unpack(self._take(8))[0]

    def read_bytes(self, count: int) -> bytes:
        """Read exactly *count* bytes."""
        return self._take(count)

    def skip(self, count: int) -> int:
        """Move forward by *count* bytes and return the new position."""
        return self.seek(self._position + count)

    def seek(self, position: int) -> int:
        """Move to an absolute *position* and return it."""
        if not 0 <= position <= len(self._data):
            raise StreamError(f"position {position} outside data of {len(self._data)} bytes")
        self._position = position
        return position

    def tell(self) -> int:
        return self._position