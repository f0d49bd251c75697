"""
Big-endian framing helpers shared by the codec and the native transformers.
"""

from __future__ import annotations

import struct

from recform.exceptions import MalformedPayload

_INT16 = struct.Struct(">h")
_INT32 = struct.Struct(">i")

INT16_MAX = 2**15 - 1


def pack_int32(value: int) -> bytes:
    return _INT32.pack(value)


def pack_bytes32(data: bytes) -> bytes:
    """int32 length prefix followed by *data*."""
    return _INT32.pack(len(data)) + data


def pack_str16(text: str) -> bytes:
    """int16 length prefix followed by the UTF-8 bytes of *text*."""
    data = text.encode("utf-8")
    if len(data) > INT16_MAX:
        raise ValueError(f"String of {len(data)} bytes exceeds the int16 length limit")
    return _INT16.pack(len(data)) + data


def pack_str32(text: str) -> bytes:
    return pack_bytes32(text.encode("utf-8"))


class ByteReader:
    """Sequential reader over a byte string.

    Every read past the end raises ``MalformedPayload``.
    """

    __slots__ = ("_data", "_offset")

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read(self, size: int) -> bytes:
        if size < 0 or size > self.remaining:
            raise MalformedPayload(
                f"Expected {size} byte(s) at offset {self._offset}, "
                f"{self.remaining} available"
            )
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def read_int16(self) -> int:
        return _INT16.unpack(self.read(2))[0]

    def read_int32(self) -> int:
        return _INT32.unpack(self.read(4))[0]

    def read_bytes32(self) -> bytes:
        return self.read(self.read_int32())

    def read_str16(self) -> str:
        return self._decode_text(self.read(self.read_int16()))

    def read_str32(self) -> str:
        return self._decode_text(self.read_bytes32())

    def expect_end(self) -> None:
        if self.remaining:
            raise MalformedPayload(f"{self.remaining} trailing byte(s) after payload")

    @staticmethod
    def _decode_text(data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload(f"Invalid UTF-8 text: {e}") from e
