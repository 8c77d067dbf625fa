"""Byte reader and writer for the binary preset layouts."""

from __future__ import annotations

import struct

from reaperconverter.core.errors import TruncatedDataError


class ByteReader:
    def __init__(self, data: bytes):
        self.data = data
        self.position = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.position

    def read(self, size: int) -> bytes:
        if size < 0 or self.position + size > len(self.data):
            raise TruncatedDataError(
                f"Unexpected end of data: needed {size} bytes at offset {self.position}, "
                f"{self.remaining} available"
            )
        chunk = self.data[self.position : self.position + size]
        self.position += size
        return chunk

    def skip(self, size: int):
        self.read(size)

    def rest(self) -> bytes:
        return self.read(self.remaining)

    def int_le(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def int_be(self) -> int:
        return struct.unpack(">I", self.read(4))[0]

    def long_le(self) -> int:
        return struct.unpack("<Q", self.read(8))[0]

    def text(self, size: int) -> str:
        return self.read(size).decode("ascii", errors="replace")


def int_le(value: int) -> bytes:
    return struct.pack("<I", value & 0xFFFFFFFF)


def int_be(value: int) -> bytes:
    return struct.pack(">I", value & 0xFFFFFFFF)


def long_le(value: int) -> bytes:
    return struct.pack("<Q", value)
