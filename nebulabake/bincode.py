"""Compact binary value encoding (varint integers, little-endian floats).

The wire format matches bincode's *standard* configuration: unsigned
integers use a variable-length encoding, floats are little-endian IEEE-754,
strings and byte sequences are prefixed by their varint length, and booleans
occupy a single byte.
"""

from __future__ import annotations

import struct

_SINGLE_BYTE_MAX = 250
_U16_TAG = 251
_U32_TAG = 252
_U64_TAG = 253
_U128_TAG = 254

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_U64_MAX = (1 << 64) - 1
_U128_MAX = (1 << 128) - 1


class BincodeError(ValueError):
    """Raised when a value cannot be encoded or decoded."""


class Encoder:
    """Accumulates encoded values into a byte string."""

    def __init__(self):
        self._buf = bytearray()

    def write_bool(self, value):
        self._buf.append(1 if value else 0)

    def write_uint(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise BincodeError(f"expected an unsigned integer, got {value!r}")
        if value < 0:
            raise BincodeError(f"cannot encode negative value {value} as unsigned")
        if value <= _SINGLE_BYTE_MAX:
            self._buf.append(value)
        elif value <= _U16_MAX:
            self._buf.append(_U16_TAG)
            self._buf += struct.pack("<H", value)
        elif value <= _U32_MAX:
            self._buf.append(_U32_TAG)
            self._buf += struct.pack("<I", value)
        elif value <= _U64_MAX:
            self._buf.append(_U64_TAG)
            self._buf += struct.pack("<Q", value)
        elif value <= _U128_MAX:
            self._buf.append(_U128_TAG)
            self._buf += value.to_bytes(16, "little")
        else:
            raise BincodeError(f"integer {value} is too large to encode")

    def write_f32(self, value):
        try:
            self._buf += struct.pack("<f", value)
        except (struct.error, OverflowError, TypeError) as exc:
            raise BincodeError(f"cannot encode {value!r} as f32: {exc}") from exc

    def write_len(self, n):
        self.write_uint(n)

    def write_str(self, value):
        if not isinstance(value, str):
            raise BincodeError(f"expected a string, got {value!r}")
        data = value.encode("utf-8")
        self.write_len(len(data))
        self._buf += data

    def write_bytes(self, value):
        data = bytes(value)
        self.write_len(len(data))
        self._buf += data

    def to_bytes(self):
        return bytes(self._buf)


class Decoder:
    """Reads encoded values sequentially from a byte string."""

    def __init__(self, data):
        self._data = bytes(data)
        self._pos = 0

    def _take(self, n):
        end = self._pos + n
        if end > len(self._data):
            left = len(self._data) - self._pos
            raise BincodeError(
                f"unexpected end of input: needed {n} bytes, {left} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def read_bool(self):
        byte = self._take(1)[0]
        if byte == 0:
            return False
        if byte == 1:
            return True
        raise BincodeError(f"invalid boolean value {byte}")

    def read_uint(self):
        tag = self._take(1)[0]
        if tag <= _SINGLE_BYTE_MAX:
            return tag
        widths = {_U16_TAG: 2, _U32_TAG: 4, _U64_TAG: 8, _U128_TAG: 16}
        width = widths.get(tag)
        if width is None:
            raise BincodeError(f"invalid integer tag {tag}")
        return int.from_bytes(self._take(width), "little")

    def read_f32(self):
        return struct.unpack("<f", self._take(4))[0]

    def read_len(self):
        return self.read_uint()

    def read_str(self):
        data = self._take(self.read_len())
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BincodeError(f"invalid UTF-8 string: {exc}") from exc

    def read_bytes(self):
        return self._take(self.read_len())