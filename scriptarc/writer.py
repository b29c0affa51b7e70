"""
Marshal Writer - Encoder for the object stream wrapped around script archives.

Emits canonical output for the two format generations:
  - XP: plain strings only
  - VXAce: names wrapped as I"..." with :E => true, symbol deduplicated
"""

from __future__ import annotations

from typing import Iterable

from scriptarc.errors import InvalidScriptError
from scriptarc.spec import (
    ENCODING_SHORT_IVAR,
    ENTRY_FIELDS,
    FIXNUM_MAX,
    FIXNUM_MIN,
    FORMAT_VXACE,
    MAGIC_MAX,
    MAGIC_MIN,
    TYPE_ARRAY,
    TYPE_BIGNUM,
    TYPE_FIXNUM,
    TYPE_IVAR,
    TYPE_STRING,
    TYPE_SYMBOL,
    TYPE_SYMLINK,
    TYPE_TRUE,
    VERSION_HEADER,
    check_format,
)


def encode_long(value: int) -> bytes:
    """Encode one w_long. Only valid for -2**32 < value < 2**32."""
    if value == 0:
        return b"\x00"
    if 0 < value < 123:
        return bytes((value + 5,))
    if -124 < value < 0:
        return bytes(((value - 5) & 0xFF,))

    out = bytearray()
    for size in range(1, 5):
        out.append(value & 0xFF)
        value >>= 8
        if value == 0:
            return bytes((size,)) + bytes(out)
        if value == -1:
            return bytes((-size & 0xFF,)) + bytes(out)
    raise ValueError("long out of range")


class MarshalWriter:
    """
    Encode (magic, name, data) triples for one target format.

    Usage:
        writer = MarshalWriter("VXAce")
        raw = writer.serialize([(0, b"Main", compressed)])
    """

    def __init__(self, fmt: str) -> None:
        self.format = check_format(fmt)
        self._out = bytearray()
        self._symbols: dict[bytes, int] = {}

    def _write_long(self, value: int) -> None:
        self._out += encode_long(value)

    def write_integer(self, value: int) -> None:
        if FIXNUM_MIN <= value <= FIXNUM_MAX:
            self._out += TYPE_FIXNUM
            self._write_long(value)
            return

        magnitude = abs(value)
        digits = magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "little")
        if len(digits) % 2:
            digits += b"\x00"
        self._out += TYPE_BIGNUM
        self._out += b"-" if value < 0 else b"+"
        self._write_long(len(digits) // 2)
        self._out += digits

    def write_symbol(self, name: bytes) -> None:
        index = self._symbols.get(name)
        if index is not None:
            self._out += TYPE_SYMLINK
            self._write_long(index)
            return
        self._symbols[name] = len(self._symbols)
        self._out += TYPE_SYMBOL
        self._write_long(len(name))
        self._out += name

    def write_string(self, raw: bytes, utf8: bool = False) -> None:
        if utf8:
            self._out += TYPE_IVAR
        self._out += TYPE_STRING
        self._write_long(len(raw))
        self._out += raw
        if utf8:
            self._write_long(1)
            self.write_symbol(ENCODING_SHORT_IVAR)
            self._out += TYPE_TRUE

    def _write_array_header(self, count: int) -> None:
        self._out += TYPE_ARRAY
        self._write_long(count)

    def serialize(self, entries: Iterable[tuple[int, bytes, bytes]]) -> bytes:
        """Encode all entries; payloads must already be compressed."""
        entries = list(entries)
        tag_names = self.format == FORMAT_VXACE

        self._out = bytearray(VERSION_HEADER)
        self._symbols = {}
        self._write_array_header(len(entries))
        for index, (magic, name, data) in enumerate(entries):
            if not MAGIC_MIN <= magic <= MAGIC_MAX:
                raise InvalidScriptError(f"Magic {magic} of script #{index} does not fit in 32 bits")
            self._write_array_header(ENTRY_FIELDS)
            self.write_integer(magic)
            self.write_string(name, utf8=tag_names)
            self.write_string(data)
        return bytes(self._out)
