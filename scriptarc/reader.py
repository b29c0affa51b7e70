"""
Marshal Reader - Decoder for the object stream wrapped around script archives.

Speed features:
  - Single pass over an in-memory buffer, no intermediate copies beyond slices
  - Bounds checked before every take, so truncated input fails fast

Only the subset script archives use is understood: arrays, fixnums, bignums,
strings, ivar-wrapped strings, symbols, symbol links, object links and the
true/false/nil singletons. Anything else is a ParseError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

from scriptarc.errors import FormatError, ParseError
from scriptarc.spec import (
    ENCODING_LONG_IVAR,
    ENCODING_SHORT_IVAR,
    ENTRY_FIELDS,
    FORMAT_VXACE,
    FORMAT_XP,
    MAGIC_MAX,
    MAGIC_MIN,
    TYPE_ARRAY,
    TYPE_BIGNUM,
    TYPE_FALSE,
    TYPE_FIXNUM,
    TYPE_IVAR,
    TYPE_LINK,
    TYPE_NIL,
    TYPE_STRING,
    TYPE_SYMBOL,
    TYPE_SYMLINK,
    TYPE_TRUE,
    VERSION_HEADER,
)

logger = logging.getLogger(__name__)

# Nesting deeper than this is never produced by a script archive
MAX_DEPTH = 32


@dataclass
class MarshalString:
    """A byte string plus the encoding its ivar declared, if any."""

    raw: bytes
    encoding: str | None = None


class RawEntry(NamedTuple):
    """One decoded script tuple, payload still compressed."""

    magic: int
    name: bytes
    data: bytes


class MarshalReader:
    """
    Decode a script archive's object stream into RawEntry tuples.

    Usage:
        reader = MarshalReader(raw_bytes)
        entries = reader.read_entries()
        fmt = reader.detected_format
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self._symbols: list[bytes] = []  # arena for ':' / ';'
        self._objects: list[object] = []  # arena for '@'
        self._open_arrays: set[int] = set()
        self.encoding_tagged = False

    @property
    def offset(self) -> int:
        return self._pos

    @property
    def detected_format(self) -> str:
        """VXAce if any string carried an encoding ivar, XP otherwise."""
        return FORMAT_VXACE if self.encoding_tagged else FORMAT_XP

    # -------------------------------------------------------------------------
    # Primitive reads
    # -------------------------------------------------------------------------

    def _take(self, count: int, expected: str) -> bytes:
        end = self._pos + count
        if count < 0 or end > len(self._data):
            raise ParseError(self._pos, expected, "unexpected end of data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _read_byte(self, expected: str) -> int:
        return self._take(1, expected)[0]

    def read_long(self, expected: str = "long") -> int:
        """Decode one w_long: inline small values or 1-4 little-endian bytes."""
        c = self._read_byte(expected)
        if c > 127:
            c -= 256

        if c == 0:
            return 0
        if c > 4:
            return c - 5
        if c < -4:
            return c + 5
        if c > 0:
            return int.from_bytes(self._take(c, expected), "little")
        size = -c
        return int.from_bytes(self._take(size, expected), "little") - (1 << (8 * size))

    def _read_length(self, expected: str) -> int:
        start = self._pos
        length = self.read_long(expected)
        if length < 0:
            raise ParseError(start, expected, f"negative length {length}")
        if length > len(self._data) - self._pos:
            raise ParseError(start, expected, f"length {length} exceeds remaining data")
        return length

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def read_value(self, depth: int = 0) -> object:
        start = self._pos
        if depth > MAX_DEPTH:
            raise ParseError(start, "value", "nesting too deep")
        tag = self._take(1, "type tag")

        if tag == TYPE_NIL:
            return None
        if tag == TYPE_TRUE:
            return True
        if tag == TYPE_FALSE:
            return False
        if tag == TYPE_FIXNUM:
            return self.read_long("fixnum")
        if tag == TYPE_BIGNUM:
            return self._read_bignum()
        if tag == TYPE_STRING:
            return self._read_string()
        if tag == TYPE_ARRAY:
            return self._read_array(depth)
        if tag == TYPE_IVAR:
            return self._read_ivar(depth)
        if tag == TYPE_SYMBOL:
            return self._read_symbol_body()
        if tag == TYPE_SYMLINK:
            return self._read_symlink_body()
        if tag == TYPE_LINK:
            return self._read_link_body(start)

        raise ParseError(start, "value", f"unsupported type tag 0x{tag[0]:02x}")

    def _read_bignum(self) -> int:
        sign = self._take(1, "bignum sign")
        if sign not in (b"+", b"-"):
            raise ParseError(self._pos - 1, "bignum sign", f"got {sign!r}")
        words = self._read_length("bignum length")
        value = int.from_bytes(self._take(words * 2, "bignum digits"), "little")
        if sign == b"-":
            value = -value
        self._objects.append(value)
        return value

    def _read_string(self) -> MarshalString:
        length = self._read_length("string length")
        value = MarshalString(self._take(length, "string bytes"))
        self._objects.append(value)
        return value

    def _read_array(self, depth: int) -> list:
        count = self._read_length("array length")
        items: list[object] = []
        index = len(self._objects)
        self._objects.append(items)
        self._open_arrays.add(index)
        for _ in range(count):
            items.append(self.read_value(depth + 1))
        self._open_arrays.discard(index)
        return items

    def _read_ivar(self, depth: int) -> MarshalString:
        start = self._pos
        target = self.read_value(depth + 1)
        if not isinstance(target, MarshalString):
            raise ParseError(start, "string under ivar", f"got {type(target).__name__}")

        count = self._read_length("ivar count")
        for _ in range(count):
            key = self.read_symbol()
            value = self.read_value(depth + 1)
            if key == ENCODING_SHORT_IVAR:
                target.encoding = "UTF-8" if value is True else "US-ASCII"
                self.encoding_tagged = True
            elif key == ENCODING_LONG_IVAR and isinstance(value, MarshalString):
                target.encoding = value.raw.decode("ascii", "replace")
                self.encoding_tagged = True
            else:
                logger.debug("Ignoring ivar %r at byte %d", key, start)
        return target

    def read_symbol(self) -> bytes:
        tag = self._take(1, "symbol")
        if tag == TYPE_SYMBOL:
            return self._read_symbol_body()
        if tag == TYPE_SYMLINK:
            return self._read_symlink_body()
        raise ParseError(self._pos - 1, "symbol", f"got type tag 0x{tag[0]:02x}")

    def _read_symbol_body(self) -> bytes:
        length = self._read_length("symbol length")
        name = self._take(length, "symbol bytes")
        self._symbols.append(name)
        return name

    def _read_symlink_body(self) -> bytes:
        start = self._pos
        index = self.read_long("symbol link")
        if not 0 <= index < len(self._symbols):
            raise ParseError(start, "symbol link", f"index {index} out of range")
        return self._symbols[index]

    def _read_link_body(self, start: int) -> object:
        index = self.read_long("object link")
        if not 0 <= index < len(self._objects):
            raise ParseError(start, "object link", f"index {index} out of range")
        if index in self._open_arrays:
            raise ParseError(start, "object link", "cyclic reference")
        return self._objects[index]

    # -------------------------------------------------------------------------
    # Archive layout
    # -------------------------------------------------------------------------

    def read_header(self) -> None:
        header = self._take(len(VERSION_HEADER), "version header")
        if header != VERSION_HEADER:
            raise FormatError(
                f"Not a script archive: version {header[0]}.{header[1]}, "
                f"expected {VERSION_HEADER[0]}.{VERSION_HEADER[1]}"
            )

    def read_entries(self) -> list[RawEntry]:
        """Parse the whole buffer. Raises FormatError or ParseError."""
        self.read_header()

        start = self._pos
        top = self.read_value()
        if not isinstance(top, list):
            raise ParseError(start, "array of scripts")

        entries = [self._to_entry(item, i, start) for i, item in enumerate(top)]

        if self._pos < len(self._data):
            logger.debug("Ignoring %d trailing bytes", len(self._data) - self._pos)
        return entries

    @staticmethod
    def _to_entry(item: object, index: int, offset: int) -> RawEntry:
        if not isinstance(item, list) or len(item) != ENTRY_FIELDS:
            raise ParseError(offset, f"{ENTRY_FIELDS}-element array for script #{index}")
        magic, name, data = item
        if isinstance(magic, bool) or not isinstance(magic, int):
            raise ParseError(offset, f"integer magic for script #{index}")
        if not MAGIC_MIN <= magic <= MAGIC_MAX:
            raise ParseError(offset, f"32-bit integer magic for script #{index}", f"got {magic}")
        if not isinstance(name, MarshalString):
            raise ParseError(offset, f"string name for script #{index}")
        if not isinstance(data, MarshalString):
            raise ParseError(offset, f"string data for script #{index}")
        return RawEntry(magic, name.raw, data.raw)
