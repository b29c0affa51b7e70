"""
Script Archive Format Specification
===================================

Layout (Ruby Marshal 4.8, the subset script archives use):
    04 08                              <- Version header (major, minor)
    [ <count>                          <- Top-level array, one element per script
      [ 03                             <- Per-script 3-tuple
        i <magic>                      <- Fixnum (or l bignum outside +-2**30)
        "<len><name bytes>             <- Script name (I-wrapped with :E in VXAce)
        "<len><deflated source>        <- zlib stream of the script source
      ]
      ...
    ]

Design Decisions:
    - Ids are not stored in the file, they are assigned on read
    - XP (.rxdata, .rvdata) strings are raw bytes, never ivar-tagged
    - VXAce (.rvdata2) names carry the :E => true encoding ivar
    - Compressed payloads are binary and always written untagged
    - Symbols are deduplicated through the symbol table (:E then ;0)
"""

from pathlib import Path

from scriptarc.errors import FormatError

# Version header - first two bytes of every archive
MARSHAL_MAJOR = 4
MARSHAL_MINOR = 8
VERSION_HEADER = bytes((MARSHAL_MAJOR, MARSHAL_MINOR))

# Type tags
TYPE_NIL = b"0"
TYPE_TRUE = b"T"
TYPE_FALSE = b"F"
TYPE_FIXNUM = b"i"
TYPE_BIGNUM = b"l"
TYPE_STRING = b'"'
TYPE_ARRAY = b"["
TYPE_IVAR = b"I"
TYPE_SYMBOL = b":"
TYPE_SYMLINK = b";"
TYPE_LINK = b"@"

TYPE_NAMES = {
    TYPE_NIL: "nil",
    TYPE_TRUE: "true",
    TYPE_FALSE: "false",
    TYPE_FIXNUM: "fixnum",
    TYPE_BIGNUM: "bignum",
    TYPE_STRING: "string",
    TYPE_ARRAY: "array",
    TYPE_IVAR: "ivar",
    TYPE_SYMBOL: "symbol",
    TYPE_SYMLINK: "symbol link",
    TYPE_LINK: "object link",
}

# Fixnum range; anything outside is written as a bignum
FIXNUM_MIN = -(2 ** 30)
FIXNUM_MAX = 2 ** 30 - 1

# Per-script magic is a 32-bit value, signed or unsigned
MAGIC_MIN = -(2 ** 31)
MAGIC_MAX = 2 ** 32 - 1

# Encoding ivars
ENCODING_SHORT_IVAR = b"E"
ENCODING_LONG_IVAR = b"encoding"

# Format tags
FORMAT_XP = "XP"
FORMAT_VXACE = "VXAce"
FORMATS = (FORMAT_XP, FORMAT_VXACE)

# Destination extension -> format tag
EXTENSIONS = {
    ".rxdata": FORMAT_XP,
    ".rvdata": FORMAT_XP,
    ".rvdata2": FORMAT_VXACE,
}

# Per-script tuple width
ENTRY_FIELDS = 3

# Plain-text export layout
INDEX_FILENAME = "index"
SCRIPT_FILENAME_WIDTH = 3

# Refuse to load archives larger than this from disk (override with max_size)
MAX_ARCHIVE_BYTES = 64 * 1024 * 1024


def check_format(fmt: str) -> str:
    """Return fmt if it is a known format tag, raise FormatError otherwise."""
    if fmt not in FORMATS:
        raise FormatError(f"Unrecognized archive format: {fmt!r}")
    return fmt


def format_for_path(path) -> str:
    """Map a destination file name to its format tag by extension."""
    suffix = Path(path).suffix.lower()
    try:
        return EXTENSIONS[suffix]
    except KeyError:
        raise FormatError(f"Unrecognized file extension: {suffix or '(none)'}") from None
