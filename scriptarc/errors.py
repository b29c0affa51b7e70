"""
Error kinds raised by the script archive codec.

Every failure a caller can see derives from ScriptArchiveError, so a UI or
CLI can catch that one type at its boundary and still tell the kinds apart:

    FormatError          - unknown target format / extension, bad version header
    ParseError           - malformed object stream (carries the byte offset)
    DecompressionError   - stream is valid but one script payload is corrupt
    InvalidScriptError   - an in-memory script holds a name or magic the format cannot store
    ArchiveIOError       - the underlying file could not be opened/read/written
"""

from __future__ import annotations


class ScriptArchiveError(Exception):
    """Base class for all codec errors."""


class FormatError(ScriptArchiveError):
    """The data or destination is not a supported script archive format."""


class ParseError(ScriptArchiveError):

    def __init__(self, offset: int, expected: str, detail: str = "") -> None:
        self.offset = offset
        self.expected = expected
        self.detail = detail
        message = f"Malformed archive at byte {offset}: expected {expected}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class DecompressionError(ScriptArchiveError):

    def __init__(self, entry_index: int | None = None, detail: str = "") -> None:
        self.entry_index = entry_index
        self.detail = detail
        where = f"script #{entry_index}" if entry_index is not None else "payload"
        message = f"Corrupt compressed data in {where}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class InvalidScriptError(ScriptArchiveError, ValueError):
    """A script field cannot be stored in an archive."""


class ArchiveIOError(ScriptArchiveError):
    """Wraps an OSError raised while touching the filesystem."""

    def __init__(self, path, cause: OSError | None = None, action: str = "access") -> None:
        self.path = str(path)
        self.cause = cause
        message = f"Cannot {action} {self.path}"
        if cause is not None:
            reason = cause.strerror or str(cause)
            message += f": {reason}"
        super().__init__(message)
