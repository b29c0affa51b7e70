"""
Blob codec - zlib wrapper for per-script source payloads.

Kept separate from the object stream so a corrupt payload is reported as a
DecompressionError, never as a ParseError.
"""

from __future__ import annotations

import logging
import zlib

from scriptarc.errors import DecompressionError

logger = logging.getLogger(__name__)


def inflate(data: bytes, entry_index: int | None = None) -> bytes:
    """Decompress one payload. An empty payload is an empty script."""
    if not data:
        return b""

    decompressor = zlib.decompressobj()
    try:
        out = decompressor.decompress(data)
        out += decompressor.flush()
    except zlib.error as exc:
        raise DecompressionError(entry_index, str(exc)) from exc

    if not decompressor.eof:
        raise DecompressionError(entry_index, "truncated stream")
    if decompressor.unused_data:
        logger.warning(
            "Ignoring %d trailing bytes after payload of script #%s",
            len(decompressor.unused_data), entry_index,
        )
    return out


def deflate(data: bytes) -> bytes:
    return zlib.compress(data)
