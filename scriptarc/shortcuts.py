"""
Shortcuts - One-call helpers over ScriptArchive.

    read_script()  -> Fetch one script's source from an archive file
    convert()      -> Save an archive under another format generation
    unpack()       -> Export an archive to a plain-text folder
    pack()         -> Build an archive from a plain-text folder

Usage:
    from scriptarc.shortcuts import read_script, convert, unpack, pack

    source = read_script("Scripts.rxdata", "Main")
    convert("Scripts.rxdata", "Scripts.rvdata2")
    result = unpack("Scripts.rvdata2", "scripts/")
    pack("scripts/", "Scripts.rvdata2")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scriptarc.archive import ScriptArchive
    from scriptarc.plaintext import ExportResult


# =============================================================================
# read_script - Fetch one script by name or position
# =============================================================================

def read_script(path: str | Path, key: str | int) -> bytes | None:
    """
    Return the decompressed source of one script, or None if absent.

        source = read_script("Scripts.rxdata", "Main")
        first = read_script("Scripts.rxdata", 0)
    """
    from scriptarc.archive import ScriptArchive

    archive = ScriptArchive.read(path)
    if isinstance(key, int):
        if 0 <= key < len(archive):
            return archive.scripts[key].data
        return None
    script = archive.find(key)
    return script.data if script is not None else None


# =============================================================================
# convert - Save as another format generation
# =============================================================================

def convert(src: str | Path, dst: str | Path, fmt: str | None = None) -> ScriptArchive:
    """
    Read src and write it to dst. The target format follows dst's extension
    unless fmt is given; it never depends on the source format.

        convert("Scripts.rxdata", "Scripts.rvdata2")
    """
    from scriptarc.archive import ScriptArchive

    archive = ScriptArchive.read(src)
    archive.write(dst, fmt)
    return archive


# =============================================================================
# unpack / pack - Plain-text folder round trip
# =============================================================================

def unpack(path: str | Path, folder: str | Path) -> ExportResult:
    """
    Export every script of an archive file into folder.

        result = unpack("Scripts.rxdata", "out/")
        if not result.ok:
            print(result.error)
    """
    from scriptarc.archive import ScriptArchive
    from scriptarc.errors import ArchiveIOError
    from scriptarc.plaintext import export_directory

    archive = ScriptArchive.read(path)
    folder = Path(folder)
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveIOError(folder, exc, "create folder") from exc
    return export_directory(archive, folder)


def pack(folder: str | Path, path: str | Path, fmt: str | None = None) -> ScriptArchive:
    """
    Import a plain-text folder and save it as an archive at path.

        pack("out/", "Scripts.rvdata2")
    """
    from scriptarc.plaintext import import_directory
    from scriptarc.spec import format_for_path

    fmt = fmt or format_for_path(path)
    archive = import_directory(folder, fmt)
    archive.write(path, fmt)
    return archive
