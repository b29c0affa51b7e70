"""
Plain-text import/export - a flat folder of uncompressed scripts.

Layout:
    index          <- one script name per line, line order = archive order
    000            <- raw source of script 0
    001            <- raw source of script 1
    ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from scriptarc.archive import ScriptArchive, check_name, decode_name, encode_name
from scriptarc.errors import ArchiveIOError, InvalidScriptError, ScriptArchiveError
from scriptarc.spec import FORMAT_XP, INDEX_FILENAME, SCRIPT_FILENAME_WIDTH

logger = logging.getLogger(__name__)


def script_filename(index: int) -> str:
    return f"{index:0{SCRIPT_FILENAME_WIDTH}d}"


@dataclass
class ExportResult:
    """Outcome of export_directory. failed_index is None on full success."""

    written: int
    total: int
    failed_index: int | None = None
    error: ScriptArchiveError | None = None

    @property
    def ok(self) -> bool:
        return self.failed_index is None


def import_directory(folder: str | Path, fmt: str = FORMAT_XP) -> ScriptArchive:
    """Build a fresh archive from an exported folder. Ids are 0..n-1."""
    folder = Path(folder)
    index_path = folder / INDEX_FILENAME
    try:
        raw_index = index_path.read_bytes()
    except OSError as exc:
        raise ArchiveIOError(index_path, exc, "open index file") from exc

    names = [decode_name(line) for line in raw_index.splitlines()]

    entries = []
    for index, name in enumerate(names):
        script_path = folder / script_filename(index)
        try:
            entries.append((name, script_path.read_bytes()))
        except OSError as exc:
            raise ArchiveIOError(script_path, exc, f'open script "{name}"') from exc

    archive = ScriptArchive.from_scripts(entries, fmt)
    logger.info("Imported %d scripts from %s", len(archive), folder)
    return archive


def export_directory(archive: ScriptArchive, folder: str | Path) -> ExportResult:
    """
    Write archive to folder as index + numbered files.

    Stops at the first script that cannot be written or whose name does not
    fit on one index line; the index lists exactly the scripts written before
    that point. Failing to write the index itself
    raises ArchiveIOError.
    """
    folder = Path(folder)
    total = len(archive)
    written = 0
    failure: tuple[int, ScriptArchiveError] | None = None
    lines = []

    for index, script in enumerate(archive):
        try:
            lines.append(encode_name(check_name(script.name)) + b"\n")
        except InvalidScriptError as exc:
            failure = (index, exc)
            logger.warning("Export stopped at script #%d: %s", index, exc)
            break

        script_path = folder / script_filename(index)
        try:
            script_path.write_bytes(script.data)
        except OSError as exc:
            failure = (index, ArchiveIOError(script_path, exc, "write"))
            lines.pop()
            logger.warning("Export stopped at script #%d: %s", index, exc)
            break
        written += 1

    index_path = folder / INDEX_FILENAME
    try:
        index_path.write_bytes(b"".join(lines))
    except OSError as exc:
        raise ArchiveIOError(index_path, exc, "write index file") from exc

    logger.info("Exported %d/%d scripts to %s", written, total, folder)
    if failure is not None:
        return ExportResult(written, total, failure[0], failure[1])
    return ExportResult(written, total)
