"""
Script archive model - an ordered list of named, compressed source fragments.

Ids are in-memory identity only: they are assigned sequentially on read, are
never reissued after a delete, and are reset only by rehash_ids().
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from scriptarc.blob import deflate, inflate
from scriptarc.errors import ArchiveIOError, InvalidScriptError
from scriptarc.reader import MarshalReader
from scriptarc.spec import FORMAT_XP, MAX_ARCHIVE_BYTES, check_format, format_for_path
from scriptarc.writer import MarshalWriter

logger = logging.getLogger(__name__)

NAME_ENCODING = "utf-8"
NAME_ERRORS = "surrogateescape"


def decode_name(raw: bytes) -> str:
    return raw.decode(NAME_ENCODING, NAME_ERRORS)


def encode_name(name: str) -> bytes:
    try:
        return name.encode(NAME_ENCODING, NAME_ERRORS)
    except UnicodeEncodeError as exc:
        raise InvalidScriptError(f"Script name {name!r} cannot be encoded: {exc.reason}") from exc


def check_name(name: str) -> str:
    """Return name if it can be stored and exported, raise InvalidScriptError otherwise."""
    if "\n" in name or "\r" in name:
        raise InvalidScriptError(f"Script name {name!r} contains a line break")
    encode_name(name)
    return name


@dataclass
class Script:
    """One source fragment. data holds the decompressed source bytes."""

    id: int
    name: str = ""
    data: bytes = b""
    magic: int = 0

    def triple(self) -> tuple[int, str, bytes]:
        return (self.magic, self.name, self.data)


@dataclass
class ScriptArchive:
    """
    In-memory script archive.

    Usage:
        archive = ScriptArchive.read("Scripts.rxdata")
        new_id = archive.insert_script(0)
        archive.get_script_for_id(new_id).data = b"puts 1"
        archive.write("Scripts.rvdata2")   # save as VXAce
    """

    scripts: list[Script] = field(default_factory=list)
    format: str = FORMAT_XP
    _next_id: int = field(default=0, repr=False)
    _saved_checksum: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        ids = [script.id for script in self.scripts]
        if len(ids) != len(set(ids)):
            raise ValueError("Duplicate script ids")
        self._next_id = max(self._next_id, max(ids, default=-1) + 1)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def parse(cls, data: bytes, fmt: str | None = None) -> ScriptArchive:
        """Decode archive bytes. The format is detected unless fmt is given."""
        reader = MarshalReader(data)
        entries = reader.read_entries()

        scripts = []
        for index, entry in enumerate(entries):
            source = inflate(entry.data, index)
            scripts.append(Script(id=index, name=decode_name(entry.name), data=source, magic=entry.magic))

        archive = cls(scripts=scripts, format=check_format(fmt) if fmt else reader.detected_format)
        archive._next_id = len(scripts)
        archive.mark_saved()
        logger.info("Loaded %d scripts (%s)", len(scripts), archive.format)
        return archive

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_ARCHIVE_BYTES) -> ScriptArchive:
        """Read and parse an archive file. The format comes from the contents."""
        path = Path(path)
        try:
            size = path.stat().st_size
            if size > max_size:
                raise ArchiveIOError(path, action=f"read {size} bytes (exceeds maximum {max_size}) from")
            data = path.read_bytes()
        except OSError as exc:
            raise ArchiveIOError(path, exc, "read") from exc
        return cls.parse(data)

    @classmethod
    def from_scripts(cls, entries: Iterable[tuple[str, bytes]], fmt: str = FORMAT_XP) -> ScriptArchive:
        """Build a fresh archive from (name, data) pairs, ids 0..n-1."""
        scripts = [Script(id=index, name=check_name(name), data=data) for index, (name, data) in enumerate(entries)]
        archive = cls(scripts=scripts, format=check_format(fmt))
        archive.rehash_ids()
        return archive

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize(self, fmt: str | None = None) -> bytes:
        """Encode the current order for fmt (defaults to the archive's own)."""
        writer = MarshalWriter(fmt or self.format)
        return writer.serialize(
            (script.magic, encode_name(script.name), deflate(script.data))
            for script in self.scripts
        )

    def write(self, path: str | Path, fmt: str | None = None) -> None:
        """Save to path. Without fmt the format follows the file extension."""
        path = Path(path)
        fmt = check_format(fmt) if fmt else format_for_path(path)
        data = self.serialize(fmt)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise ArchiveIOError(path, exc, "write") from exc

        self.format = fmt
        self.mark_saved()
        logger.info("Wrote %d scripts to %s (%s)", len(self.scripts), path, fmt)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _mint_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def insert_script(self, index: int) -> int:
        """Insert an empty script at index (clamped). Returns its new id."""
        index = max(0, min(index, len(self.scripts)))
        script = Script(id=self._mint_id())
        self.scripts.insert(index, script)
        logger.debug("Inserted script id=%d at %d", script.id, index)
        return script.id

    def delete_script(self, index: int) -> Script:
        if not 0 <= index < len(self.scripts):
            raise IndexError(f"Script index {index} out of range (0..{len(self.scripts) - 1})")
        script = self.scripts.pop(index)
        logger.debug("Deleted script id=%d at %d", script.id, index)
        return script

    def rename_script(self, index: int, name: str) -> None:
        if not 0 <= index < len(self.scripts):
            raise IndexError(f"Script index {index} out of range (0..{len(self.scripts) - 1})")
        self.scripts[index].name = check_name(name)

    def rehash_ids(self) -> None:
        """Renumber ids 0..n-1 in current order and forget earlier ids."""
        for index, script in enumerate(self.scripts):
            script.id = index
        self._next_id = len(self.scripts)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_script_for_id(self, script_id: int) -> Script | None:
        for script in self.scripts:
            if script.id == script_id:
                return script
        return None

    def set_script_data(self, script_id: int, data: bytes) -> bool:
        """Replace a script's source by id. Returns False if the id is unknown."""
        script = self.get_script_for_id(script_id)
        if script is None:
            return False
        script.data = data
        return True

    def index_of(self, script_id: int) -> int | None:
        for index, script in enumerate(self.scripts):
            if script.id == script_id:
                return index
        return None

    def find(self, name: str) -> Script | None:
        """First script with the given name."""
        for script in self.scripts:
            if script.name == name:
                return script
        return None

    @property
    def names(self) -> list[str]:
        return [script.name for script in self.scripts]

    # -------------------------------------------------------------------------
    # Change tracking
    # -------------------------------------------------------------------------

    def compute_checksum(self) -> str:
        """SHA-256 over the ordered (magic, name, data) triples."""
        h = hashlib.sha256()
        for script in self.scripts:
            raw_name = encode_name(script.name)
            magic = str(script.magic).encode("ascii")
            h.update(len(magic).to_bytes(8, "little"))
            h.update(magic)
            h.update(len(raw_name).to_bytes(8, "little"))
            h.update(raw_name)
            h.update(len(script.data).to_bytes(8, "little"))
            h.update(script.data)
        return h.hexdigest()

    def mark_saved(self) -> None:
        self._saved_checksum = self.compute_checksum()

    @property
    def modified(self) -> bool:
        """True if the content differs from the last read or write."""
        return self.compute_checksum() != self._saved_checksum

    def __len__(self) -> int:
        return len(self.scripts)

    def __iter__(self) -> Iterator[Script]:
        return iter(self.scripts)

    def __repr__(self) -> str:
        return f"ScriptArchive(format={self.format!r}, scripts={self.names!r})"
