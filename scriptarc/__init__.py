"""scriptarc - read, write and edit RGSS script archives."""

from scriptarc.archive import Script, ScriptArchive
from scriptarc.errors import (
    ArchiveIOError,
    DecompressionError,
    FormatError,
    InvalidScriptError,
    ParseError,
    ScriptArchiveError,
)
from scriptarc.plaintext import ExportResult, export_directory, import_directory
from scriptarc.spec import FORMAT_VXACE, FORMAT_XP, format_for_path

__version__ = "1.0.0"

__all__ = [
    "Script",
    "ScriptArchive",
    "ScriptArchiveError",
    "FormatError",
    "ParseError",
    "DecompressionError",
    "ArchiveIOError",
    "InvalidScriptError",
    "ExportResult",
    "import_directory",
    "export_directory",
    "format_for_path",
    "FORMAT_XP",
    "FORMAT_VXACE",
]
