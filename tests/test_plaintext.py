"""
Plain-text Folder Tests - index + numbered files import/export.
"""

import os
import tempfile
from pathlib import Path

import pytest

from scriptarc.archive import ScriptArchive
from scriptarc.errors import ArchiveIOError, InvalidScriptError
from scriptarc.plaintext import export_directory, import_directory, script_filename
from scriptarc.spec import FORMAT_VXACE


@pytest.fixture
def folder():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


class TestImport:

    def test_import_two_scripts(self, folder):
        (folder / "index").write_bytes(b"Intro\nBattle\n")
        (folder / "000").write_bytes(b"P0 payload")
        (folder / "001").write_bytes(b"\x00P1")

        archive = import_directory(folder)
        assert archive.names == ["Intro", "Battle"]
        assert [s.data for s in archive] == [b"P0 payload", b"\x00P1"]
        assert [s.id for s in archive] == [0, 1]
        assert all(s.magic == 0 for s in archive)

    def test_index_without_trailing_newline(self, folder):
        (folder / "index").write_bytes(b"Intro\r\nBattle")
        (folder / "000").write_bytes(b"a")
        (folder / "001").write_bytes(b"b")
        assert import_directory(folder).names == ["Intro", "Battle"]

    def test_crlf_index(self, folder):
        (folder / "index").write_bytes(b"Intro\r\nBattle\r\n")
        (folder / "000").write_bytes(b"a")
        (folder / "001").write_bytes(b"b")
        archive = import_directory(folder)
        assert archive.names == ["Intro", "Battle"]
        assert [s.data for s in archive] == [b"a", b"b"]

    def test_empty_name_lines_are_scripts(self, folder):
        (folder / "index").write_bytes(b"A\n\nC\n")
        for i in range(3):
            (folder / script_filename(i)).write_bytes(b"")
        assert import_directory(folder).names == ["A", "", "C"]

    def test_empty_index(self, folder):
        (folder / "index").write_bytes(b"")
        assert len(import_directory(folder)) == 0

    def test_import_format(self, folder):
        (folder / "index").write_bytes(b"")
        assert import_directory(folder, FORMAT_VXACE).format == FORMAT_VXACE

    def test_missing_index(self, folder):
        with pytest.raises(ArchiveIOError, match="index"):
            import_directory(folder)

    def test_missing_script_file(self, folder):
        (folder / "index").write_bytes(b"Intro\nBattle\n")
        (folder / "000").write_bytes(b"a")
        with pytest.raises(ArchiveIOError, match="Battle"):
            import_directory(folder)

    def test_new_ids_after_import_are_fresh(self, folder):
        (folder / "index").write_bytes(b"A\n")
        (folder / "000").write_bytes(b"")
        archive = import_directory(folder)
        assert archive.insert_script(0) == 1


class TestExport:

    def test_export_then_import(self, folder):
        archive = ScriptArchive.from_scripts([("Main", b"puts 1"), ("▼ Ünï", b"p 2"), ("", b"")])
        result = export_directory(archive, folder)
        assert result.ok
        assert result.written == result.total == 3
        assert (folder / "index").read_bytes() == "Main\n▼ Ünï\n\n".encode("utf-8")
        assert (folder / "001").read_bytes() == b"p 2"

        again = import_directory(folder)
        assert [s.triple() for s in again] == [s.triple() for s in archive]

    def test_filenames(self):
        assert script_filename(0) == "000"
        assert script_filename(42) == "042"
        assert script_filename(1234) == "1234"

    @pytest.mark.skipif(os.name == "nt", reason="directory placeholder blocks writes on POSIX only")
    def test_partial_failure(self, folder):
        archive = ScriptArchive.from_scripts([("A", b"a"), ("B", b"b"), ("C", b"c")])
        (folder / "001").mkdir()

        result = export_directory(archive, folder)
        assert not result.ok
        assert result.written == 1
        assert result.total == 3
        assert result.failed_index == 1
        assert isinstance(result.error, ArchiveIOError)
        assert (folder / "000").read_bytes() == b"a"
        assert not (folder / "002").exists()
        assert (folder / "index").read_bytes() == b"A\n"

    def test_line_break_in_name_stops_export(self, folder):
        archive = ScriptArchive.from_scripts([("A", b"a"), ("B", b"b"), ("C", b"c")])
        archive.scripts[1].name = "B\nextra"

        result = export_directory(archive, folder)
        assert not result.ok
        assert result.written == 1
        assert result.failed_index == 1
        assert isinstance(result.error, InvalidScriptError)
        assert (folder / "index").read_bytes() == b"A\n"
        assert not (folder / "001").exists()
        assert import_directory(folder).names == ["A"]

    def test_missing_folder(self):
        archive = ScriptArchive.from_scripts([])
        with pytest.raises(ArchiveIOError, match="index"):
            export_directory(archive, "/nonexistent/export")
