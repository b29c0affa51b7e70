"""
Unit Tests - Script archive model in isolation.
"""

import pytest

from scriptarc.archive import Script, ScriptArchive
from scriptarc.errors import FormatError, InvalidScriptError, ScriptArchiveError
from scriptarc.spec import (
    EXTENSIONS,
    FORMAT_VXACE,
    FORMAT_XP,
    VERSION_HEADER,
    check_format,
    format_for_path,
)


@pytest.fixture
def archive():
    return ScriptArchive.from_scripts([("Main", b"puts 1"), ("Sub", b"")])


# =============================================================================
# Script
# =============================================================================

class TestScript:

    def test_defaults(self):
        s = Script(id=3)
        assert s.id == 3
        assert s.name == ""
        assert s.data == b""
        assert s.magic == 0

    def test_triple(self):
        s = Script(id=0, name="Main", data=b"x", magic=10)
        assert s.triple() == (10, "Main", b"x")


# =============================================================================
# ScriptArchive
# =============================================================================

class TestScriptArchive:

    def test_from_scripts_assigns_sequential_ids(self, archive):
        assert [s.id for s in archive] == [0, 1]
        assert archive.names == ["Main", "Sub"]
        assert len(archive) == 2

    def test_insert_in_middle(self, archive):
        new_id = archive.insert_script(1)
        assert len(archive) == 3
        inserted = archive.scripts[1]
        assert inserted.id == new_id
        assert inserted.name == ""
        assert inserted.data == b""
        assert inserted.magic == 0
        assert new_id not in (archive.scripts[0].id, archive.scripts[2].id)
        assert archive.names == ["Main", "", "Sub"]

    def test_insert_clamps_index(self, archive):
        archive.insert_script(99)
        assert archive.scripts[-1].name == ""
        archive.insert_script(-5)
        assert archive.scripts[0].name == ""
        assert len(archive) == 4

    def test_delete_then_insert_never_reuses_id(self):
        archive = ScriptArchive(scripts=[Script(id=7, name="Only")])
        archive.delete_script(0)
        assert len(archive) == 0
        new_id = archive.insert_script(0)
        assert new_id != 7

    def test_constructor_continues_after_highest_id(self):
        archive = ScriptArchive(scripts=[Script(id=0, name="A"), Script(id=4, name="B")])
        new_id = archive.insert_script(0)
        assert new_id == 5
        assert sorted(s.id for s in archive) == [0, 4, 5]

    def test_constructor_rejects_duplicate_ids(self):
        with pytest.raises(ValueError, match="Duplicate"):
            ScriptArchive(scripts=[Script(id=0), Script(id=0)])

    def test_deleted_ids_stay_retired(self, archive):
        last = archive.scripts[-1].id
        archive.delete_script(1)
        seen = {archive.insert_script(0) for _ in range(5)}
        assert last not in seen

    def test_delete_out_of_range(self, archive):
        with pytest.raises(IndexError):
            archive.delete_script(2)
        with pytest.raises(IndexError):
            archive.delete_script(-1)

    def test_ids_unique_after_mixed_operations(self, archive):
        archive.insert_script(0)
        archive.insert_script(2)
        archive.delete_script(1)
        archive.insert_script(1)
        archive.delete_script(0)
        archive.insert_script(len(archive))
        ids = [s.id for s in archive]
        assert len(ids) == len(set(ids))

    def test_rehash_ids(self, archive):
        archive.insert_script(0)
        archive.insert_script(0)
        archive.delete_script(3)
        archive.rehash_ids()
        assert [s.id for s in archive] == list(range(len(archive)))
        assert archive.insert_script(0) == len(archive) - 1

    def test_get_script_for_id(self, archive):
        new_id = archive.insert_script(0)
        assert archive.get_script_for_id(new_id) is archive.scripts[0]
        assert archive.get_script_for_id(1).name == "Sub"
        assert archive.get_script_for_id(12345) is None

    def test_get_script_survives_reordering(self, archive):
        main = archive.get_script_for_id(0)
        archive.insert_script(0)
        archive.insert_script(0)
        assert archive.get_script_for_id(0) is main
        assert archive.index_of(0) == 2

    def test_set_script_data(self, archive):
        assert archive.set_script_data(1, b"p 2")
        assert archive.scripts[1].data == b"p 2"
        assert not archive.set_script_data(99, b"x")

    def test_rename(self, archive):
        archive.rename_script(0, "Entry")
        assert archive.names[0] == "Entry"
        with pytest.raises(IndexError):
            archive.rename_script(5, "x")

    def test_rename_rejects_unencodable_name(self, archive):
        with pytest.raises(InvalidScriptError, match="cannot be encoded"):
            archive.rename_script(0, "\ud800")
        assert archive.names[0] == "Main"

    def test_rename_rejects_line_break(self, archive):
        with pytest.raises(InvalidScriptError, match="line break"):
            archive.rename_script(0, "A\nB")
        with pytest.raises(InvalidScriptError):
            archive.rename_script(0, "A\rB")

    def test_from_scripts_rejects_line_break(self):
        with pytest.raises(InvalidScriptError):
            ScriptArchive.from_scripts([("Two\nLines", b"")])

    def test_unencodable_name_set_directly(self, archive):
        archive.scripts[0].name = "\ud800"
        with pytest.raises(InvalidScriptError):
            archive.serialize()
        with pytest.raises(ScriptArchiveError):
            archive.modified

    def test_checksum_with_wide_magic(self, archive):
        archive.mark_saved()
        archive.scripts[0].magic = 2 ** 80
        assert archive.modified

    def test_find(self, archive):
        assert archive.find("Sub").id == 1
        assert archive.find("Nope") is None

    def test_modified_tracking(self, archive):
        archive.mark_saved()
        assert not archive.modified
        archive.scripts[0].data = b"puts 2"
        assert archive.modified
        archive.scripts[0].data = b"puts 1"
        assert not archive.modified

    def test_checksum_depends_on_order(self, archive):
        before = archive.compute_checksum()
        archive.scripts.reverse()
        assert archive.compute_checksum() != before

    def test_repr(self, archive):
        r = repr(archive)
        assert "ScriptArchive" in r
        assert "Main" in r


# =============================================================================
# Format constants
# =============================================================================

class TestSpec:

    def test_version_header(self):
        assert VERSION_HEADER == b"\x04\x08"

    def test_extensions(self):
        assert EXTENSIONS[".rxdata"] == FORMAT_XP
        assert EXTENSIONS[".rvdata"] == FORMAT_XP
        assert EXTENSIONS[".rvdata2"] == FORMAT_VXACE

    def test_format_for_path(self):
        assert format_for_path("Data/Scripts.rxdata") == FORMAT_XP
        assert format_for_path("Scripts.RVDATA2") == FORMAT_VXACE

    def test_format_for_unknown_extension(self):
        with pytest.raises(FormatError, match="Unrecognized file extension"):
            format_for_path("Scripts.txt")
        with pytest.raises(FormatError):
            format_for_path("Scripts")

    def test_check_format(self):
        assert check_format(FORMAT_XP) == FORMAT_XP
        with pytest.raises(FormatError, match="Unrecognized archive format"):
            check_format("MV")
