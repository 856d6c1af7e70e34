"""
Spell Tests - Verify all aliased magic functions work.
"""

import tempfile
from pathlib import Path

import pytest

from txtar import Archive, EditRef, File, write
from txtar.spells import accio, geminio, prior_incantato


@pytest.fixture
def archive():
    a = Archive(preamble="mischief managed\n")
    a.add_file(File("content.txt", b"i solemnly swear\n"))
    a.add_file(File("wand.bin", b"\x00\xffelder"))
    return a


@pytest.fixture
def txtar_file(archive):
    with tempfile.NamedTemporaryFile(suffix=".txtar", delete=False) as f:
        path = f.name
    write(archive, path)
    yield path
    Path(path).unlink()


class TestAccio:

    def test_summon_text(self, txtar_file):
        assert accio(txtar_file, "content.txt") == b"i solemnly swear\n"

    def test_summon_binary(self, txtar_file):
        assert accio(txtar_file, "wand.bin") == b"\x00\xffelder"

    def test_summon_nonexistent(self, txtar_file):
        assert accio(txtar_file, "horcrux") is None


class TestGeminio:

    def test_merge_archives(self, archive):
        other = Archive(preamble="second")
        other.add_file(File("extra.txt", b"more\n"))
        merged = geminio(archive, other)
        assert merged.names() == ["content.txt", "wand.bin", "extra.txt"]
        assert merged.preamble() == "mischief managed\nsecond\n"

    def test_merge_from_paths(self, txtar_file, archive):
        merged = geminio(txtar_file, archive)
        assert len(merged) == 4
        assert merged.duplicate_names() == ["content.txt", "wand.bin"]

    def test_merge_requires_two(self, archive):
        with pytest.raises(ValueError, match="at least 2"):
            geminio(archive)

    def test_merge_skips_empty_preambles(self, archive):
        merged = geminio(Archive(), archive)
        assert merged.preamble() == "mischief managed\n"


class TestPriorIncantato:

    def test_valid_archive(self, archive):
        report = prior_incantato(archive)
        assert report["valid"] is True
        assert report["files"] == 2
        assert report["names"] == ["content.txt", "wand.bin"]
        assert report["base64"] == ["wand.bin"]
        assert report["edits"] == []
        assert report["preamble"] is True

    def test_duplicates_invalidate(self, archive):
        archive.add_file(File("content.txt", b"again\n"))
        report = prior_incantato(archive)
        assert report["valid"] is False
        assert report["duplicates"] == ["content.txt"]

    def test_invalid_names(self):
        a = Archive()
        a.add_file(File("bad -- name", b"x\n"))
        report = prior_incantato(a)
        assert report["valid"] is False
        assert "bad -- name" in report["invalid_names"]

    def test_edits_listed(self):
        a = Archive()
        a.add_edit(EditRef("main.go", "base.txtar", "old\n", "new\n"))
        report = prior_incantato(a)
        assert report["edits"] == ["main.go"]
        assert report["base64"] == []
        assert report["preamble"] is False

    def test_commands_listed(self):
        a = Archive(preamble="[command: rg](#search1)\n")
        assert prior_incantato(a)["commands"] == ["search1"]
