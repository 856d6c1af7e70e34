"""
Txtar Spells - Aliased API with Harry Potter spell names.

    accio()            → Summon one file's content out of an archive on disk
    geminio()          → Merge several archives into one (Doubling Charm)
    prior_incantato()  → Validation report (shows what the archive holds)

Usage:
    from txtar.spells import accio, geminio, prior_incantato

    data = accio("fixtures.txtar", "go.mod")
    merged = geminio("base.txtar", "extra.txtar")
    report = prior_incantato(merged)
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from txtar.archive import Archive


# =============================================================================
# accio - Summon a file from a .txtar archive
# =============================================================================

def accio(path: str | Path, name: str) -> bytes | None:
    """
    Summon a file's content from a .txtar archive by name.
    Returns the first match, or None if no file has that name.

        data = accio("fixtures.txtar", "main.go")
    """
    from txtar.reader import read

    file = read(path).find(name)
    return file.content if file is not None else None


# =============================================================================
# geminio - Merge multiple archives into one (Doubling Charm)
# =============================================================================

def geminio(*sources: "Archive | str | Path") -> "Archive":
    """
    Cast Geminio - merge multiple archives into one.

        merged = geminio("part1.txtar", "part2.txtar")
        merged = geminio(archive1, archive2, archive3)

    Args:
        *sources: File paths or Archive objects to merge.

    Returns:
        A new Archive whose preamble is the non-empty source preambles joined
        by newlines and whose files are every source's files, in order.
        Duplicate names are kept; check with has_duplicate_names().
    """
    from txtar.archive import Archive
    from txtar.reader import read

    if len(sources) < 2:
        raise ValueError("Geminio requires at least 2 sources to merge")

    archives: list[Archive] = []
    for src in sources:
        if isinstance(src, Archive):
            archives.append(src)
        else:
            archives.append(read(src))

    preambles: list[str] = []
    for a in archives:
        text = a.preamble()
        if text:
            preambles.append(text if text.endswith("\n") else text + "\n")

    merged = Archive(preamble="".join(preambles))
    for a in archives:
        for f in a.files():
            merged.add_file(f)
    return merged


# =============================================================================
# prior_incantato - Validate an archive
# =============================================================================

def prior_incantato(archive: "Archive") -> dict:
    """
    Cast Prior Incantato - reveal what an archive holds and whether it will
    encode cleanly.

        result = prior_incantato(archive)
        assert result["valid"]
    """
    from txtar.classify import needs_base64
    from txtar.errors import InvalidName
    from txtar.writer import validate_name

    invalid: dict[str, str] = {}
    for f in archive.files():
        try:
            validate_name(f.name)
        except InvalidName as e:
            invalid[f.name] = e.reason

    duplicates = archive.duplicate_names()
    return {
        "valid": not invalid and not duplicates,
        "files": len(archive),
        "names": archive.names(),
        "duplicates": duplicates,
        "invalid_names": invalid,
        "base64": [f.name for f in archive.files() if not f.is_edit and needs_base64(f.content)],
        "edits": [f.name for f in archive.files() if f.is_edit],
        "preamble": bool(archive.preamble()),
        "commands": [c.href for c in archive.commands()],
    }
