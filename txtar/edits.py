"""
Edit resolution - applies the edit sections of an archive.

An edit without a source archive targets the first plain file of the same
name in its own archive. An edit naming a source archive is resolved through
a caller-supplied ``lookup(source_archive) -> Archive``; loading that archive
(from disk, a cache, the network) is the caller's concern.
"""

from __future__ import annotations

import logging
from typing import Callable

from txtar.archive import Archive, EditRef, File
from txtar.errors import EditApplyError

logger = logging.getLogger(__name__)

ArchiveLookup = Callable[[str], Archive]


def _find_target(archive: Archive, name: str) -> File | None:
    for f in archive.files():
        if f.name == name and not f.is_edit:
            return f
    return None


def _apply_to(file: File, edit: EditRef) -> File:
    try:
        text = file.text
    except UnicodeDecodeError:
        raise EditApplyError(edit.target_name, "target content is not UTF-8 text") from None
    return File(file.name, edit.apply(text))


def apply_edits(archive: Archive, lookup: ArchiveLookup | None = None) -> Archive:
    """Return a new Archive with every edit section applied.

    Edited files replace their originals in place; targets pulled from other
    archives are appended in edit order. Edit sections are dropped. Multiple
    edits to the same target apply in archive order.
    """
    result: list[File] = [f for f in archive.files() if not f.is_edit]
    external: dict[tuple[str, str], int] = {}
    loaded: dict[str, Archive] = {}

    for file in archive.files():
        edit = file.edit_ref
        if edit is None:
            continue

        if edit.source_archive is None:
            index = next(
                (i for i, f in enumerate(result) if f.name == edit.target_name), None
            )
            if index is None:
                raise EditApplyError(edit.target_name, "target file not found in archive")
            result[index] = _apply_to(result[index], edit)
            continue

        key = (edit.source_archive, edit.target_name)
        if key in external:
            index = external[key]
            result[index] = _apply_to(result[index], edit)
            continue

        if lookup is None:
            raise EditApplyError(
                edit.target_name,
                f"no lookup given to resolve archive {edit.source_archive!r}",
            )
        if edit.source_archive not in loaded:
            loaded[edit.source_archive] = lookup(edit.source_archive)
        target = _find_target(loaded[edit.source_archive], edit.target_name)
        if target is None:
            raise EditApplyError(
                edit.target_name, f"target file not found in {edit.source_archive!r}"
            )
        result.append(_apply_to(target, edit))
        external[key] = len(result) - 1

    logger.debug(
        "Applied %d edits (%d external archives)",
        sum(1 for f in archive.files() if f.is_edit), len(loaded),
    )
    return Archive(preamble=archive.preamble(), files=result)
