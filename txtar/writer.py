"""
Writer - serializes an Archive to canonical txtar text.

For every file the encoding is re-derived from the current content; the
cached FileEncoding tag on a File is never trusted. Content that would not
survive a plain round trip (binary, marker lines, missing final newline,
directive-like first line) is written as wrapped base64.
"""

from __future__ import annotations

import base64
import logging
import os
import tempfile
from pathlib import Path

from txtar.archive import Archive, EditRef, File
from txtar.classify import contains_marker, needs_base64
from txtar.errors import InvalidEditContent, InvalidName, InvalidPreamble
from txtar.spec import (
    BASE64_DIRECTIVE,
    DEFAULT_LINE_WIDTH,
    EDIT_SEPARATOR,
    EDIT_SUFFIX,
    MARKER_PREFIX,
    MARKER_SUFFIX,
    format_marker,
)

logger = logging.getLogger(__name__)


def validate_name(name: str) -> None:
    """Raise InvalidName if ``name`` cannot be written as a marker."""
    if not name:
        raise InvalidName(name, "name cannot be empty")
    if "\n" in name or "\r" in name:
        raise InvalidName(name, "name contains a line break")
    if MARKER_PREFIX in name or MARKER_SUFFIX in name:
        raise InvalidName(name, "name contains a marker sequence")
    if name != name.strip():
        raise InvalidName(name, "name has leading or trailing whitespace")


def _validate_edit(file_name: str, edit: EditRef) -> None:
    target = edit.target_name
    if not target or target != target.strip():
        raise InvalidEditContent(file_name, "target name is empty or padded")
    for label, value in (("target name", target), ("source archive", edit.source_archive or "")):
        if "\n" in value or "\r" in value:
            raise InvalidEditContent(file_name, f"{label} contains a line break")
        if EDIT_SUFFIX in value:
            raise InvalidEditContent(file_name, f"{label} contains {EDIT_SUFFIX!r}")
    if EDIT_SEPARATOR in target:
        raise InvalidEditContent(file_name, f"target name contains {EDIT_SEPARATOR!r}")
    for label, block in (("old content", edit.old_content), ("new content", edit.new_content)):
        if contains_marker(block):
            raise InvalidEditContent(file_name, f"{label} contains a marker line")


class Encoder:
    """
    Txtar encoder.

    Usage:
        text = Encoder().encode(archive)

        # Narrower base64 lines
        text = Encoder(line_width=64).encode(archive)
    """

    def __init__(self, line_width: int = DEFAULT_LINE_WIDTH) -> None:
        if not isinstance(line_width, int) or line_width <= 0:
            raise ValueError(f"line_width must be a positive integer, got {line_width!r}")
        self.line_width = line_width

    def encode(self, archive: Archive) -> str:
        """Serialize an archive to text. Pure - does not mutate the input."""
        parts: list[str] = []

        preamble = archive.preamble()
        if preamble:
            if contains_marker(preamble):
                raise InvalidPreamble("Preamble contains a file marker line")
            parts.append(preamble)

        for file in archive.files():
            parts.append(self._encode_file(file))

        return "".join(parts)

    def _encode_file(self, file: File) -> str:
        validate_name(file.name)
        header = format_marker(file.name)

        if file.edit_ref is not None:
            _validate_edit(file.name, file.edit_ref)
            return header + file.edit_ref.render()

        if needs_base64(file.content):
            logger.debug("Encoding %r as base64 (%d bytes)", file.name, len(file.content))
            return header + BASE64_DIRECTIVE + "\n" + self._wrap_base64(file.content)

        return header + file.content.decode("utf-8")

    def _wrap_base64(self, data: bytes) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        width = self.line_width
        return "".join(
            encoded[i:i + width] + "\n" for i in range(0, len(encoded), width)
        )

    def write(self, archive: Archive, path: str | Path, mode: int = 0o644) -> int:
        """Write an archive to file atomically. Returns bytes written."""
        data = self.encode(archive).encode("utf-8")
        path = os.fspath(path)
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".txtar.tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Wrote %d files to %s (%d bytes)", len(archive), path, len(data))
        return len(data)


def encode(archive: Archive, line_width: int = DEFAULT_LINE_WIDTH) -> str:
    """Serialize ``archive`` to txtar text."""
    return Encoder(line_width=line_width).encode(archive)


def write(archive: Archive, path: str | Path, line_width: int = DEFAULT_LINE_WIDTH) -> int:
    """Write ``archive`` to ``path`` atomically. Returns bytes written."""
    return Encoder(line_width=line_width).write(archive, path)
