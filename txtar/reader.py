"""
Reader - line-oriented decoder for txtar archives.

Single forward scan over the input lines:
  - Preamble: everything before the first marker line
  - Section header: the marker line names the file; the first body line may
    be a [.base64] or [edit:...] directive
  - Body: everything up to the next marker line or end of input

Decoding is all-or-nothing: the first malformed section raises a DecodeError
carrying the line number, and no partial Archive is returned.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path

from txtar.archive import Archive, EditRef, File, FileEncoding
from txtar.errors import (
    ArchiveTooLarge,
    DecodeError,
    InvalidBase64,
    InvalidEditSyntax,
    UnexpectedEof,
)
from txtar.spec import (
    MAX_ARCHIVE_SIZE,
    NEW_CONTENT_MARKER,
    NEW_CONTENT_NAME,
    is_base64_directive,
    parse_edit_directive,
    parse_marker,
)

logger = logging.getLogger(__name__)

_BASE64_LINE = re.compile(r"[A-Za-z0-9+/=]*")


def split_lines(text: str) -> list[str]:
    """Split on newlines, keeping each line's terminator."""
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


class Decoder:
    """
    Txtar decoder.

    Usage:
        archive = Decoder().decode(data)

        # From disk, with a custom size limit
        archive = Decoder(max_size=10 * 1024 * 1024).read("fixtures.txtar")
    """

    def __init__(self, max_size: int = MAX_ARCHIVE_SIZE) -> None:
        self.max_size = max_size

    def read(self, path: str | Path) -> Archive:
        """Read and decode an archive file. Size is checked before reading."""
        path = Path(path)
        file_size = path.stat().st_size
        if file_size > self.max_size:
            raise ArchiveTooLarge(file_size, self.max_size)
        return self.decode(path.read_bytes())

    def decode(self, data: bytes | str) -> Archive:
        """Decode bytes or text into an Archive."""
        text = self._to_text(data)
        lines = split_lines(text)
        archive = Archive()

        i = 0
        while i < len(lines) and parse_marker(lines[i]) is None:
            i += 1
        archive.set_preamble("".join(lines[:i]))

        while i < len(lines):
            name = parse_marker(lines[i])
            i += 1
            if i < len(lines) and is_base64_directive(lines[i]):
                file, i = self._read_base64(name, lines, i + 1)
            elif i < len(lines) and parse_edit_directive(lines[i]) is not None:
                file, i = self._read_edit(name, lines, i)
            else:
                body, i = self._read_body(lines, i)
                file = File(name, "".join(body), encoding=FileEncoding.PLAIN)
            archive.add_file(file)

        logger.debug(
            "Decoded %d files (%d lines, preamble %d chars)",
            len(archive), len(lines), len(archive.preamble()),
        )
        return archive

    def _to_text(self, data: bytes | str) -> str:
        if isinstance(data, str):
            # max_size counts UTF-8 bytes, as it does for file input
            size = len(data.encode("utf-8", errors="surrogatepass"))
            if size > self.max_size:
                raise ArchiveTooLarge(size, self.max_size)
            return data
        if len(data) > self.max_size:
            raise ArchiveTooLarge(len(data), self.max_size)
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            line = bytes(data).count(b"\n", 0, e.start) + 1
            raise DecodeError("input is not valid UTF-8", line) from None

    @staticmethod
    def _read_body(lines: list[str], start: int) -> tuple[list[str], int]:
        """Collect lines from ``start`` up to the next marker or end of input."""
        i = start
        while i < len(lines) and parse_marker(lines[i]) is None:
            i += 1
        return lines[start:i], i

    def _read_base64(self, name: str, lines: list[str], start: int) -> tuple[File, int]:
        body, end = self._read_body(lines, start)

        chunks: list[str] = []
        last_line = start  # the directive line, if the body is empty
        for offset, line in enumerate(body):
            stripped = line.strip()
            if not stripped:
                continue
            lineno = start + offset + 1
            if not _BASE64_LINE.fullmatch(stripped):
                raise InvalidBase64(name, lineno, "illegal character")
            chunks.append(stripped)
            last_line = lineno

        try:
            content = base64.b64decode("".join(chunks), validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidBase64(name, last_line, str(e)) from None

        return File(name, content, encoding=FileEncoding.BASE64), end

    def _read_edit(self, name: str, lines: list[str], start: int) -> tuple[File, int]:
        """Parse an edit section whose directive sits at ``lines[start]``."""
        source_archive, target_name = parse_edit_directive(lines[start])
        if not target_name:
            raise InvalidEditSyntax(name, start + 1, "missing target name")

        # Inside an edit, the first "-- new --" line is the old/new delimiter
        # rather than a file boundary.
        i = start + 1
        while True:
            if i >= len(lines):
                raise UnexpectedEof(name, max(len(lines), 1))
            marker = parse_marker(lines[i])
            if marker == NEW_CONTENT_NAME:
                break
            if marker is not None:
                raise InvalidEditSyntax(
                    name, i + 1,
                    f"expected {NEW_CONTENT_MARKER.strip()!r} before the next file marker",
                )
            i += 1
        old_block = lines[start + 1:i]

        new_block, end = self._read_body(lines, i + 1)
        edit_ref = EditRef(
            target_name=target_name,
            source_archive=source_archive,
            old_content="".join(old_block),
            new_content="".join(new_block),
        )
        file = File(name, edit_ref.render(), encoding=FileEncoding.PLAIN, edit_ref=edit_ref)
        return file, end


def decode(data: bytes | str, max_size: int = MAX_ARCHIVE_SIZE) -> Archive:
    """Decode ``data`` into an Archive."""
    return Decoder(max_size=max_size).decode(data)


def read(path: str | Path, max_size: int = MAX_ARCHIVE_SIZE) -> Archive:
    """Read and decode an archive file."""
    return Decoder(max_size=max_size).read(path)


def is_txtar(data: bytes | str) -> bool:
    """Check whether data contains at least one file marker line."""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return any(parse_marker(line) is not None for line in data.split("\n"))
