"""
Archive - in-memory model of a txtar archive.

An Archive is an ordered list of Files plus a free-text preamble. Order is
significant and duplicate names are allowed; callers that need one file per
name check with has_duplicate_names() / check_unique_names().
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple

from txtar.classify import classify
from txtar.errors import DuplicateName, EditApplyError, InvalidEncoding, InvalidName
from txtar.spec import COMMAND_REF, NEW_CONTENT_MARKER, format_edit_directive


class FileEncoding(enum.Enum):
    PLAIN = "plain"
    BASE64 = "base64"


def _terminated(block: str) -> str:
    if block and not block.endswith("\n"):
        return block + "\n"
    return block


class Command(NamedTuple):
    """A ``[command: <name>](#<href>)`` reference from the preamble."""

    name: str
    href: str


def parse_commands(text: str) -> list[Command]:
    """All command references in ``text``, in order. Each stays on one line."""
    return [
        Command(m.group("name").strip(), m.group("href"))
        for m in COMMAND_REF.finditer(text)
    ]


@dataclass
class EditRef:
    """A substitution of ``old_content`` by ``new_content`` in a named file.

    ``source_archive`` names the archive holding the target; None means the
    archive this edit lives in. Resolving it is up to the caller.
    """

    target_name: str
    source_archive: str | None = None
    old_content: str = ""
    new_content: str = ""

    def __post_init__(self) -> None:
        # Blocks are stored line-terminated, the way they read back from disk.
        self.old_content = _terminated(self.old_content)
        self.new_content = _terminated(self.new_content)

    def header(self) -> str:
        return format_edit_directive(self.target_name, self.source_archive).rstrip("\n")

    def render(self) -> str:
        """Canonical body text of the edit section (directive line included)."""
        return (
            format_edit_directive(self.target_name, self.source_archive)
            + _terminated(self.old_content)
            + NEW_CONTENT_MARKER
            + _terminated(self.new_content)
        )

    def apply(self, text: str) -> str:
        """Return ``text`` with the single occurrence of old_content replaced.

        An empty old_content inserts new_content at the start of the text.
        """
        if not self.old_content:
            return self.new_content + text
        count = text.count(self.old_content)
        if count == 0:
            raise EditApplyError(self.target_name, "old content not found")
        if count > 1:
            raise EditApplyError(
                self.target_name, f"old content found {count} times (ambiguous)"
            )
        return text.replace(self.old_content, self.new_content, 1)


@dataclass
class File:
    """One archived file. ``encoding`` is a cached hint, never authoritative."""

    name: str
    content: bytes = b""
    encoding: FileEncoding | None = field(default=None, compare=False)
    edit_ref: EditRef | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidName(self.name, "name cannot be empty")
        if isinstance(self.content, str):
            try:
                self.content = self.content.encode("utf-8")
            except UnicodeEncodeError:
                raise InvalidEncoding(self.name, "text is not encodable as UTF-8") from None
        else:
            self.content = bytes(self.content)

        # Edit bodies are written through the edit grammar, their delimiter
        # line is expected.
        if self.edit_ref is not None:
            if self.encoding is None:
                self.encoding = FileEncoding.PLAIN
            return

        is_binary = classify(self.content).is_binary
        if self.encoding is None:
            self.encoding = FileEncoding.BASE64 if is_binary else FileEncoding.PLAIN
        elif self.encoding is FileEncoding.PLAIN and is_binary:
            raise InvalidEncoding(self.name)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    @property
    def is_edit(self) -> bool:
        return self.edit_ref is not None


class Archive:
    """Ordered collection of files with an optional preamble."""

    def __init__(self, preamble: str = "", files: list[File] | None = None) -> None:
        self._preamble = _terminated(preamble)
        self._files: list[File] = list(files) if files else []

    @classmethod
    def new(cls) -> Archive:
        return cls()

    def add_file(self, file: File) -> File:
        self._files.append(file)
        return file

    def add_edit(self, edit_ref: EditRef) -> File:
        """Append an edit section for ``edit_ref`` and return its File."""
        file = File(
            name=edit_ref.target_name,
            content=edit_ref.render(),
            encoding=FileEncoding.PLAIN,
            edit_ref=edit_ref,
        )
        return self.add_file(file)

    def find(self, name: str) -> File | None:
        """First file with the given name, or None."""
        for f in self._files:
            if f.name == name:
                return f
        return None

    def remove(self, name: str) -> list[File]:
        """Remove every file named ``name``. Returns the removed files."""
        removed = [f for f in self._files if f.name == name]
        self._files = [f for f in self._files if f.name != name]
        return removed

    def files(self) -> list[File]:
        return list(self._files)

    def preamble(self) -> str:
        return self._preamble

    def set_preamble(self, text: str) -> None:
        self._preamble = _terminated(text)

    def commands(self) -> list[Command]:
        """Command references in the preamble, ``[command: rg](#search1)``."""
        return parse_commands(self._preamble)

    def get_command(self, href: str) -> Command | None:
        """Command for ``href`` (without ``#``). A later reference wins."""
        for command in reversed(self.commands()):
            if command.href == href:
                return command
        return None

    def names(self) -> list[str]:
        return [f.name for f in self._files]

    def duplicate_names(self) -> list[str]:
        """Names that occur more than once, in order of first repeat."""
        seen: set[str] = set()
        dupes: list[str] = []
        for name in self.names():
            if name in seen and name not in dupes:
                dupes.append(name)
            seen.add(name)
        return dupes

    def has_duplicate_names(self) -> bool:
        return len(set(self.names())) != len(self._files)

    def check_unique_names(self) -> None:
        dupes = self.duplicate_names()
        if dupes:
            raise DuplicateName(dupes)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[File]:
        return iter(list(self._files))

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self._files)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Archive):
            return NotImplemented
        return self._preamble == other._preamble and self._files == other._files

    def __repr__(self) -> str:
        names = self.names()
        return f"Archive(files={names}, preamble={len(self._preamble)} chars)"
