"""
Txtar Format Specification
==========================

Layout:
    free-form preamble text          <- Anything before the first marker
    [command: rg](#search1)          <- Optional command reference in the preamble
    -- <name> --                     <- File marker (whole line, name trimmed)
    <content>                        <- Plain body, stored verbatim
    -- <name> --
    [.base64]                        <- Base64 directive (first body line)
    <base64 lines>                   <- Wrapped base64 of the raw bytes
    -- <name> --
    [edit:<archive>:<name>]          <- Edit directive (archive part optional)
    <old content>
    -- new --                        <- Old/new delimiter (only inside an edit)
    <new content>

Design Decisions:
    - A marker must occupy a full line; trailing whitespace (and \\r) is ignored
    - Body text runs up to, not including, the next marker line
    - Content that would be misread as a marker or directive is stored as base64
    - Directives live in the body, never in the marker, so names stay verbatim
    - Edit sections carry their own delimiter, recognized only inside the edit

Priority: Round-trip fidelity > Human Readability > Compactness
"""

from __future__ import annotations

import re

# Marker grammar
MARKER_PREFIX = "-- "
MARKER_SUFFIX = " --"

# Body directives
BASE64_DIRECTIVE = "[.base64]"
EDIT_PREFIX = "[edit:"
EDIT_SUFFIX = "]"
EDIT_SEPARATOR = ":"
NEW_CONTENT_NAME = "new"

# Command references in the preamble: [command: rg](#search1)
COMMAND_REF = re.compile(r"\[command:(?P<name>[^\]\n]*)\][ \t]*\(#(?P<href>[^)\n]*)\)")

# Encoder defaults
DEFAULT_LINE_WIDTH = 76  # MIME-style base64 wrapping

# Safety limits
MAX_ARCHIVE_SIZE = 100 * 1024 * 1024  # 100MB max input for the decoder

# File extension
EXTENSION = ".txtar"


def parse_marker(line: str) -> str | None:
    """Return the file name if ``line`` is a marker line, else None.

    The line may still carry its terminator; trailing whitespace is ignored.
    """
    line = line.rstrip()
    if not line.startswith(MARKER_PREFIX) or not line.endswith(MARKER_SUFFIX):
        return None
    if len(line) < len(MARKER_PREFIX) + len(MARKER_SUFFIX):
        return None
    name = line[len(MARKER_PREFIX):-len(MARKER_SUFFIX)].strip()
    return name or None


def format_marker(name: str) -> str:
    return f"{MARKER_PREFIX}{name}{MARKER_SUFFIX}\n"


NEW_CONTENT_MARKER = format_marker(NEW_CONTENT_NAME)


def is_base64_directive(line: str) -> bool:
    return line.rstrip() == BASE64_DIRECTIVE


def parse_edit_directive(line: str) -> tuple[str | None, str] | None:
    """Parse ``[edit:<name>]`` or ``[edit:<archive>:<name>]``.

    Returns (source_archive, target_name) or None when the line is not an
    edit directive. The target name may come back empty; callers decide
    whether that is an error. The archive part is split off the right so
    archive paths may contain colons.
    """
    line = line.rstrip()
    if not line.startswith(EDIT_PREFIX) or not line.endswith(EDIT_SUFFIX):
        return None
    inner = line[len(EDIT_PREFIX):-len(EDIT_SUFFIX)]
    if EDIT_SEPARATOR in inner:
        archive, name = inner.rsplit(EDIT_SEPARATOR, 1)
        return archive or None, name.strip()
    return None, inner.strip()


def format_edit_directive(target_name: str, source_archive: str | None = None) -> str:
    if source_archive:
        return f"{EDIT_PREFIX}{source_archive}{EDIT_SEPARATOR}{target_name}{EDIT_SUFFIX}\n"
    return f"{EDIT_PREFIX}{target_name}{EDIT_SUFFIX}\n"


def is_directive(line: str) -> bool:
    """True if ``line`` would be read back as a body directive."""
    return is_base64_directive(line) or parse_edit_directive(line) is not None
