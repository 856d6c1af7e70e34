"""
Content classification - decides whether a body can be stored as plain text.

Detection rules (in order):
  1. Data is not valid UTF-8 -> binary (INVALID_UTF8)
  2. A line looks like a file marker ``-- name --`` -> binary (CONTENT_CONFLICT)
  3. Otherwise -> plain text

A marker line inside a plain body would be read back as the start of a new
file, so such content has to travel as base64 even though it is valid text.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

from txtar.spec import parse_marker, is_directive


class BinaryReason(enum.Enum):
    INVALID_UTF8 = "invalid-utf8"
    CONTENT_CONFLICT = "content-conflict"


class Classification(NamedTuple):
    is_binary: bool
    collides_with_marker: bool

    @property
    def reason(self) -> BinaryReason | None:
        if not self.is_binary:
            return None
        if self.collides_with_marker:
            return BinaryReason.CONTENT_CONFLICT
        return BinaryReason.INVALID_UTF8


def _as_text(data: bytes | str) -> str | None:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def contains_marker(text: str) -> bool:
    return any(parse_marker(line) is not None for line in text.split("\n"))


def classify(data: bytes | str) -> Classification:
    """Classify ``data`` as (is_binary, collides_with_marker). Pure."""
    text = _as_text(data)
    if text is None:
        return Classification(is_binary=True, collides_with_marker=False)
    collides = contains_marker(text)
    return Classification(is_binary=collides, collides_with_marker=collides)


def needs_base64(data: bytes | str) -> bool:
    """True if ``data`` would not survive a round trip as a plain body.

    Beyond the classifier verdict, a plain body always ends in a newline on
    disk and its first line must not read back as a directive.
    """
    if classify(data).is_binary:
        return True
    text = _as_text(data)
    if not text:
        return False
    if not text.endswith("\n"):
        return True
    first_line = text.split("\n", 1)[0]
    return is_directive(first_line)
