"""
txtar - plain-text multi-file archives with binary and edit sections.

The format packs named file bodies into one text blob:

    optional preamble
    -- hello.txt --
    Hello, world!
    -- logo.png --
    [.base64]
    iVBORw0KGgo...
    -- main.go --
    [edit:base.txtar:main.go]
    fmt.Println("old")
    -- new --
    fmt.Println("new")

Content that would not survive as plain text (non-UTF-8 bytes, lines that
look like markers) is written as base64 automatically.
"""

from txtar.spec import DEFAULT_LINE_WIDTH, EXTENSION, MAX_ARCHIVE_SIZE
from txtar.archive import Archive, Command, EditRef, File, FileEncoding, parse_commands
from txtar.classify import BinaryReason, Classification, classify, needs_base64
from txtar.errors import (
    ArchiveTooLarge,
    DecodeError,
    DuplicateName,
    EditApplyError,
    EncodeError,
    InvalidBase64,
    InvalidEditContent,
    InvalidEditSyntax,
    InvalidEncoding,
    InvalidName,
    InvalidPreamble,
    TxtarError,
    UnexpectedEof,
)
from txtar.reader import Decoder, decode, is_txtar, read
from txtar.writer import Encoder, encode, write
from txtar.edits import apply_edits

__version__ = "0.1.0"
