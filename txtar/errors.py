from __future__ import annotations


class TxtarError(ValueError):
    """Base class for txtar-specific errors."""


# Decoding
class DecodeError(TxtarError):
    """Malformed archive text. ``line`` is 1-based, None if not applicable."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class InvalidBase64(DecodeError):
    def __init__(self, file_name: str, line: int, detail: str = "") -> None:
        self.file_name = file_name
        message = f"invalid base64 in {file_name!r}"
        if detail:
            message += f" ({detail})"
        super().__init__(message, line)


class InvalidEditSyntax(DecodeError):
    def __init__(self, file_name: str, line: int, detail: str = "") -> None:
        self.file_name = file_name
        message = f"malformed edit section {file_name!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message, line)


class UnexpectedEof(DecodeError):
    def __init__(self, file_name: str, line: int) -> None:
        self.file_name = file_name
        super().__init__(
            f"edit section {file_name!r} ended before its new-content delimiter", line
        )


class ArchiveTooLarge(DecodeError):
    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"Input size {size} exceeds maximum {limit} bytes. Pass max_size= to override."
        )


# Encoding
class EncodeError(TxtarError):
    pass


class InvalidName(EncodeError):
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid file name {name!r}: {reason}")


class InvalidPreamble(EncodeError):
    pass


class InvalidEditContent(EncodeError):
    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Cannot encode edit section {file_name!r}: {reason}")


# Model / validation
class InvalidEncoding(TxtarError):
    def __init__(self, name: str, reason: str = "") -> None:
        self.name = name
        self.reason = reason or "cannot be stored as plain text (not UTF-8 or contains a marker line)"
        super().__init__(f"File {name!r}: {self.reason}")


class DuplicateName(TxtarError):
    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(f"Duplicate file names: {', '.join(names)}")


class EditApplyError(TxtarError):
    def __init__(self, target_name: str, reason: str) -> None:
        self.target_name = target_name
        self.reason = reason
        super().__init__(f"Cannot apply edit to {target_name!r}: {reason}")
