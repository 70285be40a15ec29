from __future__ import annotations
from typing import Optional


class CsvSearchError(Exception):
    """Base error; `message` is what the HTTP caller sees."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(CsvSearchError):
    """Uploaded stream could not be read or is not valid CSV."""

    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
        self.line = line


class InsertError(CsvSearchError):
    """Store rejected a batch; the whole batch was rolled back."""

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class ValidationError(CsvSearchError):
    """Request input missing or invalid; rejected before any work."""


class ConfigError(CsvSearchError):
    """Required configuration missing or invalid."""
