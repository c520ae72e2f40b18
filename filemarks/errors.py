"""Exception types shared by the mark store, listing parser, and facade.

Everything derives from ``FilemarksError`` so hosts can catch one type.
"""

from __future__ import annotations


class FilemarksError(Exception):
    """Base class for recoverable filemarks failures."""


class InvalidPathError(FilemarksError):
    """Raised for empty, non-string, or otherwise unusable path input."""


class InvalidKeyError(FilemarksError):
    """Raised when a mark key is empty or contains whitespace."""


class ProjectUndetectableError(FilemarksError):
    """Raised when neither a path hint nor a working directory is available."""


class MarkNotFoundError(FilemarksError):
    """Raised when a key has no mark in the active project."""

    def __init__(self, key: str, project: str) -> None:
        super().__init__(f"{key} not defined for this project")
        self.key = key
        self.project = project


class LineError(FilemarksError):
    """Listing parse failure pinned to a 1-based line number."""

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


class PersistenceWriteError(FilemarksError):
    """Raised when the storage file cannot be written."""


class ConfigError(FilemarksError):
    """Raised for unknown or wrongly typed configuration overrides."""
