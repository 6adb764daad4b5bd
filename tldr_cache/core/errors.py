"""Exceptions raised by cache operations.

Absence is not an error: a missing page or a missing cache directory is
reported as ``None`` by the operations that look them up. Everything below
signals a real failure and carries the path or URL involved.
"""

from __future__ import annotations

from pathlib import Path


class CacheError(Exception):
    """Base class for cache failures.

    Attributes:
        path: Filesystem path the failure relates to, if any
    """

    def __init__(self, message: str, *, path: Path | None = None):
        self.path = path
        super().__init__(message)


class NotADirectoryCacheError(CacheError):
    """Raised when a configured directory exists but is not a directory."""

    def __init__(self, path: Path):
        super().__init__(f"{path} exists, but is not a directory.", path=path)


class CacheIOError(CacheError):
    """Raised when a filesystem operation fails.

    Attributes:
        operation: Short description of what was attempted
    """

    def __init__(self, message: str, *, path: Path, operation: str):
        self.operation = operation
        super().__init__(message, path=path)


class InvalidFilenameError(CacheError):
    """Raised when a directory entry's name is not valid text."""

    def __init__(self, path: Path):
        super().__init__(f"Found invalid filename: {path!r}", path=path)


class ClockSkewError(CacheError):
    """Raised when the cache mtime cannot be ordered against the current time."""


class CacheClosedError(CacheError):
    """Raised when a cache handle is used after it was cleared."""


class TransferError(CacheError):
    """Raised when fetching or unpacking a remote archive fails.

    Attributes:
        url: Archive URL, if the failure relates to one
    """

    def __init__(self, message: str, *, url: str | None = None, path: Path | None = None):
        self.url = url
        super().__init__(message, path=path)
