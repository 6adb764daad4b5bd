"""Sequential reading of a page and its patch as one stream."""

from __future__ import annotations

import io
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import structlog

from tldr_cache.core.errors import CacheIOError

logger = structlog.get_logger()

PATCH_SEPARATOR = b"\n"


class ChainedReader(io.RawIOBase):
    """Raw stream reading its sources one after another.

    Sources are consumed lazily: bytes are only read from a source when the
    caller asks for them. Closing the reader closes every source.
    """

    def __init__(self, sources: Sequence[BinaryIO]):
        super().__init__()
        self._sources = list(sources)
        self._index = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while self._index < len(self._sources):
            count = self._sources[self._index].readinto(buffer)  # type: ignore[attr-defined]
            if count:
                return count
            self._index += 1
        return 0

    def close(self) -> None:
        if self.closed:
            return
        try:
            for source in self._sources:
                source.close()
        finally:
            super().close()


def _open(path: Path, kind: str) -> BinaryIO:
    try:
        return open(path, "rb", buffering=0)
    except OSError as e:
        raise CacheIOError(
            f"Could not open {kind} file at {path}",
            path=path,
            operation=f"open {kind}",
        ) from e


def open_chained(page_path: Path, patch_path: Path | None = None) -> io.BufferedReader:
    """Open a page, and optionally its patch, as a single buffered stream.

    Both files are opened immediately so that a missing file is reported
    here rather than halfway through reading. The stream yields the page
    bytes, then a newline separator and the patch bytes if a patch is given.

    Args:
        page_path: Page file path
        patch_path: Optional patch file path

    Returns:
        Buffered, single-pass binary stream

    Raises:
        CacheIOError: If either file cannot be opened
    """
    page_file = _open(page_path, "page")

    if patch_path is None:
        return io.BufferedReader(ChainedReader([page_file]))

    try:
        patch_file = _open(patch_path, "patch")
    except CacheIOError:
        page_file.close()
        raise

    logger.debug("page_patch_chained", page=str(page_path), patch=str(patch_path))
    return io.BufferedReader(
        ChainedReader([page_file, io.BytesIO(PATCH_SEPARATOR), patch_file])
    )
