"""Local page cache: lookup, enumeration and maintenance."""

from __future__ import annotations

import io
import os
import shutil
import stat
import tempfile
import time
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path

import structlog

from tldr_cache.core.config import CacheConfig
from tldr_cache.core.errors import (
    CacheClosedError,
    CacheIOError,
    ClockSkewError,
    InvalidFilenameError,
    NotADirectoryCacheError,
)
from tldr_cache.core.reader import open_chained
from tldr_cache.core.transfer import ArchiveTransfer

logger = structlog.get_logger()

PAGE_SUFFIX = ".md"
CUSTOM_PAGE_SUFFIX = ".page.md"
CUSTOM_PATCH_SUFFIX = ".patch.md"
OLD_CUSTOM_EXTENSIONS = frozenset({".page", ".patch"})


@dataclass(frozen=True)
class PageLookupResult:
    """Outcome of a successful page lookup.

    Holds paths only, so it stays valid after the cache handle is gone.

    Attributes:
        page_path: Page file to display
        patch_path: Custom patch to append to the page, if any
    """

    page_path: Path
    patch_path: Path | None = None

    @classmethod
    def with_page(cls, page_path: Path) -> PageLookupResult:
        """Create a result for a page without a patch.

        Args:
            page_path: Page file to display

        Returns:
            Lookup result
        """
        return cls(page_path=page_path)

    def with_optional_patch(self, patch_path: Path | None) -> PageLookupResult:
        """Return a copy of this result with the given patch.

        Args:
            patch_path: Patch file to append, or None for no patch

        Returns:
            New lookup result, this one is left unchanged
        """
        return replace(self, patch_path=patch_path)

    def reader(self) -> io.BufferedReader:
        """Open the page and patch as one buffered stream.

        The stream yields the page contents, followed by a newline and the
        patch contents when a patch is present. It is single-pass; call
        ``reader()`` again to read from the start.

        Raises:
            CacheIOError: If the page or patch file cannot be opened
        """
        return open_chained(self.page_path, self.patch_path)


class Cache:
    """Handle over a pages directory tree.

    Cache layout:
    <pages_directory>/
    └── pages.{language}/
        └── {platform}/
            └── {command}.md
    <custom_pages_directory>/
    ├── {command}.page.md        # Replaces the page entirely
    └── {command}.patch.md       # Appended to the page

    The root directory is checked to exist when the handle is created. No
    other state is kept; every operation reads the filesystem afresh.
    """

    def __init__(self, config: CacheConfig):
        """Wrap an existing pages directory. Use ``open`` or ``open_or_create``."""
        self._config = config
        self._cleared = False

    @staticmethod
    def _root_is_dir(path: Path) -> bool:
        """Check the root, returning False if it does not exist."""
        try:
            st = path.stat()
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise CacheIOError(
                f"Could not read metadata of {path}", path=path, operation="stat"
            ) from e

        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryCacheError(path)
        return True

    @classmethod
    def open(cls, config: CacheConfig) -> Cache | None:
        """Open an existing cache.

        Args:
            config: Cache configuration

        Returns:
            Cache handle, or None if the pages directory does not exist

        Raises:
            NotADirectoryCacheError: If the pages path is not a directory
        """
        if not cls._root_is_dir(config.pages_directory):
            return None
        return cls(config)

    @classmethod
    def open_or_create(cls, config: CacheConfig) -> Cache:
        """Open a cache, creating the pages directory if needed.

        Args:
            config: Cache configuration

        Returns:
            Cache handle

        Raises:
            NotADirectoryCacheError: If the pages path is not a directory
            CacheIOError: If the directory cannot be created
        """
        path = config.pages_directory
        if not cls._root_is_dir(path):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CacheIOError(
                    f"Cache directory `{path}` cannot be created",
                    path=path,
                    operation="create directory",
                ) from e
            logger.info("cache_directory_created", path=str(path))

        return cls(config)

    @property
    def config(self) -> CacheConfig:
        return self._config

    def _ensure_open(self) -> None:
        if self._cleared:
            raise CacheClosedError(
                "Cache was cleared and can no longer be used",
                path=self._config.pages_directory,
            )

    def age(self) -> timedelta:
        """Time since the pages directory was last modified.

        Raises:
            CacheIOError: If the modification time cannot be read
            ClockSkewError: If the modification time lies in the future
        """
        self._ensure_open()
        path = self._config.pages_directory
        try:
            mtime = path.stat().st_mtime
        except OSError as e:
            raise CacheIOError(
                f"Could not read modification time of {path}", path=path, operation="stat"
            ) from e

        now = time.time()
        if mtime > now:
            raise ClockSkewError(
                f"Error comparing cache mtime with current time: {path} is "
                f"{mtime - now:.0f}s in the future",
                path=path,
            )
        return timedelta(seconds=now - mtime)

    def find_page(self, command: str) -> PageLookupResult | None:
        """Find the page to display for a command.

        A custom ``<command>.page.md`` wins outright. Otherwise platforms are
        searched in order and, within each platform, languages in order; the
        first existing page is returned together with a custom
        ``<command>.patch.md`` if there is one.

        Args:
            command: Command name

        Returns:
            Lookup result, or None if no page exists
        """
        self._ensure_open()
        custom_dir = self._config.custom_pages_directory

        if custom_dir is not None:
            custom_page = custom_dir / f"{command}{CUSTOM_PAGE_SUFFIX}"
            if custom_page.is_file():
                logger.debug("custom_page_found", command=command, path=str(custom_page))
                return PageLookupResult.with_page(custom_page)

        patch_path = None
        if custom_dir is not None:
            candidate = custom_dir / f"{command}{CUSTOM_PATCH_SUFFIX}"
            if candidate.is_file():
                patch_path = candidate

        page_filename = f"{command}{PAGE_SUFFIX}"
        root = self._config.pages_directory
        for platform in self._config.platforms:
            for language in self._config.languages:
                page_path = root / language.directory_name / platform.directory_name / page_filename
                if page_path.is_file():
                    logger.debug(
                        "page_found",
                        command=command,
                        platform=platform.value,
                        language=language.tag,
                        patched=patch_path is not None,
                    )
                    return PageLookupResult.with_page(page_path).with_optional_patch(patch_path)

        logger.debug("page_not_found", command=command)
        return None

    @staticmethod
    def _collect(directory: Path, suffix: str, pages: list[str]) -> None:
        """Append names of files in a directory ending with suffix, suffix stripped."""
        try:
            entries = os.scandir(directory)
        except (FileNotFoundError, NotADirectoryError):
            return
        except OSError as e:
            raise CacheIOError(
                f"Could not list directory {directory}", path=directory, operation="list"
            ) from e

        with entries:
            for entry in entries:
                try:
                    is_file = entry.is_file()
                except OSError as e:
                    raise CacheIOError(
                        f"Could not read file type of {entry.path}",
                        path=Path(entry.path),
                        operation="stat",
                    ) from e
                if not is_file:
                    continue

                name = entry.name
                try:
                    name.encode("utf-8")
                except UnicodeEncodeError:
                    raise InvalidFilenameError(Path(entry.path)) from None

                if name.endswith(suffix):
                    pages.append(name[: -len(suffix)])
                else:
                    logger.debug("page_entry_skipped", path=entry.path, expected_suffix=suffix)

    def list_pages(self) -> list[str]:
        """List the names of all cached and custom pages.

        Returns:
            Sorted command names without duplicates

        Raises:
            InvalidFilenameError: If a filename is not valid text
            CacheIOError: If a directory cannot be read
        """
        self._ensure_open()
        pages: list[str] = []

        root = self._config.pages_directory
        for language in self._config.languages:
            for platform in self._config.platforms:
                self._collect(
                    root / language.directory_name / platform.directory_name,
                    PAGE_SUFFIX,
                    pages,
                )

        if self._config.custom_pages_directory is not None:
            self._collect(self._config.custom_pages_directory, CUSTOM_PAGE_SUFFIX, pages)

        return sorted(set(pages))

    def old_custom_pages_exist(self) -> bool:
        """Check for custom pages using the old ``.page``/``.patch`` naming.

        Returns:
            True if the custom pages directory holds such a file
        """
        self._ensure_open()
        directory = self._config.custom_pages_directory
        if directory is None:
            return False

        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if Path(entry.name).suffix in OLD_CUSTOM_EXTENSIONS:
                        return True
        except OSError as e:
            logger.debug("custom_pages_unreadable", path=str(directory), error=str(e))
            return False

        return False

    def clear(self) -> None:
        """Delete the pages directory. The handle cannot be used afterwards.

        Raises:
            CacheIOError: If the directory cannot be removed
        """
        self._ensure_open()
        path = self._config.pages_directory
        self._cleared = True
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise CacheIOError(
                f"Could not remove pages directory at {path}",
                path=path,
                operation="remove directory",
            ) from e
        logger.info("cache_cleared", path=str(path))

    @staticmethod
    def _match_mode(staging: Path, root: Path) -> None:
        """Give the staging directory the permissions the root should keep.

        ``mkdtemp`` creates directories with mode 0700. The mode of the
        existing root is copied, or the umask default applied if it is gone.
        """
        try:
            if root.exists():
                shutil.copymode(root, staging)
            else:
                umask = os.umask(0)
                os.umask(umask)
                os.chmod(staging, 0o777 & ~umask)
        except OSError as e:
            raise CacheIOError(
                f"Could not set permissions of staging directory {staging}",
                path=staging,
                operation="chmod",
            ) from e

    def _swap(self, staging: Path, root: Path) -> None:
        """Replace root with the staging directory."""
        backup = root.with_name(f".{root.name}.old-{os.getpid()}-{time.time_ns()}")

        had_root = root.exists()
        if had_root:
            try:
                os.replace(root, backup)
            except OSError as e:
                raise CacheIOError(
                    f"Could not move old pages directory {root} aside",
                    path=root,
                    operation="rename",
                ) from e

        try:
            os.replace(staging, root)
        except OSError as e:
            if had_root:
                try:
                    os.replace(backup, root)
                except OSError as rollback_error:
                    logger.error(
                        "old_pages_restore_failed",
                        path=str(root),
                        backup=str(backup),
                        error=str(rollback_error),
                    )
                    raise CacheIOError(
                        f"Could not move new pages into {root} ({e}), and restoring "
                        f"the old pages failed ({rollback_error}). They are kept at {backup}",
                        path=backup,
                        operation="rename",
                    ) from rollback_error
            raise CacheIOError(
                f"Could not move new pages into {root}", path=root, operation="rename"
            ) from e

        if had_root:
            try:
                shutil.rmtree(backup)
            except OSError as e:
                logger.warning("old_pages_cleanup_failed", path=str(backup), error=str(e))

    def update(self, archive_url: str, transfer: ArchiveTransfer | None = None) -> int:
        """Replace the cached pages with the contents of a remote archive.

        The archive is unpacked into a staging directory next to the pages
        directory, which is swapped in only after extraction succeeded. On
        failure the existing pages are left untouched.

        Args:
            archive_url: URL of the ZIP archive
            transfer: Transfer to download with, a default one is used if None

        Returns:
            Number of files extracted

        Raises:
            TransferError: If downloading or unpacking fails
            CacheIOError: If the staging or swap steps fail
        """
        self._ensure_open()
        root = self._config.pages_directory
        logger.info("cache_update_started", url=archive_url, path=str(root))

        try:
            staging = Path(tempfile.mkdtemp(prefix=f".{root.name}.staging-", dir=root.parent))
        except OSError as e:
            raise CacheIOError(
                f"Could not create staging directory next to {root}",
                path=root.parent,
                operation="create directory",
            ) from e

        owns_transfer = transfer is None
        transfer = transfer or ArchiveTransfer()
        try:
            count = transfer.download(archive_url, staging)
            self._match_mode(staging, root)
            self._swap(staging, root)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
            if owns_transfer:
                transfer.close()

        logger.info("cache_updated", url=archive_url, path=str(root), files=count)
        return count
