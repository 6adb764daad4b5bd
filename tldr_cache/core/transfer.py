"""Download and unpacking of the remote pages archive."""

from __future__ import annotations

import io
import shutil
import ssl
import zipfile
import zlib
from pathlib import Path, PurePosixPath

import certifi
import httpx
import structlog

from tldr_cache.core.config import TransferConfig
from tldr_cache.core.errors import TransferError
from tldr_cache.core.types import TlsBackend
from tldr_cache.core.utils import format_size

logger = structlog.get_logger()

USER_AGENT = "tldr-cache/0.1.0"

# Top-level directory of archives built from the repository's master branch
ARCHIVE_WRAPPER_DIR = "tldr-master"
# English pages are shipped without a language suffix
UNSUFFIXED_PAGES_DIR = "pages"
ENGLISH_PAGES_DIR = "pages.en"


class ArchiveTransfer:
    """Fetches a pages archive over HTTPS and unpacks it into a directory.

    Proxies and the TLS trust policy come from the ``TransferConfig``
    passed in; the client never reads proxy settings from the environment
    on its own. There are no retries.
    """

    def __init__(self, config: TransferConfig | None = None):
        """Initialize archive transfer.

        Args:
            config: Optional transfer configuration
        """
        self.config = config or TransferConfig()
        self._client: httpx.Client | None = None

    def ssl_context(self) -> ssl.SSLContext:
        """Build the SSL context for the configured trust policy."""
        if self.config.tls_backend == TlsBackend.CERTIFI:
            return ssl.create_default_context(cafile=certifi.where())
        return ssl.create_default_context()

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            context = self.ssl_context()
            mounts: dict[str, httpx.BaseTransport] = {}
            if self.config.http_proxy:
                mounts["http://"] = httpx.HTTPTransport(
                    proxy=self.config.http_proxy, verify=context
                )
            if self.config.https_proxy:
                mounts["https://"] = httpx.HTTPTransport(
                    proxy=self.config.https_proxy, verify=context
                )
            self._client = httpx.Client(
                timeout=self.config.timeout,
                verify=context,
                follow_redirects=True,
                trust_env=False,
                mounts=mounts or None,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    def fetch(self, url: str) -> bytes:
        """Download an archive.

        Args:
            url: Archive URL

        Returns:
            Archive bytes

        Raises:
            TransferError: If the request fails or returns an error status
        """
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("archive_fetch_failed", url=url, error=str(e))
            raise TransferError(f"Could not download archive from {url}: {e}", url=url) from e

        logger.info("archive_fetched", url=url, size=format_size(len(response.content)))
        return response.content

    @staticmethod
    def _member_parts(name: str) -> list[str] | None:
        """Map an archive member name to its path parts inside the cache.

        Returns None for members that map to the destination root itself.

        Raises:
            TransferError: If the member would land outside the destination
        """
        parts = [
            part for part in PurePosixPath(name.replace("\\", "/")).parts
            if part not in ("", ".")
        ]
        if parts and parts[0] == ARCHIVE_WRAPPER_DIR:
            parts = parts[1:]
        if not parts:
            return None
        if parts[0] == "/" or ".." in parts or ":" in parts[0]:
            raise TransferError(f"Archive entry escapes the destination: {name}")
        if parts[0] == UNSUFFIXED_PAGES_DIR:
            parts[0] = ENGLISH_PAGES_DIR
        return parts

    def extract(self, data: bytes, destination: Path) -> int:
        """Unpack a ZIP archive into a directory.

        Args:
            data: Archive bytes
            destination: Existing directory to unpack into

        Returns:
            Number of files written

        Raises:
            TransferError: If the data is not a valid archive or cannot be written
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise TransferError(f"Downloaded data is not a valid ZIP archive: {e}") from e

        count = 0
        with archive:
            for info in archive.infolist():
                parts = self._member_parts(info.filename)
                if parts is None:
                    continue

                target = destination.joinpath(*parts)
                try:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue

                    target.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                except (zipfile.BadZipFile, zlib.error, EOFError) as e:
                    raise TransferError(
                        f"Corrupt archive entry {info.filename}: {e}", path=target
                    ) from e
                # Unsupported compression method or encrypted entry
                except (NotImplementedError, RuntimeError) as e:
                    raise TransferError(
                        f"Cannot unpack archive entry {info.filename}: {e}", path=target
                    ) from e
                except OSError as e:
                    raise TransferError(
                        f"Could not extract {info.filename} to {target}: {e}", path=target
                    ) from e
                count += 1

        logger.info("archive_extracted", destination=str(destination), files=count)
        return count

    def download(self, url: str, destination: Path) -> int:
        """Fetch an archive and unpack it into a directory.

        Args:
            url: Archive URL
            destination: Existing directory to unpack into

        Returns:
            Number of files written
        """
        return self.extract(self.fetch(url), destination)

    def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> ArchiveTransfer:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
