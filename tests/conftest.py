"""Pytest configuration and shared fixtures for tldr_cache tests."""

import io
import zipfile
from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock

import pytest

from tldr_cache.core.config import AppConfig, CacheConfig
from tldr_cache.core.types import PlatformType

PageWriter = Callable[..., Path]


@pytest.fixture
def pages_root(tmp_path: Path) -> Path:
    """Existing, empty pages directory."""
    root = tmp_path / "cache" / "tldr-pages"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def custom_dir(tmp_path: Path) -> Path:
    """Existing, empty custom pages directory."""
    directory = tmp_path / "custom"
    directory.mkdir()
    return directory


@pytest.fixture
def write_page(pages_root: Path) -> PageWriter:
    """Write a page into the pages tree and return its path."""

    def _write(
        command: str,
        content: bytes = b"# page\n",
        language: str = "en",
        platform: str = "common",
    ) -> Path:
        path = pages_root / f"pages.{language}" / platform / f"{command}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def cache_config(pages_root: Path, custom_dir: Path) -> CacheConfig:
    """Cache configuration searching linux then common, English then German."""
    return CacheConfig(
        pages_directory=pages_root,
        custom_pages_directory=custom_dir,
        platforms=[PlatformType.LINUX, PlatformType.COMMON],
        languages=["en", "de"],
    )


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Application configuration rooted in the temporary directory."""
    return AppConfig(
        cache_dir=tmp_path / "cache",
        custom_pages_dir=tmp_path / "custom",
        platforms=[PlatformType.LINUX],
        languages=["en"],
        archive_url="https://example.com/tldr.zip",
    )


def build_archive(files: dict[str, bytes]) -> bytes:
    """Build an in-memory ZIP archive from a name to content mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_archive() -> Callable[[dict[str, bytes]], bytes]:
    """Factory building ZIP archives in memory."""
    return build_archive


@pytest.fixture
def sample_archive() -> bytes:
    """Archive with English and German pages in the current layout."""
    return build_archive({
        "pages/common/tar.md": b"# tar\n",
        "pages/linux/apt.md": b"# apt\n",
        "pages.de/common/tar.md": b"# tar (de)\n",
        "LICENSE.md": b"CC-BY\n",
    })


# Pytest configuration
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add unit marker to all tests by default
        if not any(marker.name in ['integration', 'slow'] for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def mock_console() -> Mock:
    """Create standardized mock Rich console for CLI testing.

    Printed output is tracked in ``printed_lines`` with Rich markup removed,
    and also written to stdout so Click can capture it.
    """
    import re
    import sys

    console = Mock()

    # Mock the status context manager
    status_cm = Mock()
    status_cm.__enter__ = Mock(return_value=status_cm)
    status_cm.__exit__ = Mock(return_value=None)
    console.status.return_value = status_cm

    console.printed_lines = []

    def track_print(text, **kwargs):
        clean_text = re.sub(r'\[/?[^\]]*\]', '', str(text))
        console.printed_lines.append(clean_text)
        print(clean_text, file=sys.stdout)

    console.print.side_effect = track_print
    return console


@pytest.fixture
def cli_obj(app_config: AppConfig, mock_console: Mock) -> dict:
    """Click context object as set up by the main command."""
    return {
        "config": app_config,
        "console": mock_console,
        "verbose": False,
        "debug": False,
    }
