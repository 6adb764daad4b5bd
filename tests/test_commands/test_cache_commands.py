"""Tests for cache maintenance commands."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tldr_cache.commands.cache import clear, info, update, update_cache
from tldr_cache.core.errors import TransferError
from tldr_cache.core.transfer import ArchiveTransfer


class TestUpdateCommand:
    """Test update command functionality."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    @patch.object(ArchiveTransfer, "fetch")
    def test_update_creates_cache(self, mock_fetch, runner, cli_obj, mock_console, tmp_path, sample_archive):
        """Test a missing cache is created and filled."""
        mock_fetch.return_value = sample_archive

        result = runner.invoke(update, [], obj=cli_obj)

        assert result.exit_code == 0
        mock_fetch.assert_called_once_with("https://example.com/tldr.zip")
        pages = tmp_path / "cache" / "tldr-pages"
        assert (pages / "pages.en" / "common" / "tar.md").read_bytes() == b"# tar\n"
        assert (pages / "pages.de" / "common" / "tar.md").exists()
        mock_console.status.assert_called_once()
        assert any("Successfully updated cache" in line for line in mock_console.printed_lines)
        assert any("(4 files)" in line for line in mock_console.printed_lines)

    @patch.object(ArchiveTransfer, "fetch")
    def test_update_replaces_pages(self, mock_fetch, runner, cli_obj, write_page, sample_archive):
        """Test pages missing from the archive are removed."""
        stale = write_page("stale")
        mock_fetch.return_value = sample_archive

        result = runner.invoke(update, [], obj=cli_obj)

        assert result.exit_code == 0
        assert not stale.exists()

    @patch.object(ArchiveTransfer, "fetch")
    def test_update_failure(self, mock_fetch, runner, cli_obj, write_page):
        """Test a failed download keeps the existing pages."""
        page = write_page("tar", b"original")
        mock_fetch.side_effect = TransferError(
            "Could not download archive from https://example.com/tldr.zip: 404",
            url="https://example.com/tldr.zip",
        )

        result = runner.invoke(update, [], obj=cli_obj)

        assert result.exit_code == 1
        assert "Failed to update cache" in result.output
        assert page.read_bytes() == b"original"

    @patch.object(ArchiveTransfer, "fetch")
    def test_update_cache_function(self, mock_fetch, app_config, sample_archive):
        """Test update_cache returns the refreshed cache and file count."""
        mock_fetch.return_value = sample_archive

        cache, count = update_cache(app_config, app_config.cache_config())

        assert count == 4
        assert cache.find_page("apt") is not None
        assert cache.config.pages_directory == app_config.pages_directory

    def test_update_cache_uses_transfer_config(self, app_config):
        """Test the transfer is built from the application settings."""
        with patch("tldr_cache.commands.cache.ArchiveTransfer") as transfer_class:
            transfer = transfer_class.return_value.__enter__.return_value
            transfer.download.return_value = 0
            update_cache(app_config, app_config.cache_config())

        transfer_config = transfer_class.call_args.args[0]
        assert transfer_config.tls_backend == app_config.tls_backend
        assert transfer_config.timeout == app_config.timeout
        transfer.download.assert_called_once()


class TestClearCommand:
    """Test clear command functionality."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    def test_clear(self, runner, cli_obj, mock_console, write_page, pages_root):
        """Test the pages directory is removed."""
        write_page("tar")

        result = runner.invoke(clear, [], obj=cli_obj)

        assert result.exit_code == 0
        assert not pages_root.exists()
        assert any("Successfully cleared cache" in line for line in mock_console.printed_lines)

    def test_clear_keeps_custom_pages(self, runner, cli_obj, pages_root, custom_dir):
        """Test custom pages are not part of the cache."""
        (custom_dir / "mine.page.md").write_bytes(b"mine")

        result = runner.invoke(clear, [], obj=cli_obj)

        assert result.exit_code == 0
        assert (custom_dir / "mine.page.md").exists()

    def test_clear_missing(self, runner, cli_obj, mock_console):
        """Test clearing a missing cache is not an error."""
        result = runner.invoke(clear, [], obj=cli_obj)

        assert result.exit_code == 0
        assert mock_console.printed_lines == ["Cache directory not found, nothing to do."]

    def test_clear_failure(self, runner, cli_obj, pages_root):
        """Test removal failures are reported."""
        with patch("tldr_cache.core.cache.shutil.rmtree", side_effect=PermissionError("denied")):
            result = runner.invoke(clear, [], obj=cli_obj)

        assert result.exit_code == 1
        assert "Failed to clear cache" in result.output


class TestInfoCommand:
    """Test info command functionality."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    def test_info_json(self, runner, cli_obj, write_page, custom_dir, tmp_path):
        """Test JSON output describes the cache."""
        write_page("tar")
        write_page("apt", platform="linux")
        (custom_dir / "old.patch").write_bytes(b"old")
        cli_obj["config"].output_format = "json"

        result = runner.invoke(info, [], obj=cli_obj)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["pages_directory"] == str(tmp_path / "cache" / "tldr-pages")
        assert data["custom_pages_directory"] == str(custom_dir)
        assert data["platforms"] == ["linux", "common"]
        assert data["languages"] == ["en"]
        assert data["exists"] is True
        assert data["pages"] == 2
        assert data["old_custom_pages"] is True
        assert 0 <= data["age_seconds"] < 300

    def test_info_json_missing_cache(self, runner, cli_obj):
        """Test JSON output without a cache."""
        cli_obj["config"].output_format = "json"

        result = runner.invoke(info, [], obj=cli_obj)

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["exists"] is False
        assert data["age_seconds"] is None
        assert data["pages"] == 0

    def test_info_table(self, runner, cli_obj, mock_console, write_page):
        """Test rich output prints a table."""
        write_page("tar")

        result = runner.invoke(info, [], obj=cli_obj)

        assert result.exit_code == 0
        table = mock_console.print.call_args.args[0]
        assert table.title == "Page Cache"
        assert table.row_count >= 6
