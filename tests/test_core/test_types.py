"""Tests for tldr_cache.core.types module."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tldr_cache.core.types import Language, PlatformType, TlsBackend


class TestPlatformType:
    """Tests for PlatformType enum."""

    def test_directory_names(self) -> None:
        """Every platform maps to its fixed lowercase directory."""
        expected = {
            PlatformType.LINUX: "linux",
            PlatformType.OSX: "osx",
            PlatformType.SUNOS: "sunos",
            PlatformType.WINDOWS: "windows",
            PlatformType.ANDROID: "android",
            PlatformType.FREEBSD: "freebsd",
            PlatformType.NETBSD: "netbsd",
            PlatformType.OPENBSD: "openbsd",
            PlatformType.COMMON: "common",
        }
        assert {p: p.directory_name for p in PlatformType} == expected

    def test_from_directory_name(self) -> None:
        """Test platforms can be parsed from their directory names."""
        assert PlatformType("osx") is PlatformType.OSX

    @pytest.mark.parametrize(
        ("sys_platform", "expected"),
        [
            ("linux", PlatformType.LINUX),
            ("darwin", PlatformType.OSX),
            ("win32", PlatformType.WINDOWS),
            ("cygwin", PlatformType.WINDOWS),
            ("sunos5", PlatformType.SUNOS),
            ("freebsd14", PlatformType.FREEBSD),
            ("netbsd10", PlatformType.NETBSD),
            ("openbsd7", PlatformType.OPENBSD),
            ("android", PlatformType.ANDROID),
            ("emscripten", PlatformType.LINUX),
        ],
    )
    def test_current(self, sys_platform: str, expected: PlatformType) -> None:
        """Test detection of the running platform."""
        with patch("tldr_cache.core.types.sys.platform", sys_platform):
            assert PlatformType.current() is expected


class TestLanguage:
    """Tests for Language model."""

    def test_directory_name(self) -> None:
        """Test language directory naming."""
        assert Language("en").directory_name == "pages.en"
        assert Language("pt_BR").directory_name == "pages.pt_BR"

    def test_keyword_construction(self) -> None:
        """Test keyword and positional construction are equivalent."""
        assert Language(tag="de") == Language("de")

    def test_identity_is_tag(self) -> None:
        """Test languages compare and hash by tag."""
        assert Language("en") == Language("en")
        assert Language("en") != Language("de")
        assert len({Language("en"), Language("en")}) == 1
        assert str(Language("fr")) == "fr"

    def test_immutable(self) -> None:
        """Test languages cannot be modified."""
        lang = Language("en")
        with pytest.raises(ValidationError):
            lang.tag = "de"  # type: ignore[misc]

    @pytest.mark.parametrize("tag", ["", "en/../..", "a\\b"])
    def test_invalid_tags(self, tag: str) -> None:
        """Test tags that are not usable as directory suffixes are rejected."""
        with pytest.raises(ValidationError):
            Language(tag)


class TestTlsBackend:
    """Tests for TlsBackend enum."""

    def test_values(self) -> None:
        """Test TlsBackend enum values."""
        assert TlsBackend.SYSTEM == "system"
        assert TlsBackend.CERTIFI == "certifi"
