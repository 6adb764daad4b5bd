"""Core type definitions for tldr_cache."""

from __future__ import annotations

import sys
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlatformType(StrEnum):
    """Platforms a page variant can target.

    The value of each member is its directory name inside a language tree.
    """
    LINUX = "linux"
    OSX = "osx"
    SUNOS = "sunos"
    WINDOWS = "windows"
    ANDROID = "android"
    FREEBSD = "freebsd"
    NETBSD = "netbsd"
    OPENBSD = "openbsd"
    COMMON = "common"

    @property
    def directory_name(self) -> str:
        """Directory holding this platform's pages."""
        return self.value

    @classmethod
    def current(cls) -> PlatformType:
        """Platform of the running interpreter."""
        if sys.platform.startswith("linux"):
            return cls.LINUX
        if sys.platform == "darwin":
            return cls.OSX
        if sys.platform.startswith(("win", "cygwin", "msys")):
            return cls.WINDOWS
        if sys.platform.startswith("sunos"):
            return cls.SUNOS
        if sys.platform.startswith("freebsd"):
            return cls.FREEBSD
        if sys.platform.startswith("netbsd"):
            return cls.NETBSD
        if sys.platform.startswith("openbsd"):
            return cls.OPENBSD
        # Android reports "linux" before 3.13
        if sys.platform == "android":
            return cls.ANDROID
        return cls.LINUX


class TlsBackend(StrEnum):
    """Root certificate trust policies for archive downloads."""
    SYSTEM = "system"
    CERTIFI = "certifi"


class Language(BaseModel):
    """Language tag of a page translation (e.g. ``en``, ``pt_BR``)."""
    tag: str = Field(..., description="Language tag")

    model_config = ConfigDict(frozen=True)

    def __init__(self, tag: str | None = None, **data: str) -> None:
        if tag is not None:
            data["tag"] = tag
        super().__init__(**data)

    @field_validator("tag")
    @classmethod
    def validate_tag(cls, v: str) -> str:
        """Validate language tag."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid language tag: {v!r}")
        return v

    @property
    def directory_name(self) -> str:
        """Directory holding this language's platform trees."""
        return f"pages.{self.tag}"

    def __str__(self) -> str:
        return self.tag
