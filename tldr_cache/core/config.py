"""Configuration management for tldr-cache."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field, field_validator

from tldr_cache.core.types import Language, PlatformType, TlsBackend
from tldr_cache.core.utils import clear_duplicates

logger = structlog.get_logger()

PAGES_DIR_NAME = "tldr-pages"
DEFAULT_ARCHIVE_URL = "https://github.com/tldr-pages/tldr/releases/latest/download/tldr.zip"


def languages_from_env(environ: Mapping[str, str]) -> list[str]:
    """Derive the language search order from locale environment variables.

    ``LANGUAGE`` (a colon separated list) takes precedence over ``LANG``.
    Each locale contributes its ``ll_CC`` form and then its ``ll`` form.
    English is always the final fallback. Without ``LANG`` only English
    is used.

    Args:
        environ: Environment mapping, usually ``os.environ``

    Returns:
        Language tags, most preferred first
    """
    env_lang = environ.get("LANG")
    if env_lang is None:
        return ["en"]

    locales = environ.get("LANGUAGE", "").split(":") + [env_lang]

    languages: list[str] = []
    for locale in locales:
        # Language plus country code, e.g. en_US
        if len(locale) >= 5 and locale[2] == "_":
            languages.append(locale[:5])
        # Language code only
        if len(locale) >= 2 and locale != "POSIX":
            languages.append(locale[:2])

    languages.append("en")
    return clear_duplicates(languages)


class CacheConfig(BaseModel):
    """Resolved configuration of one cache session.

    Platforms and languages are in search order, most preferred first.
    """

    pages_directory: Path = Field(..., description="Root pages directory")
    custom_pages_directory: Path | None = Field(
        default=None,
        description="Directory with custom pages and patches"
    )
    platforms: list[PlatformType] = Field(
        default_factory=list,
        description="Platform search order"
    )
    languages: list[Language] = Field(
        default_factory=list,
        description="Language search order"
    )

    @field_validator("languages", mode="before")
    @classmethod
    def coerce_languages(cls, v: Any) -> Any:
        """Accept plain language tags."""
        if isinstance(v, list | tuple):
            return [Language(item) if isinstance(item, str) else item for item in v]
        return v


class TransferConfig(BaseModel):
    """Remote archive transfer configuration."""

    tls_backend: TlsBackend = Field(
        default=TlsBackend.SYSTEM,
        description="Root certificate trust policy"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    http_proxy: str | None = Field(default=None, description="Proxy for http:// URLs")
    https_proxy: str | None = Field(default=None, description="Proxy for https:// URLs")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout value."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        tls_backend: TlsBackend = TlsBackend.SYSTEM,
        timeout: float = 30.0,
    ) -> TransferConfig:
        """Build transfer configuration with proxies taken from an environment.

        Args:
            environ: Environment mapping, usually ``os.environ``
            tls_backend: Root certificate trust policy
            timeout: Request timeout in seconds

        Returns:
            Transfer configuration
        """
        return cls(
            tls_backend=tls_backend,
            timeout=timeout,
            http_proxy=environ.get("HTTP_PROXY") or environ.get("http_proxy") or None,
            https_proxy=environ.get("HTTPS_PROXY") or environ.get("https_proxy") or None,
        )


class AppConfig(BaseModel):
    """Application configuration."""

    # Directory settings
    cache_dir: Path = Field(
        default=Path.home() / ".cache" / "tldr-cache",
        description="Cache directory"
    )
    custom_pages_dir: Path | None = Field(
        default=Path.home() / ".local" / "share" / "tldr-cache" / "pages",
        description="Custom pages directory"
    )

    # Search settings
    platforms: list[PlatformType] | None = Field(
        default=None,
        description="Platform search order, derived from the running OS if unset"
    )
    languages: list[str] | None = Field(
        default=None,
        description="Language search order, derived from the environment if unset"
    )

    # Update settings
    archive_url: str = Field(default=DEFAULT_ARCHIVE_URL, description="Pages archive URL")
    auto_update: bool = Field(default=False, description="Refresh stale caches automatically")
    auto_update_interval_hours: int = Field(
        default=24 * 30,
        description="Cache age in hours after which it is considered stale"
    )
    tls_backend: TlsBackend = Field(default=TlsBackend.SYSTEM, description="TLS trust policy")
    timeout: float = Field(default=30.0, description="Download timeout in seconds")

    # Output settings
    output_format: str = Field(
        default="rich",
        description="Output format (rich, json, plain)"
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @property
    def pages_directory(self) -> Path:
        """Root of the downloaded page tree."""
        return self.cache_dir / PAGES_DIR_NAME

    @classmethod
    def load(cls, config_file: Path | None = None) -> AppConfig:
        """Load configuration from file.

        Args:
            config_file: Path to config file, uses default if None

        Returns:
            Application configuration
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "tldr-cache" / "config.json"

        if config_file.exists():
            with open(config_file, encoding="utf-8") as f:
                data = json.load(f)
                return cls(**data)

        # Return defaults
        return cls()

    def save(self, config_file: Path | None = None) -> None:
        """Save configuration to file.

        Args:
            config_file: Path to config file, uses default if None
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "tldr-cache" / "config.json"

        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

        logger.info("config_saved", path=str(config_file))

    def cache_config(
        self,
        platform: PlatformType | None = None,
        language: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> CacheConfig:
        """Build the cache configuration for a lookup session.

        ``common`` is always searched after the selected platforms.

        Args:
            platform: Platform overriding the configured ones
            language: Language overriding the configured ones
            environ: Environment for deriving languages, defaults to ``os.environ``

        Returns:
            Cache configuration
        """
        if platform is not None:
            platforms = [platform]
        else:
            platforms = list(self.platforms or [PlatformType.current()])
        platforms.append(PlatformType.COMMON)

        if language is not None:
            languages = [language]
        elif self.languages:
            languages = list(self.languages)
        else:
            languages = languages_from_env(os.environ if environ is None else environ)

        return CacheConfig(
            pages_directory=self.pages_directory,
            custom_pages_directory=self.custom_pages_dir,
            platforms=clear_duplicates(platforms),
            languages=clear_duplicates(languages),
        )

    def transfer_config(self, environ: Mapping[str, str] | None = None) -> TransferConfig:
        """Build the transfer configuration, reading proxies from the environment."""
        return TransferConfig.from_env(
            os.environ if environ is None else environ,
            tls_backend=self.tls_backend,
            timeout=self.timeout,
        )

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """Validate output format."""
        valid_formats = {"rich", "json", "plain"}
        if v not in valid_formats:
            raise ValueError(f"Invalid output format: {v}. Valid formats: {valid_formats}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {valid_levels}")
        return v

    @field_validator("auto_update_interval_hours")
    @classmethod
    def validate_auto_update_interval(cls, v: int) -> int:
        """Validate auto update interval."""
        if v < 1:
            raise ValueError("Auto update interval must be at least one hour")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate download timeout value."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v
