"""Core functionality for tldr_cache.

This module provides the page cache and everything it is built from:
- Type definitions (languages, platforms)
- Configuration management
- Page lookup, enumeration and maintenance
- Sequential page and patch reading
- Remote archive transfer
"""

from tldr_cache.core.cache import Cache, PageLookupResult
from tldr_cache.core.config import AppConfig, CacheConfig, TransferConfig
from tldr_cache.core.errors import (
    CacheClosedError,
    CacheError,
    CacheIOError,
    ClockSkewError,
    InvalidFilenameError,
    NotADirectoryCacheError,
    TransferError,
)
from tldr_cache.core.types import Language, PlatformType, TlsBackend

__all__ = [
    # Types
    "Language",
    "PlatformType",
    "TlsBackend",
    # Config
    "AppConfig",
    "CacheConfig",
    "TransferConfig",
    # Cache
    "Cache",
    "PageLookupResult",
    # Errors
    "CacheError",
    "CacheClosedError",
    "CacheIOError",
    "ClockSkewError",
    "InvalidFilenameError",
    "NotADirectoryCacheError",
    "TransferError",
]
