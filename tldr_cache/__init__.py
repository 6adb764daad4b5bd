"""tldr-cache - local page cache for tldr-style command documentation.

This package resolves command pages from a locally cached, multi-language,
multi-platform page tree, applies user-authored custom pages and patches,
and keeps the cache fresh from the upstream pages archive.

Key modules:
- core: Cache, configuration, types, archive transfer
- commands: CLI command implementations
"""

__version__ = "0.1.0"
__author__ = "tldr-cache contributors"

# Re-export commonly used types and functions
from tldr_cache.core.cache import Cache, PageLookupResult
from tldr_cache.core.config import CacheConfig
from tldr_cache.core.types import Language, PlatformType

__all__ = [
    "__version__",
    "__author__",
    "Cache",
    "CacheConfig",
    "Language",
    "PageLookupResult",
    "PlatformType",
]
