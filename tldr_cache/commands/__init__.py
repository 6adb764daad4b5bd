"""CLI command implementations for tldr_cache.

This module contains all command-line interface implementations:
- show: Print the raw page for a command
- list: List cached pages
- update: Refresh the cache from the pages archive
- clear: Delete the cache
- info: Show cache location, age and contents
"""

from tldr_cache.commands.cache import clear, info, update
from tldr_cache.commands.pages import list_pages, show

__all__ = ["clear", "info", "list_pages", "show", "update"]
