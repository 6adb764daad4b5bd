"""Shared utilities for tldr-cache."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from typing import TypeVar

T = TypeVar("T")


def clear_duplicates(items: Iterable[T]) -> list[T]:
    """Remove duplicates, keeping the first occurrence of each item.

    Items only need to support equality; lists are scanned linearly.

    Args:
        items: Items to deduplicate

    Returns:
        New list with duplicates removed, order preserved

    Example:
        >>> clear_duplicates(["de", "en", "de"])
        ['de', 'en']
    """
    result: list[T] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def format_duration(duration: timedelta) -> str:
    """Format a duration as a short human-readable string.

    Args:
        duration: Duration to format

    Returns:
        Largest fitting unit pair (e.g., "3d 4h", "12m 5s")

    Example:
        >>> format_duration(timedelta(days=3, hours=4, minutes=10))
        '3d 4h'
        >>> format_duration(timedelta(seconds=42))
        '42s'
    """
    total = int(duration.total_seconds())
    if total < 0:
        return "0s"

    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)

    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_size(size: int) -> str:
    """Format byte size as human-readable string.

    Args:
        size: Size in bytes

    Returns:
        Formatted string with appropriate unit (e.g., "1.5 MB")

    Example:
        >>> format_size(1024)
        '1.0 KB'
        >>> format_size(1536)
        '1.5 KB'
    """
    if size < 0:
        return "0 B"

    size_float = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_float < 1024.0:
            if unit == "B":
                return f"{int(size_float)} {unit}"
            return f"{size_float:.1f} {unit}"
        size_float /= 1024.0
    return f"{size_float:.1f} PB"
