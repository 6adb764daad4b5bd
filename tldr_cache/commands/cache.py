"""Cache maintenance commands."""

from __future__ import annotations

import json

import click
import structlog
from rich.console import Console
from rich.table import Table

from tldr_cache.core.cache import Cache
from tldr_cache.core.config import AppConfig, CacheConfig
from tldr_cache.core.errors import CacheError
from tldr_cache.core.transfer import ArchiveTransfer
from tldr_cache.core.utils import format_duration

logger = structlog.get_logger()


def _get_context_objects(ctx: click.Context) -> tuple[AppConfig, Console]:
    """Extract common context objects."""
    config: AppConfig = ctx.obj["config"]
    console: Console = ctx.obj["console"]
    return config, console


def update_cache(config: AppConfig, cache_config: CacheConfig) -> tuple[Cache, int]:
    """Create the cache if needed and refresh it from the configured archive.

    Args:
        config: Application configuration
        cache_config: Cache configuration to open

    Returns:
        Updated cache and the number of files extracted
    """
    cache = Cache.open_or_create(cache_config)
    with ArchiveTransfer(config.transfer_config()) as transfer:
        count = cache.update(config.archive_url, transfer)
    return cache, count


@click.command(name="update")
@click.pass_context
def update(ctx: click.Context) -> None:
    """Download the latest pages into the cache."""
    config, console = _get_context_objects(ctx)

    try:
        with console.status("Downloading pages..."):
            cache, count = update_cache(config, config.cache_config())
    except CacheError as e:
        raise click.ClickException(f"Failed to update cache: {e}") from e

    console.print(
        f"[green]✓[/green] Successfully updated cache at "
        f"{cache.config.pages_directory} ({count} files)"
    )


@click.command(name="clear")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete the page cache."""
    config, console = _get_context_objects(ctx)
    cache_config = config.cache_config()

    try:
        cache = Cache.open(cache_config)
        if cache is None:
            console.print("Cache directory not found, nothing to do.")
            return
        cache.clear()
    except CacheError as e:
        raise click.ClickException(f"Failed to clear cache: {e}") from e

    console.print(
        f"[green]✓[/green] Successfully cleared cache at {cache_config.pages_directory}"
    )


@click.command(name="info")
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show cache location, age and contents."""
    config, console = _get_context_objects(ctx)
    cache_config = config.cache_config()

    age = None
    page_count = 0
    old_custom_pages = False
    try:
        cache = Cache.open(cache_config)
        if cache is not None:
            age = cache.age()
            page_count = len(cache.list_pages())
            old_custom_pages = cache.old_custom_pages_exist()
    except CacheError as e:
        raise click.ClickException(f"Failed to read cache: {e}") from e

    data = {
        "pages_directory": str(cache_config.pages_directory),
        "custom_pages_directory": (
            str(cache_config.custom_pages_directory)
            if cache_config.custom_pages_directory else None
        ),
        "platforms": [p.value for p in cache_config.platforms],
        "languages": [lang.tag for lang in cache_config.languages],
        "exists": cache is not None,
        "age_seconds": int(age.total_seconds()) if age is not None else None,
        "pages": page_count,
        "old_custom_pages": old_custom_pages,
    }

    if config.output_format == "json":
        print(json.dumps(data, indent=2))
        return

    table = Table(title="Page Cache")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Pages Directory", data["pages_directory"])
    table.add_row("Custom Pages", data["custom_pages_directory"] or "N/A")
    table.add_row("Platforms", ", ".join(data["platforms"]))
    table.add_row("Languages", ", ".join(data["languages"]))
    if age is None:
        table.add_row("Status", "[yellow]Not downloaded[/yellow]")
    else:
        table.add_row("Age", format_duration(age))
        table.add_row("Pages", f"{page_count:,}")
        if old_custom_pages:
            table.add_row("Old Custom Pages", "[yellow]Yes, rename to .page.md / .patch.md[/yellow]")

    console.print(table)
