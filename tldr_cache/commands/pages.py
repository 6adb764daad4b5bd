"""Page lookup and listing commands."""

from __future__ import annotations

import json
import shutil
from datetime import timedelta

import click
import structlog
from rich.console import Console

from tldr_cache.commands.cache import update_cache
from tldr_cache.core.cache import Cache
from tldr_cache.core.config import AppConfig, CacheConfig
from tldr_cache.core.errors import CacheError
from tldr_cache.core.types import PlatformType
from tldr_cache.core.utils import format_duration

logger = structlog.get_logger()

CONTRIBUTE_URL = "https://github.com/tldr-pages/tldr"

platform_option = click.option(
    "--platform",
    "-p",
    type=click.Choice([p.value for p in PlatformType], case_sensitive=False),
    help="Platform to search before common pages",
)
language_option = click.option(
    "--language", "-L", help="Search only this language instead of the configured ones"
)


def _warn(message: str) -> None:
    click.secho(f"Warning: {message}", fg="yellow", err=True)


def _load_cache(config: AppConfig, cache_config: CacheConfig) -> Cache:
    """Open the cache, refreshing it first when auto update applies.

    Raises:
        click.ClickException: If there is no cache and auto update is off
    """
    max_age = timedelta(hours=config.auto_update_interval_hours)
    cache = Cache.open(cache_config)

    if cache is None:
        if not config.auto_update:
            raise click.ClickException(
                "Page cache not found. Please run `tldr-cache update` to download the pages."
            )
        logger.info("cache_missing_auto_update")
        cache, _ = update_cache(config, cache_config)
        return cache

    age = cache.age()
    if age > max_age:
        if config.auto_update:
            logger.info("cache_stale_auto_update", age=format_duration(age))
            cache, _ = update_cache(config, cache_config)
        else:
            _warn(
                f"The cache hasn't been updated for {format_duration(age)}. "
                "You should probably run `tldr-cache update` soon."
            )

    if cache.old_custom_pages_exist():
        _warn(
            f"Custom pages using the old naming convention were found in "
            f"{cache_config.custom_pages_directory}. Rename `.page` files to "
            "`.page.md` and `.patch` files to `.patch.md`."
        )

    return cache


@click.command(name="show")
@click.argument("command", nargs=-1, required=True)
@platform_option
@language_option
@click.pass_context
def show(
    ctx: click.Context,
    command: tuple[str, ...],
    platform: str | None,
    language: str | None,
) -> None:
    """Print the raw page for COMMAND.

    Multi-word commands are joined with dashes, e.g. ``git commit``
    looks up ``git-commit``.
    """
    config: AppConfig = ctx.obj["config"]
    name = "-".join(command).lower()
    cache_config = config.cache_config(
        platform=PlatformType(platform.lower()) if platform else None,
        language=language,
    )

    try:
        cache = _load_cache(config, cache_config)
        result = cache.find_page(name)
        if result is None:
            click.echo(
                f"Page `{name}` not found in cache.\n"
                f"Try updating with `tldr-cache update`, or submit a pull request to: "
                f"{CONTRIBUTE_URL}",
                err=True,
            )
            ctx.exit(1)

        stdout = click.get_binary_stream("stdout")
        with result.reader() as reader:
            shutil.copyfileobj(reader, stdout)
        stdout.flush()
    except CacheError as e:
        raise click.ClickException(str(e)) from e


@click.command(name="list")
@platform_option
@language_option
@click.pass_context
def list_pages(ctx: click.Context, platform: str | None, language: str | None) -> None:
    """List all pages available in the cache."""
    config: AppConfig = ctx.obj["config"]
    console: Console = ctx.obj["console"]
    cache_config = config.cache_config(
        platform=PlatformType(platform.lower()) if platform else None,
        language=language,
    )

    try:
        cache = Cache.open(cache_config)
        if cache is None:
            raise click.ClickException(
                "Page cache not found. Please run `tldr-cache update` to download the pages."
            )
        pages = cache.list_pages()
    except CacheError as e:
        raise click.ClickException(f"Failed to list pages: {e}") from e

    if config.output_format == "json":
        print(json.dumps(pages))
        return

    for page in pages:
        console.print(page, highlight=False, markup=False)
