"""Click CLI for gencache — cached, coalesced model generation."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gencache.cache.keys import DEFAULT_KEY_LENGTH, storage_key
from gencache.types import ModelKind

console = Console()
error_console = Console(stderr=True)

_KIND_CHOICE = click.Choice([k.value for k in ModelKind])


def _setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    """Configure logging from -v flags, falling back to the configured level."""
    level = logging.getLevelName(str(default_level).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


@click.group()
@click.version_option(package_name="gencache")
def cli() -> None:
    """gencache — coalescing cache gateway for generation backends."""


@cli.command()
@click.argument("kind", type=_KIND_CHOICE)
@click.argument("prompt")
@click.option("-o", "--output", type=click.Path(), help="Write the result to this file.")
@click.option("--memory", is_flag=True, default=False, help="Use an in-memory cache.")
@click.option("--region", type=str, default=None, help="Backend region.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def generate(
    kind: str,
    prompt: str,
    output: str | None,
    memory: bool,
    region: str | None,
    verbose: int,
) -> None:
    """Generate (or fetch from cache) a result for PROMPT."""
    from gencache.core import GenCache
    from gencache.errors.exceptions import GatewayError

    app = GenCache(region=region, cache_backend="memory" if memory else None)
    _setup_logging(verbose, app.config["log_level"])

    async def _run():
        try:
            return await app.generate_async(prompt, kind)
        finally:
            await app.close()

    try:
        result = asyncio.run(_run())
    except GatewayError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(result.body, bytes):
            path.write_bytes(result.body)
        else:
            path.write_text(result.body, encoding="utf-8")
        console.print(f"[green]Written to {path}[/green]")
    elif isinstance(result.body, bytes):
        error_console.print(
            f"[yellow]Binary result ({len(result.body)} bytes, {result.content_type});"
            " use --output to save it.[/yellow]"
        )
    else:
        console.print(result.body, markup=False)

    if verbose >= 1:
        error_console.print(
            f"key={result.storage_key} cache={'HIT' if result.cache_hit else 'MISS'}"
        )


@cli.command()
@click.argument("prompt")
@click.option("--kind", type=_KIND_CHOICE, default=ModelKind.TEXT.value, show_default=True)
@click.option("--length", type=int, default=DEFAULT_KEY_LENGTH, show_default=True)
def key(prompt: str, kind: str, length: int) -> None:
    """Print the storage key for PROMPT."""
    try:
        click.echo(storage_key(kind, prompt, length))
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
@click.option("--db", type=click.Path(), default=None, help="SQLite cache path.")
def cache_stats(db: str | None) -> None:
    """Show cache statistics."""
    from gencache.cache.disk import SQLiteBlobStore
    from gencache.config.hierarchy import load_config_hierarchy

    db_path = Path(db or load_config_hierarchy()["cache_db_path"]).expanduser()
    store = SQLiteBlobStore(db_path=db_path)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Database", str(db_path))
    table.add_row("Entries", str(store.entry_count))
    table.add_row("Size (MB)", f"{store.size_mb:.1f}")

    console.print(table)
    store.close()


@cache.command("clear")
@click.option("--db", type=click.Path(), default=None, help="SQLite cache path.")
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(db: str | None) -> None:
    """Clear all cached data."""
    from gencache.cache.disk import SQLiteBlobStore
    from gencache.config.hierarchy import load_config_hierarchy

    db_path = Path(db or load_config_hierarchy()["cache_db_path"]).expanduser()
    store = SQLiteBlobStore(db_path=db_path)
    store.clear()
    store.close()
    console.print("[green]Cache cleared.[/green]")


def main() -> None:
    """Entry point for the CLI."""
    cli()
