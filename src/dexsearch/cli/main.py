"""
DexSearch CLI

Command-line interface for building the search index and querying the
game data.

Usage::

    dexsearch index ./data                          # Build the search index
    dexsearch search pika --data-dir ./data         # Text search
    dexsearch search "" --category move --species pikachu --sort power
    dexsearch stats --data-dir ./data               # Show table sizes
"""

import logging
import time
from pathlib import Path

import click

from dexsearch.client import DexBrowser
from dexsearch.core.config import CategorySchema, SearchConfig
from dexsearch.core.search import ResultFormatter
from dexsearch.exceptions import DexSearchError


# ---------------------------------------------------------------------------
# Logging helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool, config: SearchConfig) -> None:
    """Set up logging for the CLI session."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.log_format)


def _browser(data_dir: str | None) -> DexBrowser:
    config = SearchConfig.from_env()
    if data_dir:
        config.data_dir = Path(data_dir).resolve()
    try:
        config.validate()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    return DexBrowser(config=config)


def _parse_filter(raw: str) -> tuple:
    kind, sep, value = raw.partition(":")
    if not sep or not kind or not value:
        raise click.BadParameter(f"'{raw}' is not of the form kind:value", param_hint="--filter")
    return kind.strip().lower(), value.strip()


# ---------------------------------------------------------------------------
# Top-level group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="dexsearch")
@click.pass_context
def cli(ctx: click.Context):
    """DexSearch — search and browse Pokémon, moves, items and abilities."""
    ctx.ensure_object(dict)


# ---------------------------------------------------------------------------
# dexsearch search
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("query", default="")
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              envvar="DEXSEARCH_DATA_DIR",
              help="Directory with the game data JSON files (default: $DEXSEARCH_DATA_DIR or '.').")
@click.option("--category", type=click.Choice(CategorySchema.RESOLVER_CATEGORIES), default=None,
              help="Category to search (default: pokemon).")
@click.option("--format", "format_id", default=None, help="Format id, e.g. gen9ou.")
@click.option("--species", default=None, help="Species the results must be usable by.")
@click.option("--filter", "filters", multiple=True, metavar="KIND:VALUE",
              help="Structural filter, e.g. type:Fire (repeatable).")
@click.option("--sort", "sort_col", default=None, help="Sort column, e.g. spe or power.")
@click.option("--reverse", is_flag=True, help="Reverse the sort order.")
@click.option("-f", "--output-format", "fmt",
              type=click.Choice(["console", "json", "compact"]),
              default="console", help="Output format.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def search(query: str, data_dir: str | None, category: str | None, format_id: str | None,
           species: str | None, filters: tuple, sort_col: str | None, reverse: bool,
           fmt: str, verbose: bool):
    """Search the game data for QUERY (empty QUERY lists the category)."""
    browser = _browser(data_dir)
    _configure_logging(verbose, browser.config)
    t0 = time.perf_counter()

    parsed = [_parse_filter(raw) for raw in filters]
    try:
        rows = browser.search(
            query,
            category=category,
            format_id=format_id,
            species=species,
            filters=parsed,
            sort=sort_col,
            reverse=reverse,
        )
    except DexSearchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    elapsed = time.perf_counter() - t0
    formatter = ResultFormatter()
    if fmt == "json":
        click.echo(formatter.format_json(rows))
    elif fmt == "compact":
        click.echo(formatter.format_compact(rows))
    else:
        click.echo(formatter.format_console(rows, query=query or None))
        timing_str = f"{elapsed:.3f}".replace(',', '.')
        click.echo(f"  Completed in {timing_str} seconds")


# ---------------------------------------------------------------------------
# dexsearch index
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("data_dir", type=click.Path(exists=True, file_okay=False))
@click.option("--output", type=click.Path(file_okay=False), default=None,
              help="Where to write the index files (default: DATA_DIR).")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def index(data_dir: str, output: str | None, verbose: bool):
    """Build search-index.json and search-index-offset.json from DATA_DIR."""
    browser = _browser(data_dir)
    _configure_logging(verbose, browser.config)
    try:
        built = browser.build_index(Path(output).resolve() if output else None, show_progress=True)
    except DexSearchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    click.echo(f"  Indexed {len(built):,} entries into {Path(output or data_dir).resolve()}")


# ---------------------------------------------------------------------------
# dexsearch stats
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--data-dir", type=click.Path(file_okay=False), default=None,
              envvar="DEXSEARCH_DATA_DIR",
              help="Directory with the game data JSON files (default: $DEXSEARCH_DATA_DIR or '.').")
def stats(data_dir: str | None):
    """Show game data and search index statistics."""
    browser = _browser(data_dir)
    try:
        s = browser.stats()
    except DexSearchError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    click.echo("─" * 50)
    click.echo("  DEXSEARCH — Data Statistics")
    click.echo("─" * 50)
    click.echo(f"  Data location : {browser.config.data_dir or Path('.').resolve()}")
    click.echo()
    click.echo(f"  Species           {s['species']:>8,}")
    click.echo(f"  Moves             {s['moves']:>8,}")
    click.echo(f"  Items             {s['items']:>8,}")
    click.echo(f"  Abilities         {s['abilities']:>8,}")
    click.echo(f"  Types             {s['types']:>8,}")
    click.echo(f"  Mods              {s['mods']:>8,}")
    click.echo(f"  Index entries     {s['index_entries']:>8,}")
    click.echo(f"  Index aliases     {s['index_aliases']:>8,}")
    click.echo("─" * 50)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
