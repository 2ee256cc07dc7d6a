"""
DexSearch Client Facade

Single entry point for programmatic use of DexSearch.  Loads the game
data once and runs structural listings and text searches against it.

Usage::

    from dexsearch import DexBrowser

    # From environment variables ($DEXSEARCH_DATA_DIR, ...)
    browser = DexBrowser()

    # With explicit configuration
    from dexsearch.core.config import SearchConfig
    browser = DexBrowser(config=SearchConfig(data_dir=Path("./data")))

    # Text search
    rows = browser.search("pika", category="pokemon", format_id="gen9ou")

    # Structural listing with filters and a sort
    rows = browser.search("", category="pokemon", format_id="gen9ou",
                          filters=[("type", "Electric")], sort="spe")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

from dexsearch.core.config import SearchConfig
from dexsearch.core.data import GameData, PokemonSet, Row, to_id
from dexsearch.core.index import SearchIndex
from dexsearch.core.search import DexSearch
from dexsearch.exceptions import IndexNotFoundError, InvalidFilterError

logger = logging.getLogger(__name__)


class DexBrowser:
    """
    High-level DexSearch client.

    Each instance carries its own :class:`SearchConfig` and its own
    :class:`GameData`, so several data sets can be browsed side by side.

    Args:
        config: Explicit configuration object.  When *None*, a config
            is built from environment variables or keyword overrides.
        data: Already loaded game tables.  When *None*, they are loaded
            from ``config.data_dir`` on first use.
        validate_on_init: Call :meth:`SearchConfig.validate` right away.
        **kwargs: Forwarded to :class:`SearchConfig` when *config* is
            ``None`` (e.g. ``data_dir=Path("./data")``).
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        data: GameData | None = None,
        validate_on_init: bool = False,
        **kwargs,
    ):
        if config is not None:
            self._config = config
        elif kwargs:
            base = SearchConfig.from_env()
            merged = {
                f.name: kwargs.get(f.name, getattr(base, f.name))
                for f in base.__dataclass_fields__.values()
            }
            self._config = SearchConfig(**merged)
        else:
            self._config = SearchConfig.from_env()

        if validate_on_init:
            self._config.validate()

        self._data = data

    # ── Configuration ─────────────────────────────────────────────

    @property
    def config(self) -> SearchConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def data(self) -> GameData:
        """The game tables, loaded from ``config.data_dir`` on first access."""
        if self._data is None:
            data_dir = Path(self._config.data_dir or ".")
            if not data_dir.is_dir():
                raise IndexNotFoundError(
                    f"No DexSearch data directory at {data_dir}. "
                    "Set $DEXSEARCH_DATA_DIR or pass --data-dir."
                )
            self._data = GameData.from_directory(data_dir)
        return self._data

    # ── Search ────────────────────────────────────────────────────

    def searcher(
        self,
        category: str | None = None,
        format_id: str | None = None,
        species: str | PokemonSet | None = None,
        *,
        mod: str = "",
    ) -> DexSearch:
        """A fresh :class:`DexSearch` bound to this client's data and config."""
        return DexSearch(
            self._config.default_category if category is None else category,
            self._config.default_format if format_id is None else format_id,
            species or "",
            data=self.data,
            config=self._config,
            mod=mod,
        )

    def search(
        self,
        query: str,
        *,
        category: str | None = None,
        format_id: str | None = None,
        species: str | PokemonSet | None = None,
        filters: Sequence[tuple] = (),
        sort: str | None = None,
        reverse: bool = False,
        mod: str = "",
    ) -> List[Row]:
        """
        Run one search and return its rows.

        An empty *query* returns the category's structural listing with
        *filters* and *sort* applied; anything else is a text search.

        Raises:
            IndexNotFoundError: If *query* is non-empty and no search
                index was loaded.
            InvalidFilterError: If the category does not accept a filter.
            InvalidSortError: If the category cannot sort by *sort*.
        """
        if to_id(query) and not self.data.search_index:
            raise IndexNotFoundError(
                f"No search index loaded. Run 'dexsearch index <data dir>' to build "
                f"{self._config.index_file}."
            )
        dex_search = self.searcher(category, format_id, species, mod=mod)
        for entry in filters:
            if not dex_search.add_filter(tuple(entry)):
                raise InvalidFilterError(
                    f"Category '{dex_search.category or '-'}' does not accept filter '{entry[0]}'"
                )
        if sort:
            dex_search.toggle_sort(sort)
            if reverse:
                dex_search.toggle_sort(sort)
        dex_search.find(query)
        return dex_search.results or []

    # ── Index ─────────────────────────────────────────────────────

    def build_index(self, output_dir: str | Path | None = None, *, show_progress: bool = False) -> SearchIndex:
        """Build the search index from the loaded tables and write it to disk."""
        from dexsearch.core.indexer import SearchIndexBuilder

        target = Path(output_dir or self._config.data_dir or ".")
        index = SearchIndexBuilder(self.data, show_progress=show_progress).write(target, self._config)
        raw_entries, raw_offsets = index.to_raw()
        self.data.search_index = raw_entries
        self.data.search_index_offset = raw_offsets
        return index

    # ── Statistics ────────────────────────────────────────────────

    def stats(self) -> Dict[str, int]:
        """Table sizes of the loaded data."""
        data = self.data
        index = SearchIndex(data.search_index, data.search_index_offset)
        aliases = sum(1 for entry in index.entries if entry.is_alias)
        return {
            "species": len(data.pokedex),
            "moves": len(data.moves),
            "items": len(data.items),
            "abilities": len(data.abilities),
            "types": len(data.type_chart),
            "mods": len(data.mod_config),
            "index_entries": len(index),
            "index_aliases": aliases,
        }

    # ── Health ────────────────────────────────────────────────────

    def health(self) -> Dict[str, object]:
        """Small status dict; does not load any data."""
        return {
            "version": __import__("dexsearch", fromlist=["__version__"]).__version__,
            "data_dir": str(self._config.data_dir) if self._config.data_dir else None,
            "data_loaded": self._data is not None,
        }
