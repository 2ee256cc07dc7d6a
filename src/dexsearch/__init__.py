"""
DexSearch — the query engine behind a Pokédex / move / item / ability picker.

The ``dexsearch`` package answers two kinds of questions over a game data
set: "what is legal here?" (a structural listing of a category for a
format and a species, with filters and sorts) and "what did the user
mean?" (an instant prefix / alias / fuzzy search of a precomputed index).

Quick start (programmatic API)::

    from dexsearch import DexBrowser

    browser = DexBrowser(data_dir=Path("./data"))
    rows = browser.search("thunder", category="move",
                          format_id="gen9ou", species="pikachu")

Quick start (CLI)::

    dexsearch index ./data
    dexsearch search thunder --category move --format gen9ou --species pikachu

Lower-level use::

    from dexsearch import DexSearch, GameData

    data = GameData.from_directory("./data")
    search = DexSearch("pokemon", "gen9ou", data=data)
    search.add_filter(("type", "Electric"))
    search.find("")
    search.results
"""

__version__ = "1.0.0"

# Primary public API: the DexBrowser facade
from dexsearch.client import DexBrowser

# Configuration
from dexsearch.core.config import CategorySchema, SearchConfig

# Core types that callers interact with
from dexsearch.core.data import GameData, PokemonSet
from dexsearch.core.search import DexSearch, ResultFormatter

# Exception hierarchy
from dexsearch.exceptions import (
    ConfigError,
    DataLoadError,
    DexSearchError,
    IndexNotFoundError,
    InvalidFilterError,
    InvalidSortError,
)


def health(config: SearchConfig | None = None) -> dict:
    """
    Return a small status dict for readiness probes (loads no data).

    When *config* is None, uses :meth:`SearchConfig.from_env()` for the snapshot.
    """
    cfg = config or SearchConfig.from_env()
    return {
        "version": __version__,
        "data_dir": str(cfg.data_dir) if cfg.data_dir else None,
        "default_format": cfg.default_format,
    }


__all__ = [
    "__version__",
    # Facade
    "DexBrowser",
    # Config
    "SearchConfig",
    "CategorySchema",
    # Data types
    "GameData",
    "PokemonSet",
    "DexSearch",
    "ResultFormatter",
    # Exceptions
    "DexSearchError",
    "ConfigError",
    "DataLoadError",
    "IndexNotFoundError",
    "InvalidFilterError",
    "InvalidSortError",
    # Status
    "health",
]
