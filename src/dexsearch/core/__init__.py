"""
DexSearch Core — game data, search index, format resolution, resolvers,
and the search orchestrator.

Re-exports the primary classes for convenience::

    from dexsearch.core import DexSearch, GameData, SearchConfig
"""

from dexsearch.core.categories import (
    AbilitySearch,
    AttributeSearch,
    CategorySearch,
    ItemSearch,
    LevelSearch,
    Type2Search,
    TypeSearch,
    TypingSearch,
)
from dexsearch.core.config import CategorySchema, SearchConfig
from dexsearch.core.data import Dex, GameData, PokemonSet, Species, to_id
from dexsearch.core.formats import FORMAT_RULES, FormatContext, FormatRule, resolve_format
from dexsearch.core.index import IndexEntry, SearchIndex
from dexsearch.core.indexer import SearchIndexBuilder
from dexsearch.core.moves import MoveSearch
from dexsearch.core.search import DexSearch, ResultFormatter
from dexsearch.core.species import PokemonSearch
from dexsearch.core.typed_search import TypedSearch, compact_headers

__all__ = [
    "SearchConfig",
    "CategorySchema",
    "Dex",
    "GameData",
    "PokemonSet",
    "Species",
    "to_id",
    "FORMAT_RULES",
    "FormatContext",
    "FormatRule",
    "resolve_format",
    "IndexEntry",
    "SearchIndex",
    "SearchIndexBuilder",
    "TypedSearch",
    "compact_headers",
    "PokemonSearch",
    "MoveSearch",
    "AbilitySearch",
    "ItemSearch",
    "TypeSearch",
    "CategorySearch",
    "Type2Search",
    "AttributeSearch",
    "TypingSearch",
    "LevelSearch",
    "DexSearch",
    "ResultFormatter",
]
