"""
DexSearch Configuration Module

Centralized configuration for the DexSearch query engine: where the game
data lives, the tunable constants of the text-search algorithm, and
logging defaults.  The category tables that every component agrees on
(bucket order, header labels, accepted filter kinds) live in
:class:`CategorySchema`.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# =============================================================================
# Instance-Based Configuration
# =============================================================================

@dataclass
class SearchConfig:
    """
    Instance-based configuration for DexSearch.

    Each ``SearchConfig`` instance is self-contained and is passed down
    to :class:`~dexsearch.core.search.DexSearch` and the
    :class:`~dexsearch.client.DexBrowser` facade, so tests can run with
    synthetic tables and tweaked thresholds side by side.

    Create from environment variables::

        config = SearchConfig.from_env()

    Or with explicit values::

        config = SearchConfig(data_dir=Path("./data"), instafilter_threshold=10)
    """

    # ── Data ──────────────────────────────────────────────────────
    data_dir: Optional[Path] = None
    index_file: str = "search-index.json"
    offset_file: str = "search-index-offset.json"

    # ── Defaults for new searches ─────────────────────────────────
    default_category: str = "pokemon"
    default_format: str = "gen9ou"

    # ── Text search ───────────────────────────────────────────────
    # Below this many hits a lone cross-category candidate is expanded
    # into a full listing of the active category.
    instafilter_threshold: int = 20
    # Rank of each bucket index when picking the instafilter candidate
    # (lower wins): types, then abilities, then moves, then tiers.
    instafilter_priority: tuple = (0, 1, 2, 5, 4, 3, 6, 7, 8)
    fuzzy_result_limit: int = 2

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Build a config snapshot from current environment variables.

        Reads :envvar:`DEXSEARCH_DATA_DIR`, :envvar:`DEXSEARCH_FORMAT`,
        :envvar:`DEXSEARCH_INSTAFILTER_THRESHOLD` and
        :envvar:`DEXSEARCH_LOG_LEVEL`.
        """
        data_dir = os.getenv("DEXSEARCH_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else None,
            default_format=os.getenv("DEXSEARCH_FORMAT", "gen9ou"),
            instafilter_threshold=int(os.getenv("DEXSEARCH_INSTAFILTER_THRESHOLD", "20")),
            log_level=os.getenv("DEXSEARCH_LOG_LEVEL", "INFO").upper(),
        )

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Validate the tunable constants.

        Raises :class:`~dexsearch.exceptions.ConfigError` on failure.
        """
        from dexsearch.exceptions import ConfigError

        if self.instafilter_threshold < 0:
            raise ConfigError(
                f"instafilter_threshold must be >= 0, got {self.instafilter_threshold}.\n"
                "  Set via: export DEXSEARCH_INSTAFILTER_THRESHOLD=20"
            )
        if self.fuzzy_result_limit < 1:
            raise ConfigError(
                f"fuzzy_result_limit must be >= 1, got {self.fuzzy_result_limit}."
            )
        if len(self.instafilter_priority) < len(CategorySchema.TYPE_TABLE):
            raise ConfigError(
                "instafilter_priority needs one rank per bucket "
                f"(expected {len(CategorySchema.TYPE_TABLE)}, "
                f"got {len(self.instafilter_priority)})."
            )
        if self.default_category not in CategorySchema.RESOLVER_CATEGORIES:
            raise ConfigError(
                f"Unknown default category '{self.default_category}'. "
                f"Supported: {', '.join(CategorySchema.RESOLVER_CATEGORIES)}."
            )
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level '{self.log_level}'.")
        return True

    def get_index_path(self, base_dir: Path | None = None) -> Path:
        """Get the path to the serialized search index."""
        return Path(base_dir or self.data_dir or ".") / self.index_file

    def get_offset_path(self, base_dir: Path | None = None) -> Path:
        """Get the path to the serialized highlight offset table."""
        return Path(base_dir or self.data_dir or ".") / self.offset_file


# =============================================================================
# Category Tables
# =============================================================================

class CategorySchema:
    """
    The category tables shared by the index builder, the text search and
    the typed resolvers.
    """

    # Output bucket of each index category.  Bucket 0 holds the legal rows
    # of the active category during a text search.
    TYPE_TABLE = {
        "pokemon": 1,
        "type": 2,
        "tier": 3,
        "move": 4,
        "item": 5,
        "ability": 6,
        "egggroup": 7,
        "category": 8,
        "article": 9,
    }

    TYPE_NAME = {
        "pokemon": "Pokémon",
        "type": "Type",
        "tier": "Tiers",
        "move": "Moves",
        "item": "Items",
        "ability": "Abilities",
        "egggroup": "Egg group",
        "category": "Category",
        "article": "Article",
    }

    # Categories with a typed resolver.  The last four belong to the
    # card-game sub-mode.
    RESOLVER_CATEGORIES = (
        "pokemon", "item", "move", "ability", "type", "category",
        "type2", "attribute", "typing", "level",
    )

    # Filter kinds accepted by DexSearch.add_filter, per active category.
    FILTER_KINDS = {
        "pokemon": frozenset({
            "type", "move", "ability", "egggroup", "tier",
            "type2", "attribute", "typing", "level",
        }),
        "move": frozenset({"type", "category", "pokemon"}),
    }

    # Sort columns that swap the listing for another category's default
    # listing instead of reordering the active one.
    CATEGORY_SORT_COLUMNS = (
        "type", "category", "ability", "type2", "attribute", "typing", "level",
    )

    HIDDEN_POWER_TYPES = (
        "bug", "dark", "dragon", "electric", "fighting", "fire", "flying", "ghost",
        "grass", "ground", "ice", "poison", "psychic", "rock", "steel", "water",
    )

    MOVE_CATEGORIES = ("physical", "special", "status")

    CARD_LEVELS = tuple(range(13))

    @classmethod
    def bucket_of(cls, category: str) -> int:
        """Bucket index of *category*, or -1 when it has none."""
        return cls.TYPE_TABLE.get(category, -1)
