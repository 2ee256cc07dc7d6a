"""
DexSearch Typed Search

Base class of the per-category resolvers.  A resolver is bound to one
context (format, optional species or in-progress set) at construction
and computes, lazily and once:

* ``base_results``: the legal, context-filtered, headered listing;
* ``base_illegal_results`` and ``illegal_reasons``: every id of the
  category table that is missing from ``base_results``.

:meth:`TypedSearch.get_results` layers structural filters and sorting on
top of those caches.  A context change means a new resolver; caches are
never invalidated in place.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Type, Union

from dexsearch.core.config import CategorySchema
from dexsearch.core.data import Dex, FormatTable, GameData, PokemonSet, Row, Species, to_id
from dexsearch.core.formats import FormatContext, resolve_format

logger = logging.getLogger(__name__)

Filter = tuple
"""A structural filter: ``(kind, value)``."""

ILLEGAL_REASON = "Illegal"

TRADEBACKS_MODS = ("gen1expansionpack", "gen1burgundy")

REGION_BORN_CODES = {6: "p", 7: "q", 8: "g", 9: "a"}

# Formes whose learnsets live under a different id than the forme chain implies.
LEARNSET_REDIRECTS = {
    "gastrodoneast": "gastrodon",
    "pumpkaboosuper": "pumpkaboo",
    "sinisteaantique": "sinistea",
    "tatsugiristretchy": "tatsugiri",
}


def compact_headers(rows: Iterable[Row]) -> List[Row]:
    """Drop every header that is followed by another header or ends the list."""
    out: List[Row] = []
    for row in rows:
        if out and row[0] == "header" and out[-1][0] == "header":
            out[-1] = row
        else:
            out.append(row)
    if out and out[-1][0] == "header":
        out.pop()
    return out


class TypedSearch:
    """
    Abstract category resolver.

    Subclasses set :attr:`search_type` (which registers them) and
    implement :meth:`get_table`, :meth:`get_default_results`,
    :meth:`get_base_results`, :meth:`filter` and :meth:`sort`.

    Args:
        format_id: raw format id, e.g. ``"gen9ou"``; empty for none.
        species_or_set: species id, or a :class:`PokemonSet` under
            construction.
        data: the game tables.
        context: an already resolved context to share instead of
            resolving *format_id* again.
    """

    search_type: str = ""
    sort_row: Optional[Row] = None

    _registry: Dict[str, Type["TypedSearch"]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.search_type:
            TypedSearch._registry[cls.search_type] = cls

    def __init__(
        self,
        format_id: str = "",
        species_or_set: Union[str, PokemonSet, None] = "",
        *,
        data: GameData,
        context: Optional[FormatContext] = None,
    ):
        self.data = data
        self.context = context or resolve_format(format_id, data)

        self.species = ""
        self.pokemon_set: Optional[PokemonSet] = None
        if isinstance(species_or_set, PokemonSet):
            self.pokemon_set = species_or_set
            self.species = to_id(species_or_set.species)
        elif species_or_set:
            self.species = to_id(species_or_set)

        self.base_results: Optional[List[Row]] = None
        self.base_illegal_results: Optional[List[Row]] = None
        self.illegal_reasons: Optional[Dict[str, str]] = None

    # ── Registry ──────────────────────────────────────────────────

    @classmethod
    def for_category(cls, search_type: str) -> Optional[Type["TypedSearch"]]:
        return cls._registry.get(search_type)

    @classmethod
    def create(
        cls,
        search_type: str,
        format_id: str = "",
        species_or_set: Union[str, PokemonSet, None] = "",
        *,
        data: GameData,
    ) -> Optional["TypedSearch"]:
        """Resolver for *search_type*, or None when the category has none."""
        resolver_cls = cls.for_category(search_type) if search_type else None
        if resolver_cls is None:
            return None
        return resolver_cls(format_id, species_or_set, data=data)

    def _sibling(self, search_type: str) -> "TypedSearch":
        """A resolver of another category sharing this one's context."""
        return self._registry[search_type](
            species_or_set=self.pokemon_set or self.species, data=self.data, context=self.context,
        )

    # ── Context accessors ─────────────────────────────────────────

    @property
    def dex(self) -> Dex:
        return self.context.dex

    @property
    def format(self) -> str:
        return self.context.format

    @property
    def format_type(self) -> Optional[str]:
        return self.context.format_type

    @property
    def mod(self) -> str:
        return self.context.mod

    @property
    def mod_table(self) -> Optional[FormatTable]:
        return self.data.mod_table(self.mod)

    @property
    def mod_format_table(self) -> dict:
        return self.data.mod_format(self.mod, self.context.mod_format)

    # ── Results ───────────────────────────────────────────────────

    def get_results(
        self,
        filters: Optional[Sequence[Filter]] = None,
        sort_col: Optional[str] = None,
        reverse_sort: bool = False,
    ) -> List[Row]:
        """
        Base listing with *filters* applied and *sort_col* ordering.

        Sorting by a column that names another category (``type``,
        ``ability``, ...) shows that category's listing instead, under
        the sort row.
        """
        if sort_col in CategorySchema.CATEGORY_SORT_COLUMNS:
            rows = self._sibling(sort_col).get_default_results()
            return [self.sort_row, *rows] if self.sort_row else list(rows)

        self.ensure_base_results()

        illegal_results: Optional[List[Row]]
        if filters:
            results = [row for row in self.base_results if self.filter(row, filters)]
            illegal_results = [row for row in self.base_illegal_results if self.filter(row, filters)]
        else:
            results = list(self.base_results)
            illegal_results = None

        if sort_col:
            results = self.sort(
                [row for row in results if row[0] == self.search_type], sort_col, reverse_sort,
            )
            if illegal_results:
                illegal_results = self.sort(
                    [row for row in illegal_results if row[0] == self.search_type], sort_col, reverse_sort,
                )

        if self.sort_row:
            results = [self.sort_row, *results]
        if illegal_results:
            results = [*results, ("header", "Illegal results"), *illegal_results]
        return compact_headers(results)

    def ensure_base_results(self) -> None:
        if self.base_results is None:
            self.base_results = list(self.get_base_results())
            logger.debug(
                f"{type(self).__name__}: {len(self.base_results):,} base rows "
                f"for format={self.format!r} species={self.species!r}"
            )
        if self.base_illegal_results is None:
            legal = {row[1] for row in self.base_results if row[0] == self.search_type}
            self.base_illegal_results = []
            self.illegal_reasons = {}
            for entry_id in self.get_table():
                if entry_id not in legal:
                    self.base_illegal_results.append((self.search_type, entry_id))
                    self.illegal_reasons[entry_id] = ILLEGAL_REASON

    def _merged_table(self, canonical: dict, override: dict) -> dict:
        """Canonical records win; ids only the override knows are kept."""
        merged = dict(override)
        merged.update(canonical)
        return merged

    # ── Abstract interface ────────────────────────────────────────

    def get_table(self) -> dict:
        raise NotImplementedError

    def get_default_results(self) -> List[Row]:
        raise NotImplementedError

    def get_base_results(self) -> List[Row]:
        raise NotImplementedError

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        raise NotImplementedError

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise NotImplementedError

    # ── Learnsets ─────────────────────────────────────────────────

    def learnset_table(self) -> FormatTable:
        """Table whose ``learnsets`` legality checks read."""
        if self.context.type_startswith("bdsp"):
            return self.data.table("gen8bdsp") or self.data.root_table
        if self.format_type == "letsgo":
            return self.data.table("gen7letsgo") or self.data.root_table
        return self.data.root_table

    def first_learnset_id(self, species_id: str) -> str:
        learnsets = self.learnset_table().learnsets
        if species_id in learnsets:
            return species_id
        species = self.dex.get_species(species_id)
        if not species.exists:
            return ""
        base_id = to_id(species.base_species)
        if isinstance(species.battle_only, str) and species.battle_only != species.base_species:
            base_id = to_id(species.battle_only)
        return base_id if base_id in learnsets else ""

    def next_learnset_id(self, learnset_id: str, species_id: str) -> str:
        if learnset_id == "lycanrocdusk" or (species_id == "rockruff" and learnset_id == "rockruff"):
            return "rockruffdusk"
        species = self.dex.get_species(learnset_id)
        if not species.exists:
            return ""
        if species.id in LEARNSET_REDIRECTS:
            return LEARNSET_REDIRECTS[species.id]
        following = species.battle_only or species.changes_from or species.prevo
        if isinstance(following, list):
            following = following[0] if following else ""
        return to_id(following) if following else ""

    def learnset_chain(self, species_id: str):
        """Yield each learnset id of *species_id*'s chain once."""
        seen = set()
        learnset_id = self.first_learnset_id(species_id)
        while learnset_id and learnset_id not in seen:
            seen.add(learnset_id)
            yield learnset_id
            learnset_id = self.next_learnset_id(learnset_id, species_id)

    def learnset(self, learnset_id: str, table: Optional[FormatTable] = None) -> Optional[Dict[str, str]]:
        """Learnset of *learnset_id* with the mod's overrides merged in."""
        table = table or self.learnset_table()
        learnset = table.learnsets.get(learnset_id)
        if self.mod and self.mod_table is not None:
            kind = "overridePackDetails" if self.mod == "ygo" else "overrideLearnsets"
            override = self.mod_table.override(kind).get(learnset_id)
            if override:
                learnset = {**(learnset or {}), **override}
        return learnset

    def generation_code(self) -> str:
        """The learnset marker that counts as "learnable here"."""
        gen = self.dex.gen
        fmt = self.format
        region_born = (
            fmt.startswith(("vgc", "bss", "battlespot", "battlestadium", "battlefestival"))
            or (gen == 9 and self.format_type != "natdex")
        )
        if region_born and gen in REGION_BORN_CODES:
            return REGION_BORN_CODES[gen]
        return str(gen)

    @staticmethod
    def _carries_marker(learnset: Dict[str, str], marker: str) -> bool:
        return any(marker in str(code) for code in learnset.values())

    def is_tradebacks(self) -> bool:
        return "tradebacks" in self.format or self.mod in TRADEBACKS_MODS

    def can_learn(self, species_id: str, move_id: str) -> bool:
        move = self.dex.get_move(move_id)
        if self.format_type == "natdex" and move.is_nonstandard and move.is_nonstandard != "Past":
            return False
        gen = self.dex.gen
        code = self.generation_code()
        tradebacks = self.format.startswith("tradebacks") or self.mod in TRADEBACKS_MODS

        for learnset_id in self.learnset_chain(species_id):
            learnset = self.learnset(learnset_id)
            if learnset is not None and not learnset:
                # Loaded but empty: another mod supplied it, use the base species.
                learnset_id = to_id(self.dex.get_species(learnset_id).base_species)
                learnset = self.learnset(learnset_id)
            if not learnset or move.id not in learnset:
                continue
            entry = str(learnset[move.id])
            marker = code if code.isdigit() or self._carries_marker(learnset, code) else str(gen)
            if marker in entry:
                return True
            if tradebacks and str(gen + 1) in entry and move.gen <= gen:
                return True
        return False

    # ── Tiers ─────────────────────────────────────────────────────

    def tier_table_key(self) -> str:
        gen = self.dex.gen
        keys = {
            "doubles": f"gen{gen}doubles",
            "letsgo": "gen7letsgo",
            "bdsp": "gen8bdsp",
            "bdspdoubles": "gen8bdspdoubles",
            "nfe": f"gen{gen}nfe",
            "lc": f"gen{gen}lc",
            "ssdlc1": "gen8dlc1",
            "ssdlc1doubles": "gen8dlc1doubles",
            "predlc": "gen9predlc",
            "predlcdoubles": "gen9predlcdoubles",
            "predlcnatdex": "gen9predlcnatdex",
            "svdlc1": "gen9dlc1",
            "svdlc1doubles": "gen9dlc1doubles",
            "svdlc1natdex": "gen9dlc1natdex",
            "natdex": f"gen{gen}natdex",
            "stadium": f"gen{gen}stadium{gen if gen > 1 else ''}",
        }
        return keys.get(self.format_type or "", f"gen{gen}")

    def get_tier(self, species: Species) -> str:
        """
        Tier of *species* in this context.

        Override precedence: exact id, then the id without a ``totem``
        suffix, then the base species, then the species' own tier.
        """
        if self.format_type == "metronome":
            return str(species.num) if species.num >= 0 else species.tier

        table: Optional[FormatTable] = self.data.root_table
        if self.mod:
            table = self.mod_table
            if table is not None and self.mod_format_table.get("gameType") == "doubles":
                table = table.sub("doubles")
        if table is not None:
            table = table.sub(self.tier_table_key()) or table
        if table is None:
            return species.tier

        overrides = table.override_tier
        if species.id in overrides:
            return overrides[species.id]
        if species.id.endswith("totem") and species.id[:-5] in overrides:
            return overrides[species.id[:-5]]
        base_id = to_id(species.base_species)
        if base_id in overrides:
            return overrides[base_id]
        return species.tier

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(format={self.format!r}, type={self.format_type!r}, "
            f"mod={self.mod!r}, species={self.species!r})"
        )
