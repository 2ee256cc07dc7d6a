"""
DexSearch Data Module

Read-only access to the external game data the query engine consumes:
species, moves, items, abilities, the type chart, the literal alias map,
the per-format teambuilder tables (tier lists, learnsets, overrides) and
the per-mod configuration.

The raw tables are plain dictionaries, loaded once (usually from JSON
files with :meth:`GameData.from_directory`) and never mutated.  Derived
views such as the flattened tier list of a format table are memoized on
:class:`FormatTable` wrappers owned by the :class:`GameData` instance.

:class:`Dex` is the generation- and mod-aware lookup provider.  Unknown
ids never raise: they come back as records with ``exists=False``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from dexsearch.exceptions import DataLoadError

logger = logging.getLogger(__name__)

_NON_ID = re.compile(r"[^a-z0-9]+")

Row = tuple
"""A result row: ``(category, id, ...)``, ``("header", label)`` or ``("html", fragment)``."""


def to_id(text: Any) -> str:
    """Normalize *text* to an id: lowercase, ``[a-z0-9]`` only."""
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return _NON_ID.sub("", text.lower())


# =============================================================================
# Records
# =============================================================================

@dataclass
class Species:
    """A Pokémon species (or forme) as seen by one generation/mod."""

    id: str
    name: str
    exists: bool = True
    gen: int = 0
    num: int = 0
    base_species: str = ""
    forme: str = ""
    formeid: str = ""
    types: List[str] = field(default_factory=lambda: ["???"])
    abilities: Dict[str, str] = field(default_factory=lambda: {"0": "No Ability"})
    base_stats: Dict[str, int] = field(default_factory=lambda: {
        "hp": 0, "atk": 0, "def": 0, "spa": 0, "spd": 0, "spe": 0,
    })
    weightkg: float = 0
    egg_groups: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    other_formes: Optional[List[str]] = None
    evos: Optional[List[str]] = None
    prevo: str = ""
    tier: str = ""
    is_mega: bool = False
    is_primal: bool = False
    is_totem: bool = False
    battle_only: Union[str, List[str], None] = None
    changes_from: Optional[str] = None
    is_nonstandard: Optional[str] = None
    # ── Card-game sub-mode attributes ─────────────────────────────
    card_type: str = ""
    attribute: str = ""
    typing: str = ""
    level: Optional[int] = None
    attack: int = 0
    defense: int = 0

    @property
    def bst(self) -> int:
        return sum(self.base_stats.get(stat, 0) for stat in ("hp", "atk", "def", "spa", "spd", "spe"))

    @classmethod
    def from_data(cls, species_id: str, data: Optional[dict]) -> "Species":
        if not isinstance(data, dict):
            data = {}
        name = data.get("name") or species_id
        base_species = data.get("baseSpecies") or name
        forme = data.get("forme") or ""
        base_id = to_id(base_species)
        formeid = "" if base_id == species_id else "-" + to_id(forme)
        species = cls(
            id=species_id,
            name=name,
            exists=bool(data["exists"]) if "exists" in data else True,
            gen=data.get("gen") or 0,
            num=data.get("num") or 0,
            base_species=base_species,
            forme=forme,
            formeid=formeid,
            types=list(data.get("types") or ["???"]),
            abilities=dict(data.get("abilities") or {"0": "No Ability"}),
            base_stats=dict(data.get("baseStats") or {
                "hp": 0, "atk": 0, "def": 0, "spa": 0, "spd": 0, "spe": 0,
            }),
            weightkg=data.get("weightkg") or 0,
            egg_groups=list(data.get("eggGroups") or []),
            tags=list(data.get("tags") or []),
            other_formes=data.get("otherFormes") or None,
            evos=data.get("evos") or None,
            prevo=data.get("prevo") or "",
            tier=data.get("tier") or "",
            is_mega=bool(forme) and formeid in ("-mega", "-megax", "-megay"),
            is_primal=bool(forme) and formeid == "-primal",
            battle_only=data.get("battleOnly") or None,
            changes_from=data.get("changesFrom") or None,
            is_nonstandard=data.get("isNonstandard") or None,
            card_type=data.get("type") or "",
            attribute=data.get("attribute") or "",
            typing=data.get("typing") or "",
            level=data.get("level"),
            attack=data.get("attack") or 0,
            defense=data.get("defense") or 0,
        )
        if not species.gen:
            species._infer_gen()
        return species

    def _infer_gen(self) -> None:
        num, formeid = self.num, self.formeid
        if num >= 906 or formeid.startswith("-paldea"):
            self.gen = 9
        elif num >= 810 or formeid.startswith("-galar") or formeid.startswith("-hisui"):
            self.gen = 8
        elif num >= 722 or formeid in ("-alola", "-starter"):
            self.gen = 7
        elif self.is_mega or self.is_primal:
            self.gen = 6
            self.battle_only = self.base_species
        elif formeid in ("-totem", "-alolatotem"):
            self.gen = 7
            self.is_totem = True
        elif num >= 650:
            self.gen = 6
        elif num >= 494:
            self.gen = 5
        elif num >= 387:
            self.gen = 4
        elif num >= 252:
            self.gen = 3
        elif num >= 152:
            self.gen = 2
        elif num >= 1:
            self.gen = 1


@dataclass
class Move:
    """A move as seen by one generation/mod."""

    id: str
    name: str
    exists: bool = True
    gen: int = 0
    num: int = 0
    base_power: int = 0
    accuracy: Union[int, bool] = 0
    pp: int = 1
    type: str = "???"
    category: str = "Physical"
    flags: Dict[str, Any] = field(default_factory=dict)
    status: str = ""
    is_nonstandard: Optional[str] = None
    is_z: str = ""
    is_max: Union[bool, str] = False
    no_sketch: bool = False
    viable: Optional[bool] = None

    @classmethod
    def from_data(cls, move_id: str, data: Optional[dict]) -> "Move":
        if not isinstance(data, dict):
            data = {}
        move = cls(
            id=move_id,
            name=data.get("name") or move_id,
            exists=bool(data["exists"]) if "exists" in data else True,
            gen=data.get("gen") or 0,
            num=data.get("num") or 0,
            base_power=data.get("basePower") or 0,
            accuracy=data.get("accuracy") or 0,
            pp=data.get("pp") or 1,
            type=data.get("type") or "???",
            category=data.get("category") or "Physical",
            flags=dict(data.get("flags") or {}),
            status=data.get("status") or "",
            is_nonstandard=data.get("isNonstandard") or None,
            is_z=data.get("isZ") or "",
            is_max=data.get("isMax") or False,
            no_sketch=bool(data.get("noSketch")),
            viable=data.get("viable") if isinstance(data.get("viable"), bool) else None,
        )
        if not move.gen:
            for threshold, gen in ((743, 8), (622, 7), (560, 6), (468, 5),
                                   (355, 4), (252, 3), (166, 2), (1, 1)):
                if move.num >= threshold:
                    move.gen = gen
                    break
        return move


@dataclass
class Ability:
    id: str
    name: str
    exists: bool = True
    gen: int = 0
    num: int = 0
    rating: float = 1
    is_nonstandard: bool = False

    @classmethod
    def from_data(cls, ability_id: str, data: Optional[dict]) -> "Ability":
        if not isinstance(data, dict):
            data = {}
        ability = cls(
            id=ability_id,
            name=data.get("name") or ability_id,
            exists=bool(data["exists"]) if "exists" in data else True,
            gen=data.get("gen") or 0,
            num=data.get("num") or 0,
            rating=data.get("rating") or 1,
            is_nonstandard=bool(data.get("isNonstandard")),
        )
        if not ability.gen:
            for threshold, gen in ((234, 8), (192, 7), (165, 6), (124, 5), (77, 4), (1, 3)):
                if ability.num >= threshold:
                    ability.gen = gen
                    break
        return ability


@dataclass
class Item:
    id: str
    name: str
    exists: bool = True
    gen: int = 0
    num: int = 0
    item_user: Optional[List[str]] = None
    is_nonstandard: Optional[str] = None

    @classmethod
    def from_data(cls, item_id: str, data: Optional[dict]) -> "Item":
        if not isinstance(data, dict):
            data = {}
        item = cls(
            id=item_id,
            name=data.get("name") or item_id,
            exists=bool(data["exists"]) if "exists" in data else True,
            gen=data.get("gen") or 0,
            num=data.get("num") or 0,
            item_user=data.get("itemUser"),
            is_nonstandard=data.get("isNonstandard") or None,
        )
        if not item.gen:
            if item.num >= 577:
                item.gen = 6
            elif item.num >= 537:
                item.gen = 5
            elif item.num >= 377:
                item.gen = 4
            else:
                item.gen = 3
        return item


@dataclass
class PokemonSet:
    """An in-progress team member: species plus the choices made so far."""

    species: str
    ability: str = ""
    item: str = ""
    moves: List[str] = field(default_factory=list)


UsefulnessOverride = Callable[[str, Species, List[str], Optional[PokemonSet], "Dex"], Optional[bool]]
"""Mod plugin ``(move_id, species, known_moves, pokemon_set, dex) -> bool | None``."""


# =============================================================================
# Format tables
# =============================================================================

def _rows(entries: Optional[list], default_kind: str) -> List[Row]:
    """Normalize a stored listing: bare strings are ids of *default_kind*."""
    rows: List[Row] = []
    for entry in entries or []:
        if isinstance(entry, str):
            rows.append((default_kind, entry))
        else:
            rows.append((entry[0], entry[1]))
    return rows


class FormatTable:
    """
    Read-only view of one teambuilder table (``gen8``, ``gen9natdex``, a
    mod's table, ...).

    The flattened row listings are computed on first access and cached on
    the wrapper, never written back into the raw dictionary.
    """

    def __init__(self, name: str, raw: dict, owner: "GameData"):
        self.name = name
        self.raw = raw
        self._owner = owner
        self._tier_set: Optional[List[Row]] = None
        self._custom_tier_set: Optional[List[Row]] = None
        self._item_set: Optional[List[Row]] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def sub(self, key: str) -> Optional["FormatTable"]:
        """Nested table (e.g. a mod's ``doubles`` table)."""
        return self._owner.table(key, parent=self)

    @property
    def tier_set(self) -> List[Row]:
        if self._tier_set is None:
            self._tier_set = _rows(self.raw.get("tiers"), "pokemon")
        return self._tier_set

    @property
    def custom_tier_set(self) -> Optional[List[Row]]:
        if "customTiers" not in self.raw:
            return None
        if self._custom_tier_set is None:
            self._custom_tier_set = _rows(self.raw.get("customTiers"), "pokemon")
        return self._custom_tier_set

    @property
    def item_set(self) -> List[Row]:
        if self._item_set is None:
            self._item_set = _rows(self.raw.get("items"), "item")
        return self._item_set

    @property
    def format_slices(self) -> Dict[str, int]:
        return self.raw.get("formatSlices") or {}

    @property
    def override_tier(self) -> Dict[str, str]:
        return self.raw.get("overrideTier") or {}

    @property
    def learnsets(self) -> Dict[str, Dict[str, str]]:
        return self.raw.get("learnsets") or {}

    @property
    def pack_details(self) -> Dict[str, dict]:
        return self.raw.get("packDetails") or {}

    @property
    def nonstandard_moves(self) -> List[str]:
        return self.raw.get("nonstandardMoves") or []

    def override(self, kind: str) -> Dict[str, Any]:
        """One of the mod override maps (``overrideDexInfo``, ``overrideLearnsets``, ...)."""
        return self.raw.get(kind) or {}

    def __repr__(self) -> str:
        return f"FormatTable({self.name!r})"


# =============================================================================
# Game data bundle
# =============================================================================

class GameData:
    """
    Bundle of the external lookup tables.

    Every table is optional: a missing table behaves as empty, which is
    how the engine copes with categories whose data was never loaded.

    Args:
        pokedex / moves / items / abilities: id -> raw record.
        type_chart: type id (``"fire"``) -> raw type record.
        aliases: literal alias map, id -> display name of the target.
        teambuilder: the per-format table root.  Its top-level keys
            double as the current generation's table; nested keys
            (``gen8``, ``gen9natdex``, mod ids, ...) are sub-tables.
        mod_config: mod id -> ``{"formats": {format id: {...}}}``.
        card_tables: ``type2`` / ``attribute`` / ``typing`` id tables.
        gen_data: generation -> ``{"pokedex": ..., "moves": ..., ...}``
            patches applied to lookups at that generation or older.
        search_index / search_index_offset: the precomputed index.
        usefulness_overrides: mod id -> typed usefulness plugin.
    """

    FILES = {
        "pokedex": "pokedex.json",
        "moves": "moves.json",
        "items": "items.json",
        "abilities": "abilities.json",
        "type_chart": "typechart.json",
        "aliases": "aliases.json",
        "teambuilder": "teambuilder-tables.json",
        "mod_config": "mod-config.json",
        "card_tables": "card-tables.json",
        "gen_data": "gen-data.json",
        "search_index": "search-index.json",
        "search_index_offset": "search-index-offset.json",
    }

    def __init__(
        self,
        pokedex: Optional[dict] = None,
        moves: Optional[dict] = None,
        items: Optional[dict] = None,
        abilities: Optional[dict] = None,
        type_chart: Optional[dict] = None,
        aliases: Optional[dict] = None,
        teambuilder: Optional[dict] = None,
        mod_config: Optional[dict] = None,
        card_tables: Optional[dict] = None,
        gen_data: Optional[dict] = None,
        search_index: Optional[list] = None,
        search_index_offset: Optional[list] = None,
        usefulness_overrides: Optional[Dict[str, UsefulnessOverride]] = None,
    ):
        self.pokedex = pokedex or {}
        self.moves = moves or {}
        self.items = items or {}
        self.abilities = abilities or {}
        self.type_chart = type_chart or {}
        self.aliases = aliases or {}
        self.teambuilder = teambuilder or {}
        self.mod_config = mod_config or {}
        self.card_tables = card_tables or {}
        self.gen_data = {int(gen): patch for gen, patch in (gen_data or {}).items()}
        self.search_index = search_index or []
        self.search_index_offset = search_index_offset or []
        self.usefulness_overrides = dict(usefulness_overrides or {})
        self._tables: Dict[tuple, Optional[FormatTable]] = {}
        self._root: Optional[FormatTable] = None

    # ── Loading ───────────────────────────────────────────────────

    @classmethod
    def from_directory(cls, data_dir: Union[str, Path], **extra) -> "GameData":
        """
        Load every known table from *data_dir*.

        Missing files yield empty tables.  A file that exists but is not
        valid JSON raises :class:`~dexsearch.exceptions.DataLoadError`.
        """
        data_dir = Path(data_dir)
        tables: Dict[str, Any] = {}
        for attr, filename in cls.FILES.items():
            path = data_dir / filename
            if not path.exists():
                logger.debug(f"No {filename} in {data_dir}; using an empty table")
                continue
            try:
                with path.open(encoding="utf-8") as handle:
                    tables[attr] = json.load(handle)
            except (OSError, json.JSONDecodeError) as exc:
                raise DataLoadError(f"Failed to load {path}: {exc}") from exc
        tables.update(extra)
        logger.info(
            f"Loaded game data from {data_dir}: {len(tables.get('pokedex', {})):,} species, "
            f"{len(tables.get('moves', {})):,} moves, {len(tables.get('search_index', [])):,} index entries"
        )
        return cls(**tables)

    # ── Teambuilder tables ────────────────────────────────────────

    @property
    def root_table(self) -> FormatTable:
        if self._root is None:
            self._root = FormatTable("", self.teambuilder, self)
        return self._root

    def table(self, key: str, parent: Optional[FormatTable] = None) -> Optional[FormatTable]:
        """Sub-table *key* of *parent* (the root when omitted), or None."""
        parent = parent or self.root_table
        cache_key = (parent.name, key)
        if cache_key not in self._tables:
            raw = parent.raw.get(key) if key else None
            name = f"{parent.name}.{key}" if parent.name else key
            self._tables[cache_key] = FormatTable(name, raw, self) if isinstance(raw, dict) else None
        return self._tables[cache_key]

    def mod_table(self, mod: str) -> Optional[FormatTable]:
        return self.table(mod) if mod else None

    def mod_format(self, mod: str, format_id: str) -> dict:
        """The ModConfig entry of *format_id* under *mod* (empty when unknown)."""
        if not mod:
            return {}
        return (self.mod_config.get(mod) or {}).get("formats", {}).get(format_id) or {}


# =============================================================================
# Lookup provider
# =============================================================================

class Dex:
    """
    Generation- and mod-aware lookups over a :class:`GameData` bundle.

    ``Dex(data).for_gen(7)`` sees the gen 8 patches and then the gen 7
    patches layered over the current data; ``for_mod("gen1burgundy")``
    additionally layers that mod's override maps.
    """

    CURRENT_GEN = 9

    def __init__(self, data: GameData, gen: int = CURRENT_GEN, mod: str = ""):
        self.data = data
        self.gen = gen
        self.mod = mod
        self._species: Dict[str, Species] = {}
        self._moves: Dict[str, Move] = {}
        self._abilities: Dict[str, Ability] = {}
        self._items: Dict[str, Item] = {}

    def for_gen(self, gen: int) -> "Dex":
        return Dex(self.data, gen, self.mod)

    def for_mod(self, mod: str, gen: Optional[int] = None) -> "Dex":
        if gen is None:
            match = re.match(r"gen(\d)", mod)
            gen = int(match.group(1)) if match else self.gen
        return Dex(self.data, gen, mod)

    # ── Raw record resolution ─────────────────────────────────────

    def _resolve_id(self, name: Any, table: dict, override_kind: str) -> str:
        record_id = to_id(name)
        if record_id in table or record_id in self._mod_override(override_kind):
            return record_id
        alias = self.data.aliases.get(record_id)
        if alias:
            return to_id(alias)
        return record_id

    def _mod_override(self, kind: str) -> dict:
        mod_table = self.data.mod_table(self.mod)
        return mod_table.override(kind) if mod_table else {}

    def _raw(self, record_id: str, table: dict, patch_key: str, override_kind: str) -> Optional[dict]:
        raw = table.get(record_id)
        merged = dict(raw) if isinstance(raw, dict) else None
        for gen in sorted(self.data.gen_data, reverse=True):
            if gen < self.gen:
                break
            patch = (self.data.gen_data[gen].get(patch_key) or {}).get(record_id)
            if isinstance(patch, dict):
                merged = {**(merged or {}), **patch}
        override = self._mod_override(override_kind).get(record_id)
        if isinstance(override, dict):
            merged = {**(merged or {}), **override}
        return merged

    # ── Public lookups ────────────────────────────────────────────

    def get_species(self, name: Any) -> Species:
        species_id = self._resolve_id(name, self.data.pokedex, "overrideDexInfo")
        if species_id not in self._species:
            raw = self._raw(species_id, self.data.pokedex, "pokedex", "overrideDexInfo")
            if raw is None:
                species = Species(id=species_id, name=str(name or ""), exists=False)
            else:
                species = Species.from_data(species_id, raw)
            self._species[species_id] = species
        return self._species[species_id]

    def get_move(self, name: Any) -> Move:
        move_id = self._resolve_id(name, self.data.moves, "overrideMoveInfo")
        if move_id not in self._moves:
            raw = self._raw(move_id, self.data.moves, "moves", "overrideMoveInfo")
            if raw is None:
                move = Move(id=move_id, name=str(name or ""), exists=False)
            else:
                move = Move.from_data(move_id, raw)
            self._moves[move_id] = move
        return self._moves[move_id]

    def get_ability(self, name: Any) -> Ability:
        ability_id = self._resolve_id(name, self.data.abilities, "overrideAbilityDesc")
        if ability_id not in self._abilities:
            raw = self._raw(ability_id, self.data.abilities, "abilities", "overrideAbilityDesc")
            if raw is None:
                ability = Ability(id=ability_id, name=str(name or ""), exists=False)
            else:
                ability = Ability.from_data(ability_id, raw)
            self._abilities[ability_id] = ability
        return self._abilities[ability_id]

    def get_item(self, name: Any) -> Item:
        item_id = self._resolve_id(name, self.data.items, "overrideItemInfo")
        if item_id not in self._items:
            raw = self._raw(item_id, self.data.items, "items", "overrideItemInfo")
            if raw is None:
                item = Item(id=item_id, name=str(name or ""), exists=False)
            else:
                item = Item.from_data(item_id, raw)
            self._items[item_id] = item
        return self._items[item_id]

    @staticmethod
    def has_ability(species: Species, ability: Any) -> bool:
        ability_id = to_id(ability)
        return any(to_id(name) == ability_id for name in species.abilities.values())

    def type_exists(self, type_id: str) -> bool:
        type_id = to_id(type_id)
        return type_id in self.data.type_chart or type_id in self._mod_override("overrideTypeChart")

    def __repr__(self) -> str:
        return f"Dex(gen={self.gen}, mod={self.mod!r})"
