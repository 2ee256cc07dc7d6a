"""
DexSearch Species Resolver

Lists Pokémon for a format: picks the teambuilder table that matches the
resolved context, slices its tier-ordered listing down to what the
format allows, applies ban lists and mod custom tiers, and drops
Gigantamax duplicates.  Also implements the species filters (type, egg
group, tier, ability, learnable move, card-game attributes) and the
stat sorts.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from dexsearch.core.data import FormatTable, Row, to_id
from dexsearch.core.typed_search import Filter, TypedSearch
from dexsearch.exceptions import InvalidSortError

logger = logging.getLogger(__name__)

# First species of each generation in dex order, and the pseudo-generations.
GENERATION_HEADERS = {
    "bulbasaur": "Generation 1",
    "chikorita": "Generation 2",
    "treecko": "Generation 3",
    "turtwig": "Generation 4",
    "victini": "Generation 5",
    "chespin": "Generation 6",
    "rowlet": "Generation 7",
    "grookey": "Generation 8",
    "sprigatito": "Generation 9",
    "missingno": "Glitch",
    "syclar": "CAP",
}

HIDDEN_FROM_LISTING = frozenset({"pikachucosplay"})

# Ladder tiers listed as their own band of the tier table.
LADDER_TIER_SLICES = {
    "ou": ("OU",),
    "uu": ("UU",),
    "ru": ("RU", "UU"),
    "nu": ("NU", "RU", "UU"),
    "pu": ("PU", "NU"),
    "zu": ("ZU", "PU", "NU"),
}

BASE_STATS = ("hp", "atk", "def", "spa", "spd", "spe")

_FULL_DEX_FORMATS = re.compile(r"^(battlestadium|vgc|doublesubers)")


def _first_slice(slices: Dict[str, int], *names: str) -> Optional[int]:
    """First truthy boundary among *names* (``0`` counts as missing)."""
    for name in names:
        if slices.get(name):
            return slices[name]
    return slices.get(names[-1]) if names else None


class PokemonSearch(TypedSearch):
    search_type = "pokemon"
    sort_row = ("sortpokemon", "")

    def get_table(self) -> dict:
        if not self.mod or self.mod_table is None:
            return self.data.pokedex
        return self._merged_table(self.data.pokedex, self.mod_table.override("overrideDexInfo"))

    def get_default_results(self) -> List[Row]:
        results: List[Row] = []
        for species_id in self.data.pokedex:
            if species_id in HIDDEN_FROM_LISTING:
                continue
            if species_id in GENERATION_HEADERS:
                results.append(("header", GENERATION_HEADERS[species_id]))
            results.append(("pokemon", species_id))
        return results

    # ── Table selection ───────────────────────────────────────────

    def _is_vgc_or_bs(self) -> bool:
        return self.format.startswith(("battlespot", "bss", "battlestadium", "vgc"))

    def _is_hackmons(self) -> bool:
        return "hackmons" in self.format or self.format.endswith("bh")

    def _plays_doubles(self) -> bool:
        fmt = self.format
        return (
            "doubles" in fmt or "triples" in fmt or fmt == "freeforall"
            or fmt.startswith("ffa") or fmt == "partnersincrime"
        )

    def select_table(self) -> tuple:
        """``(table, is_doubles)`` for the current context."""
        fmt = self.format
        gen = self.dex.gen
        root = self.data.root_table
        format_type = self.format_type
        is_doubles = self._is_vgc_or_bs() or self.context.type_includes("doubles")

        if self.mod:
            table = self.mod_table
            if table is not None and self.mod_format_table.get("gameType") == "doubles":
                table = table.sub("doubles")
        elif (fmt.endswith("cap") or fmt.endswith("caplc")) and gen < 9:
            table = root.sub(f"gen{gen}")
        elif self._is_vgc_or_bs():
            table = root.sub(f"gen{gen}vgc")
        elif gen == 9 and self._is_hackmons() and not format_type:
            table = root.sub("bh")
        elif (
            root.sub(f"gen{gen}doubles") is not None and gen > 4
            and format_type not in ("letsgo", "bdspdoubles", "ssdlc1doubles", "predlcdoubles", "svdlc1doubles")
            and not self.context.type_includes("natdex")
            and self._plays_doubles()
        ):
            table = root.sub(f"gen{gen}doubles")
            is_doubles = True
        elif gen < 9 and not format_type:
            table = root.sub(f"gen{gen}")
        elif self.context.type_startswith("bdsp"):
            table = root.sub(f"gen8{format_type}")
        elif format_type in ("letsgo",):
            table = root.sub("gen7letsgo")
        elif format_type in ("natdex", "metronome", "nfe", "lc"):
            table = root.sub(f"gen{gen}{format_type}")
        elif self.context.type_startswith("ssdlc1"):
            table = root.sub("gen8dlc1doubles" if "doubles" in format_type else "gen8dlc1")
        elif self.context.type_startswith("predlc") or self.context.type_startswith("svdlc1"):
            prefix = "gen9predlc" if format_type.startswith("predlc") else "gen9dlc1"
            if "doubles" in format_type:
                table = root.sub(f"{prefix}doubles")
            elif "natdex" in format_type:
                table = root.sub(f"{prefix}natdex")
            else:
                table = root.sub(prefix)
        elif format_type == "stadium":
            table = root.sub(f"gen{gen}stadium{gen if gen > 1 else ''}")
        else:
            table = root
        return table, is_doubles

    # ── Tier slicing ──────────────────────────────────────────────

    @staticmethod
    def _band(tier_set: List[Row], slices: Dict[str, int], start: Optional[int]) -> List[Row]:
        """Rows from *start* up to the next greater slice boundary."""
        if start is None:
            return list(tier_set)
        later = [offset for offset in slices.values() if offset > start]
        return tier_set[start:min(later)] if later else tier_set[start:]

    def slice_tiers(self, tier_set: List[Row], slices: Dict[str, int], is_doubles: bool) -> List[Row]:
        fmt = self.format
        gen = self.dex.gen
        format_type = self.format_type or ""
        is_hackmons = self._is_hackmons()

        if fmt in ("ubers", "uber", "ubersuu", "nationaldexdoubles"):
            return tier_set[slices.get("Uber"):]
        if self._is_vgc_or_bs() or (is_hackmons and gen == 9 and not format_type):
            if fmt.endswith("series13") or is_hackmons:
                return list(tier_set)
            if (
                fmt in ("vgc2010", "vgc2016", "vgc2022") or fmt.startswith("vgc2019")
                or fmt.endswith("series10") or fmt.endswith("series11")
            ):
                return tier_set[slices.get("Restricted Legendary"):]
            return tier_set[slices.get("Regular"):]
        if fmt == "ru" and gen == 3:
            return self._band(tier_set, slices, slices.get("UU"))
        if fmt in LADDER_TIER_SLICES:
            return self._band(tier_set, slices, _first_slice(slices, *LADDER_TIER_SLICES[fmt]))
        if fmt.startswith("lc") or (fmt != "caplc" and fmt.endswith("lc")):
            return tier_set[slices.get("LC"):]
        if fmt == "cap" or fmt.endswith("cap"):
            return tier_set[:_first_slice(slices, "AG", "Uber")] + tier_set[slices.get("OU"):]
        if fmt == "caplc":
            return (
                tier_set[slices.get("CAP LC"):_first_slice(slices, "AG", "Uber")]
                + tier_set[slices.get("LC"):]
            )
        if fmt == "anythinggoes" or fmt.endswith("ag") or fmt.startswith("ag"):
            return tier_set[slices.get("AG"):]
        if is_hackmons and (gen < 9 or format_type == "natdex"):
            return tier_set[_first_slice(slices, "AG", "Uber"):]
        if fmt == "monotype" or fmt.startswith("monothreat"):
            return tier_set[slices.get("Uber"):]
        if fmt == "doublesubers":
            return tier_set[slices.get("DUber"):]
        if fmt == "doublesou" and gen > 4:
            return tier_set[slices.get("DOU"):]
        if fmt == "doublesuu":
            return tier_set[slices.get("DUU"):]
        if fmt == "doublesnu":
            return tier_set[_first_slice(slices, "DNU", "DUU"):]
        if format_type.startswith("bdsp") or format_type in ("letsgo", "stadium"):
            return tier_set[slices.get("Uber"):]
        if not is_doubles:
            return (
                tier_set[slices.get("OU"):slices.get("UU")]
                + tier_set[slices.get("AG"):slices.get("Uber")]
                + tier_set[slices.get("Uber"):slices.get("OU")]
                + tier_set[slices.get("UU"):]
            )
        return (
            tier_set[slices.get("DOU"):slices.get("DUU")]
            + tier_set[slices.get("DUber"):slices.get("DOU")]
            + tier_set[slices.get("DUU"):]
        )

    def _apply_bans(self, tier_set: List[Row], table: FormatTable) -> List[Row]:
        fmt = self.format
        bans = {}
        if fmt == "ubersuu":
            bans.update(table.get("ubersUUBans") or {})
        if fmt == "nationaldexdoubles":
            bans.update(table.get("ndDoublesBans") or {})
        if self.dex.gen >= 5 and (fmt == "monotype" or fmt.startswith("monothreat")):
            bans.update(table.get("monotypeBans") or {})
        if not bans:
            return tier_set
        return [row for row in tier_set if row[1] not in bans]

    def _apply_custom_tiers(self, tier_set: List[Row], table: FormatTable) -> List[Row]:
        custom = table.custom_tier_set
        if custom is None:
            return tier_set
        tier_set = custom + tier_set
        mod_format = self.mod_format_table
        bans = mod_format.get("bans") or []
        unbans = mod_format.get("unbans") or []
        if bans and "All Pokemon" not in bans:
            tier_set = [row for row in tier_set if row[1] not in bans]
        elif unbans and "All Pokemon" in bans:
            tier_set = [row for row in tier_set if row[1] in unbans or row[0] == "header"]

        # Headers left with nothing under them.
        empty_headers = set()
        header_run = 0
        last_header = ""
        for kind, value in tier_set:
            header_run = header_run + 1 if kind == "header" else 0
            if header_run > 1:
                empty_headers.add(last_header)
            if header_run > 0:
                last_header = value
        if header_run == 1:
            empty_headers.add(last_header)
        return [row for row in tier_set if row[0] != "header" or row[1] not in empty_headers]

    def get_base_results(self) -> List[Row]:
        if not self.format:
            return self.get_default_results()

        table, is_doubles = self.select_table()
        if table is None:
            logger.debug(f"No tier table for format {self.format!r}; listing the full dex")
            return self.get_default_results()

        tier_set = self.slice_tiers(table.tier_set, table.format_slices, is_doubles)
        tier_set = self._apply_bans(tier_set, table)
        if self.mod:
            tier_set = self._apply_custom_tiers(tier_set, table)

        if not _FULL_DEX_FORMATS.match(self.format):
            tier_set = [
                row for row in tier_set
                if not (row[0] == "header" and row[1] == "DUber by technicality")
                and not (row[0] == "pokemon" and row[1].endswith("gmax"))
            ]
        return tier_set

    # ── Filters ───────────────────────────────────────────────────

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        if not filters or row[0] != "pokemon":
            return True
        species = self.dex.get_species(row[1])
        for kind, value in filters:
            if kind == "type":
                if to_id(value) not in {to_id(t) for t in species.types[:2]}:
                    return False
            elif kind == "type2":
                if to_id(species.card_type) != to_id(value):
                    return False
            elif kind == "attribute":
                if to_id(species.attribute) != to_id(value):
                    return False
            elif kind == "typing":
                if to_id(species.typing) != to_id(value):
                    return False
            elif kind == "level":
                if species.level is None or str(species.level) != str(value):
                    return False
            elif kind == "egggroup":
                if to_id(value) not in {to_id(g) for g in species.egg_groups[:2]}:
                    return False
            elif kind == "tier":
                if to_id(self.get_tier(species)) != to_id(value):
                    return False
            elif kind == "ability":
                if not self.dex.has_ability(species, value):
                    return False
            elif kind == "move":
                if not self.can_learn(species.id, to_id(value)):
                    return False
        return True

    # ── Sorting ───────────────────────────────────────────────────

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        dex = self.dex
        if sort_col in ("type2", "attribute", "typing"):
            card_dex = dex.for_mod("ygo")
            attr = "card_type" if sort_col == "type2" else sort_col
            return sorted(rows, key=lambda row: getattr(card_dex.get_species(row[1]), attr) or "",
                          reverse=reverse_sort)
        if sort_col in ("level", "attack", "defense"):
            card_dex = dex.for_mod("ygo")
            return sorted(rows, key=lambda row: -(getattr(card_dex.get_species(row[1]), sort_col) or 0),
                          reverse=reverse_sort)
        if sort_col in BASE_STATS:
            return sorted(rows, key=lambda row: -dex.get_species(row[1]).base_stats.get(sort_col, 0),
                          reverse=reverse_sort)
        if sort_col == "bst":
            def total(row: Row) -> int:
                stats = dex.get_species(row[1]).base_stats
                bst = sum(stats.get(stat, 0) for stat in BASE_STATS)
                if dex.gen == 1:
                    bst -= stats.get("spd", 0)
                return bst
            return sorted(rows, key=lambda row: -total(row), reverse=reverse_sort)
        if sort_col == "name":
            return sorted(rows, key=lambda row: row[1], reverse=reverse_sort)
        raise InvalidSortError(f"Cannot sort Pokémon by '{sort_col}'")
