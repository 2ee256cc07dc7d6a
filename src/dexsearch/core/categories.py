"""
DexSearch Category Resolvers

The smaller typed resolvers: abilities, items, types, move categories,
and the four card-game attribute tables (type2, attribute, typing,
level).  Only abilities and items depend on the species being built;
types and move categories are static listings that accept neither
filters nor sorts.
"""

import logging
from typing import List, Sequence

from dexsearch.core.config import CategorySchema
from dexsearch.core.data import Row, to_id
from dexsearch.core.typed_search import Filter, TypedSearch
from dexsearch.exceptions import InvalidFilterError, InvalidSortError

logger = logging.getLogger(__name__)

# Abilities graded as good regardless of their stored rating.
ABILITY_RATING_OVERRIDES = {"normalize": 3}


def _no_sort(search: TypedSearch, sort_col: str) -> InvalidSortError:
    return InvalidSortError(f"{type(search).__name__} has no sortable column '{sort_col}'")


# =============================================================================
# Abilities
# =============================================================================

class AbilitySearch(TypedSearch):
    search_type = "ability"

    def get_table(self) -> dict:
        if not self.mod or self.mod_table is None:
            return self.data.abilities
        return self._merged_table(self.data.abilities, self.mod_table.override("fullAbilityName"))

    def get_default_results(self) -> List[Row]:
        return [("ability", ability_id) for ability_id in self.data.abilities]

    def _lists_every_ability(self) -> bool:
        fmt = self.format
        return (
            fmt == "almostanyability" or "aaa" in fmt or "metronomebattle" in fmt
            or "hackmons" in fmt or fmt.endswith("bh")
        )

    def get_base_results(self) -> List[Row]:
        if not self.species:
            return self.get_default_results()
        dex = self.dex
        species = dex.get_species(self.species)
        mega_note = None
        if species.is_mega:
            mega_note = ("html", f"Will be <strong>{species.abilities.get('0', '')}</strong> after Mega Evolving.")
            species = dex.get_species(species.base_species)

        if self._lists_every_ability():
            graded = {"Abilities": [], "Situational Abilities": [], "Unviable Abilities": []}
            ability_ids = []
            for ability_id in self.get_table():
                ability = dex.get_ability(ability_id)
                if ability.is_nonstandard or ability.gen > dex.gen:
                    continue
                ability_ids.append(ability.id)
            for ability_id in sorted(ability_ids):
                rating = ABILITY_RATING_OVERRIDES.get(ability_id, dex.get_ability(ability_id).rating)
                if rating >= 3:
                    graded["Abilities"].append(("ability", ability_id))
                elif rating >= 2:
                    graded["Situational Abilities"].append(("ability", ability_id))
                else:
                    graded["Unviable Abilities"].append(("ability", ability_id))
            results: List[Row] = [mega_note] if mega_note else []
            for header, rows in graded.items():
                results.append(("header", header))
                results.extend(rows)
            return results

        abilities = species.abilities
        results = [mega_note] if mega_note else []
        results.append(("header", "Abilities"))
        results.append(("ability", to_id(abilities.get("0"))))
        if abilities.get("1"):
            results.append(("ability", to_id(abilities["1"])))
        if abilities.get("H"):
            results += [("header", "Hidden Ability"), ("ability", to_id(abilities["H"]))]
        if abilities.get("S"):
            results += [("header", "Special Event Ability"), ("ability", to_id(abilities["S"]))]
        return results

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        if not filters or row[0] != "ability":
            return True
        for kind, value in filters:
            if kind == "pokemon" and not self.dex.has_ability(self.dex.get_species(value), row[1]):
                return False
        return True

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise _no_sort(self, sort_col)


# =============================================================================
# Items
# =============================================================================

class ItemSearch(TypedSearch):
    search_type = "item"

    def get_table(self) -> dict:
        if not self.mod or self.mod_table is None:
            return self.data.items
        return self._merged_table(self.data.items, self.mod_table.override("overrideItemInfo"))

    def item_table_key(self) -> str:
        """Teambuilder table whose item list applies, ``""`` for the root."""
        gen = self.dex.gen
        if self.mod:
            return self.mod
        if self.context.type_startswith("bdsp"):
            return "gen8bdsp"
        if self.format_type == "natdex":
            return f"gen{gen}natdex"
        if self.format_type == "metronome":
            return f"gen{gen}metronome"
        if gen < 9:
            return f"gen{gen}"
        return ""

    def get_default_results(self) -> List[Row]:
        key = self.item_table_key()
        table = self.data.table(key) if key else self.data.root_table
        if table is None:
            logger.debug(f"No item table '{key}'; falling back to the current generation")
            table = self.data.root_table
        return list(table.item_set)

    def get_base_results(self) -> List[Row]:
        results = self.get_default_results()
        dex = self.dex
        species = dex.get_species(self.species) if self.species else None
        specific: List[Row] = []
        # Index 0 is the leading header of every stored item list.
        for i in range(len(results) - 1, 0, -1):
            row = results[i]
            if row[0] != "item":
                continue
            item = dex.get_item(row[1])
            if not item.exists or item.is_nonstandard:
                if item.is_nonstandard != "Past" or self.format_type != "natdex":
                    del results[i]
                    continue
            if species is None or not species.exists:
                continue
            if item.item_user and species.name in item.item_user:
                specific.append(row)
            if row[1] == "boosterenergy" and "Paradox" in species.tags:
                specific.append(row)
        if specific:
            return [("header", f"Specific to {species.name}"), *specific, *results]
        return results

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        if not filters or row[0] != "item":
            return True
        item = self.dex.get_item(row[1])
        for kind, value in filters:
            if kind == "pokemon" and item.item_user:
                if self.dex.get_species(value).name not in item.item_user:
                    return False
        return True

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise _no_sort(self, sort_col)


# =============================================================================
# Static listings
# =============================================================================

class TypeSearch(TypedSearch):
    search_type = "type"

    def get_table(self) -> dict:
        if not self.mod or self.mod_table is None:
            return self.data.type_chart
        return self._merged_table(self.data.type_chart, self.mod_table.override("overrideTypeChart"))

    def get_default_results(self) -> List[Row]:
        return [("type", type_id) for type_id in self.data.type_chart]

    def get_base_results(self) -> List[Row]:
        return self.get_default_results()

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        raise InvalidFilterError("Types cannot be filtered")

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise _no_sort(self, sort_col)


class CategorySearch(TypedSearch):
    search_type = "category"

    def get_table(self) -> dict:
        return {category: 1 for category in CategorySchema.MOVE_CATEGORIES}

    def get_default_results(self) -> List[Row]:
        return [("category", category) for category in CategorySchema.MOVE_CATEGORIES]

    def get_base_results(self) -> List[Row]:
        return self.get_default_results()

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        raise InvalidFilterError("Move categories cannot be filtered")

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise _no_sort(self, sort_col)


# =============================================================================
# Card-game attributes
# =============================================================================

class CardAttributeSearch(TypedSearch):
    """
    One card attribute of the species being built, or the whole table.

    Subclasses name the ``card_tables`` key (the search type), the
    :class:`~dexsearch.core.data.Species` field holding the value and the
    header shown above it.
    """

    species_field = ""
    header = ""

    def get_table(self) -> dict:
        return self.data.card_tables.get(self.search_type) or {}

    def get_default_results(self) -> List[Row]:
        return [(self.search_type, str(entry_id)) for entry_id in self.get_table()]

    def value_of(self, species) -> str:
        return to_id(getattr(species, self.species_field))

    def get_base_results(self) -> List[Row]:
        if not self.species:
            return self.get_default_results()
        species = self.dex.get_species(self.species)
        return [("header", self.header), (self.search_type, self.value_of(species))]

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        if not filters or row[0] != self.search_type:
            return True
        for kind, value in filters:
            if kind == "pokemon" and to_id(row[1]) != self.value_of(self.dex.get_species(value)):
                return False
        return True

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        raise _no_sort(self, sort_col)


class Type2Search(CardAttributeSearch):
    search_type = "type2"
    species_field = "card_type"
    header = "Types"


class AttributeSearch(CardAttributeSearch):
    search_type = "attribute"
    species_field = "attribute"
    header = "Attributes"


class TypingSearch(CardAttributeSearch):
    search_type = "typing"
    species_field = "typing"
    header = "Attributes"


class LevelSearch(CardAttributeSearch):
    search_type = "level"
    species_field = "level"
    header = "Levels"

    def get_table(self) -> dict:
        return {str(level): level for level in CategorySchema.CARD_LEVELS}

    def value_of(self, species) -> str:
        return "" if species.level is None else str(species.level)
