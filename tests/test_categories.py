"""
Tests for dexsearch.core.categories — ability, item, type, move category
and card-attribute resolvers.
"""

import pytest
from dexsearch.core.categories import (
    AbilitySearch,
    CategorySearch,
    ItemSearch,
    LevelSearch,
    Type2Search,
    TypeSearch,
    TypingSearch,
)
from dexsearch.exceptions import InvalidFilterError, InvalidSortError


# =============================================================================
# Abilities
# =============================================================================

class TestAbilitySearch:
    """Per-species ability slots and the all-ability formats."""

    def test_regular_and_hidden_ability(self, game_data):
        rows = AbilitySearch("gen9ou", "pikachu", data=game_data).get_results()
        assert rows == [
            ("header", "Abilities"),
            ("ability", "static"),
            ("header", "Hidden Ability"),
            ("ability", "lightningrod"),
        ]

    def test_second_slot_is_listed(self, game_data):
        rows = AbilitySearch("gen9ou", "dragapult", data=game_data).get_results()
        assert rows[:3] == [("header", "Abilities"), ("ability", "clearbody"), ("ability", "infiltrator")]

    def test_mega_shows_note_and_base_abilities(self, game_data):
        rows = AbilitySearch("gen9ou", "charizardmegax", data=game_data).get_results()
        assert rows[0] == ("html", "Will be <strong>Tough Claws</strong> after Mega Evolving.")
        assert rows[1:3] == [("header", "Abilities"), ("ability", "blaze")]

    def test_special_event_ability(self, game_data):
        game_data.pokedex["snorlax"]["abilities"]["S"] = "Normalize"
        rows = AbilitySearch("gen9ou", "snorlax", data=game_data).get_results()
        assert rows[-2:] == [("header", "Special Event Ability"), ("ability", "normalize")]

    def test_almost_any_ability_grades_every_ability(self, game_data):
        rows = AbilitySearch("gen9almostanyability", "pikachu", data=game_data).get_results()
        good = rows[rows.index(("header", "Abilities")) + 1:rows.index(("header", "Situational Abilities"))]
        assert ("ability", "normalize") in good
        assert ("ability", "technician") in good
        unviable = rows[rows.index(("header", "Unviable Abilities")) + 1:]
        assert ("ability", "sandveil") in unviable

    def test_no_species_lists_every_ability(self, game_data):
        rows = AbilitySearch("gen9ou", data=game_data).get_results()
        assert len(rows) == len(game_data.abilities)

    def test_pokemon_filter(self, game_data):
        rows = AbilitySearch("gen9ou", data=game_data).get_results([("pokemon", "pikachu")])
        assert [row[1] for row in rows] == ["static", "lightningrod"]

    def test_cannot_sort(self, game_data):
        with pytest.raises(InvalidSortError):
            AbilitySearch("gen9ou", "pikachu", data=game_data).get_results(sort_col="name")


# =============================================================================
# Items
# =============================================================================

class TestItemSearch:
    """Item listings per generation and species."""

    def test_species_specific_items_come_first(self, game_data):
        rows = ItemSearch("gen9ou", "pikachu", data=game_data).get_results()
        assert rows == [
            ("header", "Specific to Pikachu"),
            ("item", "lightball"),
            ("header", "Items"),
            ("item", "leftovers"),
            ("item", "choicescarf"),
            ("item", "lightball"),
            ("item", "boosterenergy"),
        ]

    def test_past_items_are_kept_in_national_dex(self, game_data):
        rows = ItemSearch("gen9nationaldex", "charizard", data=game_data).get_results()
        assert rows[:2] == [("header", "Specific to Charizard"), ("item", "charizarditex")]

    def test_paradox_species_get_booster_energy(self, game_data):
        game_data.pokedex["garchomp"]["tags"] = ["Paradox"]
        rows = ItemSearch("gen9ou", "garchomp", data=game_data).get_results()
        assert rows[:2] == [("header", "Specific to Garchomp"), ("item", "boosterenergy")]

    def test_item_table_key(self, game_data):
        assert ItemSearch("gen9ou", data=game_data).item_table_key() == ""
        assert ItemSearch("gen8ou", data=game_data).item_table_key() == "gen8"
        assert ItemSearch("gen9nationaldex", data=game_data).item_table_key() == "gen9natdex"
        assert ItemSearch("gen8bdspou", data=game_data).item_table_key() == "gen8bdsp"
        assert ItemSearch("gen9testmodou", data=game_data).item_table_key() == "gen9testmod"

    def test_pokemon_filter_drops_other_species_items(self, game_data):
        rows = ItemSearch("gen9ou", data=game_data).get_results([("pokemon", "raichu")])
        assert ("item", "lightball") not in rows
        assert ("item", "leftovers") in rows


# =============================================================================
# Static listings
# =============================================================================

class TestStaticListings:
    """Types and move categories neither filter nor sort."""

    def test_types_in_chart_order(self, game_data):
        rows = TypeSearch("gen9ou", data=game_data).get_results()
        assert rows[0] == ("type", "fire")
        assert len(rows) == len(game_data.type_chart)

    def test_types_reject_filters(self, game_data):
        with pytest.raises(InvalidFilterError):
            TypeSearch("gen9ou", data=game_data).get_results([("type", "fire")])

    def test_move_categories(self, game_data):
        rows = CategorySearch("gen9ou", data=game_data).get_results()
        assert rows == [("category", "physical"), ("category", "special"), ("category", "status")]

    def test_move_categories_reject_sort(self, game_data):
        with pytest.raises(InvalidSortError):
            CategorySearch("gen9ou", data=game_data).get_results(sort_col="name")


# =============================================================================
# Card-game attributes
# =============================================================================

class TestCardAttributes:
    """The card-game sub-mode attribute tables."""

    def test_species_card_type(self, game_data):
        rows = Type2Search("", "darkmagician", data=game_data).get_results()
        assert rows == [("header", "Types"), ("type2", "spellcaster")]

    def test_species_typing(self, game_data):
        rows = TypingSearch("", "darkmagician", data=game_data).get_results()
        assert rows == [("header", "Attributes"), ("typing", "normal")]

    def test_species_level(self, game_data):
        rows = LevelSearch("", "darkmagician", data=game_data).get_results()
        assert rows == [("header", "Levels"), ("level", "7")]

    def test_level_table_without_species(self, game_data):
        rows = LevelSearch("", data=game_data).get_results()
        assert [row[1] for row in rows] == [str(level) for level in range(13)]

    def test_attribute_table_from_card_tables(self, game_data):
        rows = Type2Search("", data=game_data).get_results()
        assert rows == [("type2", "spellcaster"), ("type2", "dragon")]
