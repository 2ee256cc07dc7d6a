"""
Tests for dexsearch.core.search — DexSearch state, text search,
instafilter, and ResultFormatter.
"""

import json

import pytest
from dexsearch.core.config import SearchConfig
from dexsearch.core.data import Dex, GameData
from dexsearch.core.search import NEAR_MATCH_ROW, DexSearch, ResultFormatter


# =============================================================================
# Text search
# =============================================================================

class TestTextSearch:
    """Prefix, alias and fuzzy passes over the index."""

    def test_fuzzy_fallback_when_nothing_matches(self, game_data):
        search = DexSearch(data=game_data)
        assert search.find("pikablu")
        assert search.results == [
            NEAR_MATCH_ROW,
            ("header", "Pokémon"),
            ("pokemon", "pikachu", 0, 0),
            ("header", "Type"),
            ("type", "poison", 0, 0),
        ]
        assert not search.exact_match

    def test_literal_match_before_alias_match(self, game_data):
        search = DexSearch("move", "gen9ou", "charizard", data=game_data)
        search.find("fire")
        assert search.results[:3] == [
            ("header", "Moves"),
            ("move", "fireblast", 0, 4),
            ("move", "sacredfire", 7, 11),
        ]
        assert search.results[3:5] == [("header", "Type"), ("type", "fire", 0, 4)]
        assert search.exact_match

    def test_instafilter_expands_a_lone_type_hit(self, game_data):
        search = DexSearch("move", "gen9ou", "charizard", data=game_data)
        search.find("fire")
        assert search.results[5:] == [
            ("header", "Fire-type moves"),
            ("move", "fireblast"),
            ("move", "flamethrower"),
            ("move", "sacredfire"),
        ]

    def test_instafilter_lists_legal_species_first(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("electric")
        assert search.results == [
            ("header", "Type"),
            ("type", "electric", 0, 8),
            ("header", "Electric-type Pokémon"),
            ("pokemon", "raichu"),
            ("pokemon", "pikachu"),
        ]

    def test_instafilter_on_ability(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("static")
        assert search.results[2:] == [
            ("header", "Static Pokémon"),
            ("pokemon", "raichu"),
            ("pokemon", "pikachu"),
        ]

    def test_instafilter_respects_threshold(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data, config=SearchConfig(instafilter_threshold=1))
        search.find("electric")
        assert search.results == [("header", "Type"), ("type", "electric", 0, 8)]

    def test_type_suffix_restricts_to_types(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("fire type")
        assert search.results == [
            ("header", "Type"),
            ("type", "fire", 0, 4),
            ("header", "Fire-type Pokémon"),
            ("pokemon", "charizard"),
            ("pokemon", "charizardmegax"),
        ]

    def test_single_character_only_matches_active_category(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("p")
        assert search.results == [("header", "Pokémon"), ("pokemon", "pikachu", 0, 1)]

    def test_literal_alias_searches_its_target(self, game_data):
        search = DexSearch(data=game_data)
        search.find("zard")
        assert search.results == [
            ("header", "Pokémon"),
            ("pokemon", "charizard", 0, 9),
            ("pokemon", "charizardmegax", 0, 9),
            ("header", "Items"),
            ("item", "charizarditex", 0, 9),
        ]
        assert search.exact_match

    def test_exact_alias_target_shows_one_entry(self, game_data):
        search = DexSearch(data=game_data)
        search.find("hp")
        assert search.results == [("header", "Moves"), ("move", "hiddenpower", 0, 12)]

    def test_alias_highlight_maps_onto_display_name(self, game_data):
        search = DexSearch(data=game_data)
        search.find("megax")
        assert search.results == [("header", "Pokémon"), ("pokemon", "charizardmegax", 10, 16)]
        assert "Charizard-Mega-X"[10:16] == "Mega-X"

    def test_mega_prefix_does_not_list_every_mega(self, game_data):
        search = DexSearch(data=game_data)
        search.find("meg")
        assert search.results == []

    def test_ability_category_hides_other_categories(self, game_data):
        search = DexSearch("ability", "gen9ou", "charizard", data=game_data)
        search.find("power")
        assert search.results == [("header", "Abilities"), ("ability", "solarpower", 6, 11)]

    def test_legal_hits_come_before_earlier_illegal_hits(self, game_data):
        tiers = game_data.teambuilder["tiers"]
        tiers[tiers.index("charizard")] = "charizardmegax"
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("charizard")
        assert search.results == [
            ("header", "Pokémon"),
            ("pokemon", "charizardmegax", 0, 9),
            ("pokemon", "charizard", 0, 9),
        ]
        assert search.illegal_label("charizard") == "Illegal"
        assert search.illegal_label("charizardmegax") is None

    def test_blank_key_ends_every_pass(self, game_data):
        game_data.search_index = [
            ["bulbasaur", "pokemon"],
            ["charizard", "pokemon"],
            ["", "pokemon"],
            ["zardtier", "tier"],
        ]
        game_data.search_index_offset = []
        search = DexSearch(data=game_data)
        search.find("zard")
        assert search.results == [("header", "Pokémon"), ("pokemon", "charizard", 0, 9)]

    def test_missing_entries_are_skipped(self, game_data):
        game_data.moves["sacredfire"]["exists"] = False
        search = DexSearch(data=game_data)
        search.find("fire")
        assert ("move", "sacredfire", 7, 11) not in search.results
        assert ("move", "fireblast", 0, 4) in search.results

    def test_empty_index(self, unindexed_data):
        search = DexSearch(data=unindexed_data)
        search.find("pika")
        assert search.results == []

    def test_find_caches_normalized_query(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        assert search.find("Pika")
        assert not search.find("pika!")
        assert search.find("raichu")


# =============================================================================
# State
# =============================================================================

class TestState:
    """Filters, sort toggling and category changes."""

    def test_empty_query_returns_structural_listing(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("")
        assert search.results[1] == ("header", "OU")

    def test_no_category_empty_query(self, game_data):
        search = DexSearch(data=game_data)
        search.find("")
        assert search.results == []

    def test_add_filter_round_trip(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("")
        before = list(search.results)
        assert search.add_filter(("type", "Fire"))
        search.find("")
        assert search.results == [
            ("sortpokemon", ""),
            ("header", "OU"),
            ("pokemon", "charizard"),
            ("header", "Illegal results"),
            ("pokemon", "charizardmegax"),
        ]
        assert search.remove_filter(("type", "Fire"))
        search.find("")
        assert search.results == before

    def test_add_filter_is_idempotent(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.add_filter(("move", "Thunderbolt"))
        search.add_filter(("move", "thunderbolt"))
        assert search.filters == [("move", "thunderbolt")]

    def test_add_filter_rejects_unknown_kind(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        assert not search.add_filter(("weight", "heavy"))
        assert search.filters is None

    def test_add_filter_rejects_unfilterable_category(self, game_data):
        search = DexSearch("type", "gen9ou", data=game_data)
        assert not search.add_filter(("type", "fire"))

    def test_filter_on_sort_column_clears_the_sort(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.toggle_sort("type")
        search.add_filter(("type", "Fire"))
        assert search.sort_col is None

    def test_remove_last_filter(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.add_filter(("type", "Fire"))
        search.add_filter(("tier", "OU"))
        assert search.remove_filter()
        assert search.filters == [("type", "Fire")]
        assert search.remove_filter()
        assert search.filters is None
        assert not search.remove_filter()

    def test_toggle_sort_cycles(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.toggle_sort("spe")
        assert (search.sort_col, search.reverse_sort) == ("spe", False)
        search.toggle_sort("spe")
        assert (search.sort_col, search.reverse_sort) == ("spe", True)
        search.toggle_sort("spe")
        assert (search.sort_col, search.reverse_sort) == (None, False)

    def test_sorted_listing(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.toggle_sort("spe")
        search.find("")
        assert search.results[1:3] == [("pokemon", "dragapult"), ("pokemon", "raichu")]

    def test_same_category_keeps_filters(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.add_filter(("type", "Fire"))
        search.set_category("pokemon", "gen9uu")
        assert search.filters == [("type", "Fire")]
        search.set_category("move", "gen9ou")
        assert search.filters is None

    def test_labels(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        search.find("")
        assert search.illegal_label("pikachu") == "Illegal"
        assert search.illegal_label("raichu") is None
        assert search.filter_label("type") == "Filter"
        assert search.filter_label("pokemon") is None

    def test_get_tier(self, game_data):
        search = DexSearch("pokemon", "gen9ou", data=game_data)
        assert search.get_tier(Dex(game_data).get_species("pikachu")) == "PU"
        assert DexSearch(data=game_data).get_tier(Dex(game_data).get_species("pikachu")) == ""

    def test_unknown_category_has_no_resolver(self, game_data):
        search = DexSearch("article", data=game_data)
        assert search.typed_search is None
        assert search.category == ""


# =============================================================================
# Dex lookups
# =============================================================================

class TestDex:
    """Generation patches, aliases and missing ids."""

    def test_alias_resolves_to_target(self, game_data):
        assert Dex(game_data).get_move("tbolt").id == "thunderbolt"

    def test_generation_patch(self, game_data):
        assert Dex(game_data).get_move("hiddenpower").is_nonstandard == "Past"
        assert Dex(game_data).for_gen(7).get_move("hiddenpower").is_nonstandard is None

    def test_unknown_id_does_not_exist(self, game_data):
        species = Dex(game_data).get_species("missingmon")
        assert not species.exists
        assert species.types == ["???"]

    def test_generation_is_inferred(self, game_data):
        dex = Dex(game_data)
        assert dex.get_species("dragapult").gen == 8
        assert dex.get_species("charizardmegax").gen == 6
        assert dex.get_species("charizardmegax").is_mega

    def test_mod_override_record(self, game_data):
        move = Dex(game_data).for_mod("gen9testmod").get_move("tackle")
        assert move.viable is True
        assert Dex(game_data).get_move("tackle").viable is None

    def test_type_exists_sees_mod_types(self, game_data):
        game_data.teambuilder["gen9testmod"]["overrideTypeChart"] = {"stellar": {}}
        assert Dex(game_data).type_exists("Fire")
        assert not Dex(game_data).type_exists("stellar")
        assert Dex(game_data).for_mod("gen9testmod").type_exists("Stellar")

    def test_from_directory_missing_files_are_empty(self, tmp_path):
        data = GameData.from_directory(tmp_path)
        assert data.pokedex == {}
        assert data.search_index == []


# =============================================================================
# ResultFormatter
# =============================================================================

class TestResultFormatter:
    """Console, JSON and compact rendering of result rows."""

    ROWS = [
        NEAR_MATCH_ROW,
        ("header", "Pokémon"),
        ("pokemon", "pikachu", 0, 4),
        ("sortpokemon", ""),
        ("type", "electric"),
    ]

    def test_console_empty(self):
        assert "No results found." in ResultFormatter.format_console([])

    def test_console_highlights_match(self):
        text = ResultFormatter.format_console(self.ROWS, query="pika")
        assert "DEXSEARCH — 2 results for 'pika'" in text
        assert "[pika]chu" in text
        assert "No exact match found." in text
        assert "<em>" not in text

    def test_json(self):
        objs = json.loads(ResultFormatter.format_json(self.ROWS))
        assert objs[1] == {"header": "Pokémon"}
        assert objs[2] == {"category": "pokemon", "id": "pikachu", "match": [0, 4]}
        assert objs[3] == {"category": "type", "id": "electric"}
        assert len(objs) == 4

    def test_compact(self):
        assert ResultFormatter.format_compact(self.ROWS) == "pokemon:pikachu\ntype:electric"


@pytest.fixture
def fire_search(game_data):
    return DexSearch("move", "gen9ou", "charizard", data=game_data)


def test_results_are_compacted(fire_search):
    fire_search.find("fire")
    kinds = [row[0] for row in fire_search.results]
    assert kinds[-1] != "header"
    assert all(not (a == b == "header") for a, b in zip(kinds, kinds[1:]))
