"""
Shared fixtures for the DexSearch test suite.

Every test runs against a small synthetic data set: a handful of species,
moves, items and abilities, one gen 9 tier table, and one mod.  The
search index is built from those tables by the real index builder.
"""

import json
import sys
from pathlib import Path

import pytest

# Ensure the src/ directory is on the import path so that
# dexsearch.core.config / dexsearch.core.search / etc. can be imported.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from dexsearch.core.config import SearchConfig  # noqa: E402
from dexsearch.core.data import GameData  # noqa: E402
from dexsearch.core.indexer import SearchIndexBuilder  # noqa: E402


# =============================================================================
# Synthetic tables
# =============================================================================

def _species(name, num, types, abilities, stats=None, **extra):
    record = {"name": name, "num": num, "types": types, "abilities": abilities}
    if stats:
        record["baseStats"] = dict(zip(("hp", "atk", "def", "spa", "spd", "spe"), stats))
    record.update(extra)
    return record


def _move(name, type_, category, power=0, **extra):
    record = {"name": name, "type": type_, "category": category, "basePower": power,
              "accuracy": 100, "pp": 10}
    record.update(extra)
    return record


def build_tables() -> dict:
    """Fresh keyword arguments for :class:`GameData` (safe to mutate)."""
    pokedex = {
        "bulbasaur": _species(
            "Bulbasaur", 1, ["Grass", "Poison"], {"0": "Overgrow", "H": "Chlorophyll"},
            (45, 49, 49, 65, 65, 45), eggGroups=["Monster", "Grass"], tier="LC"),
        "pikachu": _species(
            "Pikachu", 25, ["Electric"], {"0": "Static", "H": "Lightning Rod"},
            (35, 55, 40, 50, 50, 90), eggGroups=["Field", "Fairy"], tier="ZU"),
        "raichu": _species(
            "Raichu", 26, ["Electric"], {"0": "Static", "H": "Lightning Rod"},
            (60, 90, 55, 90, 80, 110), eggGroups=["Field", "Fairy"], prevo="Pikachu", tier="OU"),
        "charizard": _species(
            "Charizard", 6, ["Fire", "Flying"], {"0": "Blaze", "H": "Solar Power"},
            (78, 84, 78, 109, 85, 100), eggGroups=["Monster", "Dragon"],
            otherFormes=["Charizard-Mega-X"], tier="OU"),
        "charizardmegax": _species(
            "Charizard-Mega-X", 6, ["Fire", "Dragon"], {"0": "Tough Claws"},
            (78, 130, 111, 130, 85, 100), baseSpecies="Charizard", forme="Mega-X"),
        "dragapult": _species(
            "Dragapult", 887, ["Dragon", "Ghost"],
            {"0": "Clear Body", "1": "Infiltrator", "H": "Cursed Body"},
            (88, 120, 75, 100, 75, 142), eggGroups=["Amorphous", "Dragon"], tier="OU"),
        "garchomp": _species(
            "Garchomp", 445, ["Dragon", "Ground"], {"0": "Sand Veil", "H": "Rough Skin"},
            (108, 130, 95, 80, 85, 102), eggGroups=["Monster", "Dragon"], tier="OU"),
        "mewtwo": _species(
            "Mewtwo", 150, ["Psychic"], {"0": "Pressure"},
            (106, 110, 90, 154, 90, 130), eggGroups=["Undiscovered"], tier="Uber"),
        "smeargle": _species(
            "Smeargle", 235, ["Normal"], {"0": "Own Tempo", "1": "Technician", "H": "Moody"},
            (55, 20, 35, 20, 45, 75), eggGroups=["Field"], tier="PU"),
        "snorlax": _species(
            "Snorlax", 143, ["Normal"], {"0": "Pressure"},
            (160, 110, 65, 65, 110, 30), eggGroups=["Monster"], tier="UU"),
        "darkmagician": {
            "name": "Dark Magician", "types": ["Dark"], "type": "Spellcaster",
            "attribute": "Dark", "typing": "Normal", "level": 7,
            "attack": 2500, "defense": 2100,
        },
    }
    moves = {
        "tackle": _move("Tackle", "Normal", "Physical", 40),
        "hyperbeam": _move("Hyper Beam", "Normal", "Special", 150, flags={"recharge": 1}),
        "thunderbolt": _move("Thunderbolt", "Electric", "Special", 90),
        "thunderwave": _move("Thunder Wave", "Electric", "Status", 0, accuracy=90, status="par"),
        "quickattack": _move("Quick Attack", "Normal", "Physical", 40),
        "thunderpunch": _move("Thunder Punch", "Electric", "Physical", 75),
        "flamethrower": _move("Flamethrower", "Fire", "Special", 90),
        "fireblast": _move("Fire Blast", "Fire", "Special", 110, accuracy=85, pp=5),
        "sacredfire": _move("Sacred Fire", "Fire", "Physical", 100, accuracy=95, pp=5),
        "dragondance": _move("Dragon Dance", "Dragon", "Status", 0, accuracy=True),
        "sketch": _move("Sketch", "Normal", "Status", 0, accuracy=True, noSketch=True),
        "recover": _move("Recover", "Normal", "Status", 0, accuracy=True),
        "hiddenpower": _move("Hidden Power", "Normal", "Special", 60, isNonstandard="Past"),
        "paleowave": _move("Paleo Wave", "Rock", "Special", 85, isNonstandard="CAP"),
        "magikarpsrevenge": _move("Magikarp's Revenge", "Water", "Physical", 120, isNonstandard="Custom"),
    }
    items = {
        "leftovers": {"name": "Leftovers"},
        "choicescarf": {"name": "Choice Scarf"},
        "lightball": {"name": "Light Ball", "itemUser": ["Pikachu"]},
        "boosterenergy": {"name": "Booster Energy"},
        "charizarditex": {"name": "Charizardite X", "itemUser": ["Charizard"], "isNonstandard": "Past"},
    }
    abilities = {
        "overgrow": {"name": "Overgrow", "rating": 2},
        "chlorophyll": {"name": "Chlorophyll", "rating": 3},
        "static": {"name": "Static", "rating": 2},
        "lightningrod": {"name": "Lightning Rod", "rating": 1.5},
        "blaze": {"name": "Blaze", "rating": 2},
        "solarpower": {"name": "Solar Power", "rating": 2},
        "toughclaws": {"name": "Tough Claws", "rating": 3.5},
        "clearbody": {"name": "Clear Body", "rating": 2},
        "infiltrator": {"name": "Infiltrator", "rating": 2.5},
        "cursedbody": {"name": "Cursed Body", "rating": 2},
        "sandveil": {"name": "Sand Veil", "rating": 1.5},
        "roughskin": {"name": "Rough Skin", "rating": 2.5},
        "pressure": {"name": "Pressure", "rating": 2.5},
        "owntempo": {"name": "Own Tempo", "rating": 1.5},
        "technician": {"name": "Technician", "rating": 3.5},
        "moody": {"name": "Moody", "rating": 5},
        "normalize": {"name": "Normalize", "rating": 0.5},
    }
    type_chart = {
        type_id: {}
        for type_id in ("fire", "electric", "normal", "dragon", "ghost", "ground",
                        "psychic", "grass", "poison", "flying", "water")
    }
    teambuilder = {
        "tiers": [["header", "OU"], "dragapult", "garchomp", "charizard", "raichu",
                  ["header", "UU"], "pikachu", "bulbasaur", ["header", "Uber"], "mewtwo"],
        "formatSlices": {"OU": 0, "UU": 5, "Uber": 8},
        "overrideTier": {"pikachu": "PU", "charizard": "OU"},
        "items": [["header", "Items"], "leftovers", "choicescarf", "lightball",
                  "boosterenergy", "charizarditex"],
        "learnsets": {
            "pikachu": {"tackle": "123456789", "hyperbeam": "3456789", "thunderbolt": "9M",
                        "thunderwave": "9M", "quickattack": "9L1"},
            "raichu": {"thunderpunch": "9M"},
            "charizard": {"flamethrower": "9M", "fireblast": "9M", "dragondance": "9M",
                          "hiddenpower": "7M"},
            "smeargle": {"sketch": "9L1"},
            "snorlax": {"tackle": "123456789", "hyperbeam": "3456789"},
        },
        "gen9testmod": {
            "tiers": [["header", "OU"], "snorlax", "smeargle"],
            "formatSlices": {"OU": 0},
            "overrideMoveInfo": {"tackle": {"viable": True}},
        },
    }
    return {
        "pokedex": pokedex,
        "moves": moves,
        "items": items,
        "abilities": abilities,
        "type_chart": type_chart,
        "aliases": {"zard": "Charizard", "tbolt": "Thunderbolt", "hp": "Hidden Power"},
        "teambuilder": teambuilder,
        "mod_config": {"gen9testmod": {"formats": {"gen9testmodou": {"teambuilderFormat": "OU"}}}},
        "card_tables": {
            "type2": {"spellcaster": "Spellcaster", "dragon": "Dragon"},
            "attribute": {"dark": "Dark", "light": "Light"},
            "typing": {"normal": "Normal", "effect": "Effect"},
        },
        "gen_data": {7: {"moves": {"hiddenpower": {"isNonstandard": None}}}},
    }


def index_game_data(data: GameData) -> GameData:
    """Build the search index for *data* in place and return it."""
    index = SearchIndexBuilder(data).build()
    data.search_index, data.search_index_offset = index.to_raw()
    return data


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def game_data() -> GameData:
    """Synthetic game data with a freshly built search index."""
    return index_game_data(GameData(**build_tables()))


@pytest.fixture
def unindexed_data() -> GameData:
    """The same tables without a search index."""
    return GameData(**build_tables())


@pytest.fixture
def config() -> SearchConfig:
    return SearchConfig()


@pytest.fixture
def data_dir(tmp_path: Path, game_data: GameData) -> Path:
    """The synthetic tables (index included) written out as JSON files."""
    target = tmp_path / "data"
    target.mkdir()
    for attr, filename in GameData.FILES.items():
        table = getattr(game_data, attr)
        (target / filename).write_text(json.dumps(table), encoding="utf-8")
    return target
