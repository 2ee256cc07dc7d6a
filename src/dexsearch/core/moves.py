"""
DexSearch Move Resolver

Lists the moves a species can use in a format by walking its learnset
chain (own learnset, then battle-only base, forme-change source and
prevolutions), then widens the list for Sketch, Hackmons, STABmons and
Metronome-style formats.  Moves are split into "Moves" and "Usually
useless moves" by :meth:`MoveSearch.move_is_not_useless`, a
deterministic heuristic that encodes which moves are worth showing
first given the species, the other learnable moves, and the ability and
item already picked.
"""

import logging
import re
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from dexsearch.core.config import CategorySchema
from dexsearch.core.data import Dex, FormatTable, PokemonSet, Row, Species, to_id
from dexsearch.core.typed_search import REGION_BORN_CODES, TRADEBACKS_MODS, Filter, TypedSearch
from dexsearch.exceptions import InvalidSortError

logger = logging.getLogger(__name__)


# =============================================================================
# Curated move lists
# =============================================================================

GOOD_STATUS_MOVES = frozenset({
    'acidarmor', 'agility', 'aromatherapy', 'auroraveil', 'autotomize', 'banefulbunker', 'batonpass',
    'bellydrum', 'bulkup', 'burningbulwark', 'calmmind', 'chillyreception', 'clangoroussoul', 'coil',
    'cottonguard', 'courtchange', 'curse', 'defog', 'destinybond', 'detect', 'disable', 'dragondance',
    'encore', 'extremeevoboost', 'filletaway', 'geomancy', 'glare', 'haze', 'healbell', 'healingwish',
    'healorder', 'heartswap', 'honeclaws', 'kingsshield', 'leechseed', 'lightscreen', 'lovelykiss',
    'lunardance', 'magiccoat', 'maxguard', 'memento', 'milkdrink', 'moonlight', 'morningsun',
    'nastyplot', 'naturesmadness', 'noretreat', 'obstruct', 'painsplit', 'partingshot', 'perishsong',
    'protect', 'quiverdance', 'recover', 'reflect', 'reflecttype', 'rest', 'revivalblessing', 'roar',
    'rockpolish', 'roost', 'shedtail', 'shellsmash', 'shiftgear', 'shoreup', 'silktrap', 'slackoff',
    'sleeppowder', 'sleeptalk', 'softboiled', 'spikes', 'spikyshield', 'spore', 'stealthrock',
    'stickyweb', 'strengthsap', 'substitute', 'switcheroo', 'swordsdance', 'synthesis', 'tailglow',
    'tailwind', 'taunt', 'thunderwave', 'tidyup', 'toxic', 'transform', 'trick', 'victorydance',
    'whirlwind', 'willowisp', 'wish', 'yawn',
})

GOOD_WEAK_MOVES = frozenset({
    'accelerock', 'acrobatics', 'aquacutter', 'avalanche', 'barbbarrage', 'bonemerang', 'bouncybubble',
    'bulletpunch', 'buzzybuzz', 'ceaselessedge', 'circlethrow', 'clearsmog', 'doubleironbash',
    'dragondarts', 'dragontail', 'drainingkiss', 'endeavor', 'facade', 'firefang', 'flipturn',
    'flowertrick', 'freezedry', 'frustration', 'geargrind', 'grassknot', 'gyroball', 'icefang',
    'iceshard', 'iciclespear', 'infernalparade', 'knockoff', 'lastrespects', 'lowkick', 'machpunch',
    'mortalspin', 'mysticalpower', 'naturesmadness', 'nightshade', 'nuzzle', 'pikapapow',
    'populationbomb', 'psychocut', 'psyshieldbash', 'pursuit', 'quickattack', 'ragefist', 'rapidspin',
    'return', 'rockblast', 'ruination', 'saltcure', 'scorchingsands', 'seismictoss', 'shadowclaw',
    'shadowsneak', 'sizzlyslide', 'stoneaxe', 'storedpower', 'stormthrow', 'suckerpunch', 'superfang',
    'surgingstrikes', 'tachyoncutter', 'tailslap', 'thunderclap', 'tripleaxel', 'tripledive',
    'twinbeam', 'uturn', 'veeveevolley', 'voltswitch', 'watershuriken', 'weatherball',
})

BAD_STRONG_MOVES = frozenset({
    'belch', 'burnup', 'crushclaw', 'dragonrush', 'dreameater', 'eggbomb', 'firepledge', 'flyingpress',
    'grasspledge', 'hyperbeam', 'hyperfang', 'hyperspacehole', 'jawlock', 'landswrath', 'megakick',
    'megapunch', 'mistyexplosion', 'muddywater', 'nightdaze', 'pollenpuff', 'rockclimb', 'selfdestruct',
    'shelltrap', 'skyuppercut', 'slam', 'strength', 'submission', 'synchronoise', 'takedown', 'thrash',
    'uproar', 'waterpledge',
})

GOOD_DOUBLES_MOVES = frozenset({
    'allyswitch', 'bulldoze', 'coaching', 'electroweb', 'faketears', 'fling', 'followme', 'healpulse',
    'helpinghand', 'junglehealing', 'lifedew', 'lunarblessing', 'muddywater', 'pollenpuff', 'psychup',
    'ragepowder', 'safeguard', 'skillswap', 'snipeshot', 'wideguard',
})

GEN1_USEFUL = frozenset({
    'acidarmor', 'amnesia', 'barrier', 'bind', 'blizzard', 'clamp', 'confuseray', 'counter', 'firespin',
    'growth', 'headbutt', 'hyperbeam', 'mirrormove', 'pinmissile', 'razorleaf', 'sing', 'slash',
    'sludge', 'twineedle', 'wrap',
})

GEN1_USELESS = frozenset({
    'disable', 'haze', 'leechseed', 'quickattack', 'roar', 'thunder', 'toxic', 'triattack', 'waterfall',
    'whirlwind',
})

# Gen 1 moves only worth showing when none of the listed stronger moves is known.
GEN1_REDUNDANT_WITH = {
    'bubblebeam': ('surf', 'blizzard'),
    'doubleedge': ('bodyslam',),
    'doublekick': ('submission',),
    'firepunch': ('fireblast',),
    'megadrain': ('razorleaf', 'surf'),
    'megakick': ('hyperbeam',),
    'reflect': ('barrier', 'acidarmor'),
    'stomp': ('headbutt',),
    'submission': ('highjumpkick',),
    'thunderpunch': ('thunderbolt',),
    'triattack': ('bodyslam',),
}

# Mega stones whose Mega Evolution has an ability the move rules care about.
MEGA_STONE_ABILITIES = {
    'pidgeotite': 'noguard',
    'blastoisinite': 'megalauncher',
    'heracronite': 'skilllink',
    'cameruptite': 'sheerforce',
    'aerodactylite': 'toughclaws',
    'charizardmegax': 'toughclaws',
    'glalitite': 'refrigerate',
}

# Variable-power moves, ranked for the power sort.
POWER_TABLE = {
    'return': 102, 'frustration': 102, 'spitup': 300, 'trumpcard': 200, 'naturalgift': 80,
    'grassknot': 120, 'lowkick': 120, 'gyroball': 150, 'electroball': 150, 'flail': 200,
    'reversal': 200, 'present': 120, 'wringout': 120, 'crushgrip': 120, 'heatcrash': 120,
    'heavyslam': 120, 'fling': 130, 'magnitude': 150, 'beatup': 24, 'punishment': 1020,
    'psywave': 1250, 'nightshade': 1200, 'seismictoss': 1200, 'dragonrage': 1140, 'sonicboom': 1120,
    'superfang': 1350, 'endeavor': 1399, 'sheercold': 1501, 'fissure': 1500, 'horndrill': 1500,
    'guillotine': 1500,
}

# Learnset entries dropped from a DLC snapshot: (table with the list, applies to format type).
NONSTANDARD_MOVE_RULES = (
    ("gen8dlc1", lambda format_type: format_type.startswith("dlc1")),
    ("gen9predlc", lambda format_type: "predlc" in format_type and format_type != "predlcnatdex"),
    ("gen9dlc1", lambda format_type: "svdlc1" in format_type and format_type != "svdlc1natdex"),
)

EXCLUDED_STAB_FORMES = frozenset({
    'Alola', 'Alola-Totem', 'Galar', 'Galar-Zen', 'Hisui', 'Paldea', 'Paldea-Combat', 'Paldea-Blaze',
    'Paldea-Aqua',
})

_BATTLE_FACILITY = re.compile(r"^battle(spot|stadium|festival)")


# =============================================================================
# Usefulness rules
# =============================================================================

class UsefulnessCheck(NamedTuple):
    """Everything one usefulness rule may look at."""

    move_id: str
    species: Species
    moves: Sequence[str]
    ability: str
    item: str
    gen: int
    format_type: str
    pokemon_set: Optional[PokemonSet]

    def knows(self, *move_ids: str) -> bool:
        return any(move_id in self.moves for move_id in move_ids)

    @property
    def doubles(self) -> bool:
        return self.format_type == "doubles"


def _hidden_power(check: UsefulnessCheck) -> Optional[bool]:
    gen = check.gen
    hp_type = check.move_id[len("hiddenpower"):]
    if hp_type == "electric":
        return not (check.knows("thunderbolt") or (gen < 4 and check.knows("thunderpunch")))
    if hp_type == "fighting":
        return not (check.knows("aurasphere", "focusblast") or (gen < 4 and check.knows("brickbreak")))
    if hp_type == "fire":
        return not (check.knows("flamethrower", "mysticalfire") or (gen < 4 and check.knows("firepunch")))
    if hp_type == "grass":
        return not check.knows("energyball", "grassknot", "gigadrain")
    if hp_type == "ice":
        return not (check.knows("icebeam") or (gen > 5 and check.knows("aurorabeam", "glaciate"))
                    or (gen < 4 and check.knows("icepunch")))
    if hp_type == "flying":
        return gen < 4 and not check.knows("drillpeck")
    if hp_type == "bug":
        return gen < 4 and not check.knows("megahorn")
    if hp_type == "psychic":
        return check.species.base_species == "Unown"
    return None


_SYNERGY_RULES: Dict[str, Callable[[UsefulnessCheck], bool]] = {
    'fakeout': lambda c: c.ability != 'sheerforce',
    'flamecharge': lambda c: c.ability != 'sheerforce',
    'nuzzle': lambda c: c.ability != 'sheerforce',
    'poweruppunch': lambda c: c.ability != 'sheerforce',
    'trailblaze': lambda c: c.ability != 'sheerforce',
    'solarbeam': lambda c: c.ability in ('desolateland', 'drought', 'chlorophyll', 'orichalcumpulse')
    or c.item == 'powerherb',
    'solarblade': lambda c: c.ability in ('desolateland', 'drought', 'chlorophyll', 'orichalcumpulse')
    or c.item == 'powerherb',
    'dynamicpunch': lambda c: c.ability == 'noguard',
    'grasswhistle': lambda c: c.ability == 'noguard',
    'inferno': lambda c: c.ability == 'noguard',
    'sing': lambda c: c.ability == 'noguard',
    'zapcannon': lambda c: c.ability == 'noguard',
    'heatcrash': lambda c: c.species.weightkg >= (75 if c.species.evos else 130),
    'heavyslam': lambda c: c.species.weightkg >= (75 if c.species.evos else 130),
    'aerialace': lambda c: c.ability in ('technician', 'toughclaws') and not c.knows('bravebird'),
    'ancientpower': lambda c: c.ability in ('serenegrace', 'technician') or not c.knows('powergem'),
    'aquajet': lambda c: not c.knows('jetpunch'),
    'aurawheel': lambda c: c.species.base_species == 'Morpeko',
    'axekick': lambda c: not c.knows('highjumpkick'),
    'bellydrum': lambda c: c.knows('aquajet', 'jetpunch', 'extremespeed') or c.ability in ('iceface', 'unburden'),
    'bulletseed': lambda c: c.ability in ('skilllink', 'technician'),
    'chillingwater': lambda c: not c.knows('scald'),
    'counter': lambda c: c.species.base_stats.get('hp', 0) >= 65,
    'dazzlinggleam': lambda c: not c.knows('alluringvoice') or 'doubles' in c.format_type,
    'darkvoid': lambda c: c.gen < 7,
    'dualwingbeat': lambda c: c.ability == 'technician' or not c.knows('drillpeck'),
    'electroshot': lambda c: True,
    'feint': lambda c: c.ability == 'refrigerate',
    'grassyglide': lambda c: c.ability == 'grassysurge',
    'gyroball': lambda c: c.species.base_stats.get('spe', 0) <= 60,
    'headbutt': lambda c: c.ability == 'serenegrace',
    'hex': lambda c: not c.knows('infernalparade'),
    'hyperspacefury': lambda c: c.species.id == 'hoopaunbound',
    'hypnosis': lambda c: (c.gen < 4 and not c.knows('sleeppowder')) or (c.gen > 6 and c.ability == 'baddreams'),
    'icepunch': lambda c: not c.knows('icespinner') or c.ability in ('sheerforce', 'ironfist')
    or c.item == 'punchingglove',
    'iciclecrash': lambda c: not c.knows('mountaingale'),
    # Keldeo needs Hidden Power for Electric/Ghost
    'icywind': lambda c: c.species.base_species == 'Keldeo' or c.doubles,
    'infestation': lambda c: c.knows('stickyweb'),
    'irondefense': lambda c: not c.knows('acidarmor'),
    'irontail': lambda c: c.gen > 5 and not c.knows('ironhead', 'gunkshot', 'poisonjab'),
    'jumpkick': lambda c: not c.knows('highjumpkick', 'axekick'),
    'lastresort': lambda c: c.pokemon_set is not None and len(c.pokemon_set.moves) < 3,
    'leechlife': lambda c: c.gen > 6,
    'meteorbeam': lambda c: True,
    'mysticalfire': lambda c: c.gen > 6 and not c.knows('flamethrower'),
    'naturepower': lambda c: c.gen == 5,
    'nightslash': lambda c: not c.knows('crunch') and not (c.knows('knockoff') and c.gen >= 6),
    'outrage': lambda c: not c.knows('glaiverush'),
    'petaldance': lambda c: c.ability == 'owntempo',
    'phantomforce': lambda c: not c.knows('shadowforce', 'poltergeist', 'shadowclaw') or c.doubles,
    'poisonfang': lambda c: 'Poison' in c.species.types and not c.knows('gunkshot', 'poisonjab'),
    'relicsong': lambda c: c.species.id == 'meloetta',
    'refresh': lambda c: not c.knows('aromatherapy', 'healbell'),
    'risingvoltage': lambda c: c.ability in ('electricsurge', 'hadronengine'),
    'rocktomb': lambda c: c.ability == 'technician',
    'selfdestruct': lambda c: c.gen < 5 and not c.knows('explosion'),
    'shadowpunch': lambda c: c.ability == 'ironfist' and not c.knows('ragefist'),
    'shelter': lambda c: not c.knows('acidarmor', 'irondefense'),
    'smackdown': lambda c: 'Ground' in c.species.types,
    'smartstrike': lambda c: 'Steel' in c.species.types and not c.knows('ironhead'),
    'soak': lambda c: c.ability == 'unaware',
    'steelwing': lambda c: not c.knows('ironhead'),
    'stompingtantrum': lambda c: not c.knows('earthquake', 'drillrun') or c.doubles,
    'stunspore': lambda c: not c.knows('thunderwave'),
    'technoblast': lambda c: (c.gen > 5 and c.item.endswith('drive')) or c.item == 'dousedrive',
    'teleport': lambda c: c.gen > 7,
    'temperflare': lambda c: not c.knows('flareblitz', 'pyroball', 'sacredfire', 'bitterblade', 'firepunch')
    or c.doubles,
    'terrainpulse': lambda c: c.ability in ('megalauncher', 'technician') and not c.knows('originpulse'),
    'waterpulse': lambda c: c.ability in ('megalauncher', 'technician') and not c.knows('originpulse'),
    'toxicspikes': lambda c: c.ability != 'toxicdebris',
    'trickroom': lambda c: c.species.base_stats.get('spe', 0) <= 100,
    'wildcharge': lambda c: not c.knows('supercellslam'),
}


# =============================================================================
# Move Resolver
# =============================================================================

class MoveSearch(TypedSearch):
    search_type = "move"
    sort_row = ("sortmove", "")

    def get_table(self) -> dict:
        if not self.mod or self.mod_table is None:
            return self.data.moves
        if self.mod == "ygo":
            return self.mod_table.override("overridePackDetails")
        return self._merged_table(self.data.moves, self.mod_table.override("overrideMoveInfo"))

    def get_default_results(self) -> List[Row]:
        results: List[Row] = [("header", "Moves")]
        for move_id in self.get_table():
            if move_id == "magikarpsrevenge":
                continue
            if move_id == "paleowave":
                results.append(("header", "CAP moves"))
            results.append(("move", move_id))
        return results

    # ── Usefulness ────────────────────────────────────────────────

    def move_is_not_useless(
        self,
        move_id: str,
        species: Species,
        moves: Sequence[str],
        pokemon_set: Optional[PokemonSet] = None,
    ) -> bool:
        """Whether *move_id* belongs in the main list rather than "Usually useless moves"."""
        dex = self.dex
        format_type = self.format_type or ""
        ability = to_id(pokemon_set.ability) if pokemon_set else ""
        item = to_id(pokemon_set.item) if pokemon_set else ""

        if self.mod and self.mod_table is not None:
            forced = (self.mod_table.override("overrideMoveInfo").get(move_id) or {})
            if isinstance(forced, dict) and isinstance(forced.get("viable"), bool):
                return forced["viable"]

        if dex.gen == 1:
            if move_id in GEN1_USEFUL:
                return True
            if move_id in GEN1_USELESS:
                return False
            if move_id in GEN1_REDUNDANT_WITH:
                return not any(stronger in moves for stronger in GEN1_REDUNDANT_WITH[move_id])
            if format_type == "stadium":
                if move_id in ("doubleedge", "focusenergy", "haze"):
                    return True
                if move_id in ("hyperbeam", "sing", "hypnosis"):
                    return False
                if move_id == "fly":
                    return "drillpeck" not in moves
                if move_id == "dig":
                    return "earthquake" not in moves

        if format_type == "letsgo" and move_id in ("megadrain", "teleport"):
            return True
        if format_type == "metronome" and move_id == "metronome":
            return True

        ability = MEGA_STONE_ABILITIES.get(item, ability)
        check = UsefulnessCheck(move_id, species, moves, ability, item, dex.gen, format_type, pokemon_set)
        if move_id.startswith("hiddenpower"):
            verdict = _hidden_power(check)
            if verdict is not None:
                return verdict
        rule = _SYNERGY_RULES.get(move_id)
        if rule is not None:
            return bool(rule(check))

        if format_type == "doubles" and move_id in GOOD_DOUBLES_MOVES:
            return True

        move = dex.get_move(move_id)
        if not move.exists:
            return True
        canonical = self.data.moves.get(move_id)
        if not isinstance(canonical, dict) or canonical.get("exists") is False:
            # Mod-only moves count as viable.
            return True
        if (move.status == "slp" or move_id == "yawn") and dex.gen == 9 and not format_type:
            return False
        if move.category == "Status":
            return move_id in GOOD_STATUS_MOVES
        if move.base_power < 75:
            return move_id in GOOD_WEAK_MOVES
        if move_id == "skydrop":
            return True
        if move.flags.get("charge"):
            return item == "powerherb"
        if move.flags.get("recharge"):
            return False
        if move.flags.get("slicing") and ability == "sharpness":
            return True
        return move_id not in BAD_STRONG_MOVES

    def _is_usable(
        self,
        move_id: str,
        species: Species,
        moves: Sequence[str],
        plugin_moves: Optional[Sequence[str]] = None,
    ) -> bool:
        # plugins always see the regular learnable moves, even for sketched ones
        usable = self.move_is_not_useless(move_id, species, moves, self.pokemon_set)
        plugin = self.data.usefulness_overrides.get(self.mod) if self.mod else None
        if plugin is not None:
            known = moves if plugin_moves is None else plugin_moves
            verdict = plugin(move_id, species, list(known), self.pokemon_set, self.dex)
            if isinstance(verdict, bool):
                usable = verdict
        return usable

    # ── Learnset walk ─────────────────────────────────────────────

    def _walk_table(self) -> FormatTable:
        root = self.data.root_table
        format_type = self.format_type or ""
        for prefix, key in (("bdsp", "gen8bdsp"), ("letsgo", "gen7letsgo"), ("ssdlc1", "gen8dlc1"),
                            ("predlc", "gen9predlc"), ("svdlc1", "gen9dlc1")):
            if format_type.startswith(prefix):
                return self.data.table(key) or root
        return root

    def _first_pack_details_id(self, species_id: str) -> str:
        table = self.data.table("ygo")
        if table is not None and species_id in table.override("overridePackDetails"):
            return species_id
        return ""

    def _pack_details(self, pack_id: str, table: FormatTable) -> Optional[dict]:
        details = table.pack_details.get(pack_id)
        if self.mod == "ygo" and self.mod_table is not None:
            override = self.mod_table.override("overridePackDetails").get(pack_id)
            if override:
                details = {**(details or {}), **override}
        return details

    def _is_nonstandard_here(self, move_id: str) -> bool:
        format_type = self.format_type or ""
        for table_key, applies in NONSTANDARD_MOVE_RULES:
            table = self.data.table(table_key)
            if applies(format_type) and table is not None and move_id in table.nonstandard_moves:
                return True
        return False

    def learnable_moves(self, species: Species) -> tuple:
        """``(moves, sketch)``: learnset-legal move ids in discovery order."""
        dex = self.dex
        gen = dex.gen
        fmt = self.format
        is_tradebacks = "tradebacks" in fmt or self.mod in TRADEBACKS_MODS
        region_born = gen >= 6 and (
            bool(_BATTLE_FACILITY.match(fmt)) or fmt.startswith(("bss", "vgc"))
            or (gen == 9 and self.format_type != "natdex")
        )
        table = self._walk_table()

        moves: List[str] = []
        sketch = False
        learnset_id = self.first_learnset_id(species.id)
        pack_id = self._first_pack_details_id(species.id)
        seen = set()
        while (learnset_id or pack_id) and (learnset_id, pack_id) not in seen:
            seen.add((learnset_id, pack_id))
            if self.mod == "ygo":
                learnset = table.learnsets.get(learnset_id)
            else:
                learnset = self.learnset(learnset_id, table) if learnset_id else None
            pack_details = self._pack_details(pack_id, table) if pack_id else None

            if learnset is not None and not learnset:
                # Loaded but empty: another mod supplied it, use the base species.
                learnset_id = to_id(dex.get_species(learnset_id).base_species)
                continue
            if learnset:
                region_code = REGION_BORN_CODES.get(gen, "")
                check_region = region_born and self._carries_marker(learnset, region_code)
                for move_id, entry in learnset.items():
                    entry = str(entry)
                    move = dex.get_move(move_id)
                    if check_region and region_code not in entry:
                        continue
                    if str(gen) not in entry and not (
                        is_tradebacks and move.gen <= gen and str(gen + 1) in entry
                    ):
                        continue
                    if self.format_type != "natdex" and move.is_nonstandard == "Past":
                        continue
                    if self._is_nonstandard_here(move_id):
                        continue
                    if move_id in moves:
                        continue
                    moves.append(move_id)
                    if move_id == "sketch":
                        sketch = True
                    if move_id == "hiddenpower":
                        for hp_type in CategorySchema.HIDDEN_POWER_TYPES:
                            if f"hiddenpower{hp_type}" not in moves:
                                moves.append(f"hiddenpower{hp_type}")
            if pack_details is not None and not pack_details:
                pack_id = to_id(dex.get_species(pack_id).name)
                continue
            for pack_move in pack_details or {}:
                if pack_move not in moves:
                    moves.append(pack_move)
            learnset_id = self.next_learnset_id(learnset_id, species.id) if learnset_id else ""
            pack_id = ""
        return moves, sketch

    def _stab_types(self, species: Species, move_name: str, move_gen: int) -> tuple:
        """``(species types, move types)`` across every generation both existed in."""
        species_types: List[str] = []
        move_types: List[str] = []
        gen = self.dex.gen
        while gen >= species.gen and gen >= move_gen:
            gen_dex = Dex(self.data, gen)
            move_types.append(gen_dex.get_move(move_name).type)
            pokemon = gen_dex.get_species(species.name)
            base = gen_dex.get_species(pokemon.changes_from or pokemon.name)
            if not pokemon.battle_only:
                species_types.extend(pokemon.types)
            prevo = pokemon.prevo
            seen = set()
            while prevo and prevo not in seen:
                seen.add(prevo)
                prevo_species = gen_dex.get_species(prevo)
                species_types.extend(prevo_species.types)
                prevo = prevo_species.prevo
            if isinstance(pokemon.battle_only, str):
                species = self.dex.get_species(pokemon.battle_only)
            if base.other_formes and base.base_species not in ("Wormadam", "Urshifu"):
                if species.forme not in EXCLUDED_STAB_FORMES:
                    species_types.extend(base.types)
                for forme_name in base.other_formes:
                    forme = self.dex.get_species(forme_name)
                    if not forme.battle_only and forme.forme not in EXCLUDED_STAB_FORMES:
                        species_types.extend(forme.types)
            gen -= 1
        return species_types, move_types

    def get_base_results(self) -> List[Row]:
        if not self.species:
            return self.get_default_results()
        dex = self.dex
        species = dex.get_species(self.species)
        fmt = self.format
        format_type = self.format_type or ""
        is_hackmons = "hackmons" in fmt or fmt.endswith("bh")
        is_stabmons = "stabmons" in fmt or "stylemons" in fmt or fmt == "staaabmons"

        moves, sketch = self.learnable_moves(species)
        sketch_moves: List[str] = []

        if sketch or is_hackmons:
            if is_hackmons:
                moves = []
            for move_id in self.get_table():
                if not fmt.startswith("cap") and move_id in ("paleowave", "shadowstrike"):
                    continue
                move = dex.get_move(move_id)
                if not move.exists or move_id in moves or move.gen > dex.gen:
                    continue
                if sketch:
                    if move.no_sketch or move.is_max or move.is_z:
                        continue
                    if move.is_nonstandard and move.is_nonstandard != "Past":
                        continue
                    if move.is_nonstandard == "Past" and format_type != "natdex":
                        continue
                    sketch_moves.append(move_id)
                else:
                    if not (dex.gen < 8 or format_type == "natdex") and move.is_z:
                        continue
                    if isinstance(move.is_max, str):
                        continue
                    if move.is_max and dex.gen > 8:
                        continue
                    if move.is_nonstandard == "Past" and format_type != "natdex":
                        continue
                    if move.is_nonstandard == "LGPE" and format_type != "letsgo":
                        continue
                    moves.append(move_id)

        if format_type == "metronome":
            moves = ["metronome"]

        if is_stabmons:
            for move_id in self.get_table():
                move = dex.get_move(move_id)
                if move.id in moves or move.gen > dex.gen:
                    continue
                if move.is_z or move.is_max or (move.is_nonstandard and move.is_nonstandard != "Unobtainable"):
                    continue
                species_types, move_types = self._stab_types(species, move.name, move.gen)
                if any(move_type in species_types for move_type in move_types):
                    moves.append(move_id)

        moves.sort()
        sketch_moves.sort()

        usable: List[Row] = []
        useless: List[Row] = []
        for move_id in moves:
            if self.mod == "ygo" or self._is_usable(move_id, species, moves):
                if not usable:
                    usable.append(("header", "Moves"))
                usable.append(("move", move_id))
            else:
                if not useless:
                    useless.append(("header", "Usually useless moves"))
                useless.append(("move", move_id))
        if sketch_moves:
            usable.append(("header", "Sketched moves"))
            useless.append(("header", "Useless sketched moves"))
        for move_id in sketch_moves:
            if self._is_usable(move_id, species, sketch_moves, plugin_moves=moves):
                usable.append(("move", move_id))
            else:
                useless.append(("move", move_id))
        return usable + useless

    # ── Filters ───────────────────────────────────────────────────

    def filter(self, row: Row, filters: Sequence[Filter]) -> bool:
        if not filters or row[0] != "move":
            return True
        move = self.dex.get_move(row[1])
        for kind, value in filters:
            if kind == "type":
                if to_id(move.type) != to_id(value):
                    return False
            elif kind == "category":
                if to_id(move.category) != to_id(value):
                    return False
            elif kind == "pokemon":
                if not self.can_learn(to_id(value), move.id):
                    return False
        return True

    # ── Sorting ───────────────────────────────────────────────────

    def sort(self, rows: List[Row], sort_col: str, reverse_sort: bool = False) -> List[Row]:
        dex = self.dex
        if sort_col == "power":
            def power(row: Row) -> int:
                move = dex.get_move(row[1])
                return move.base_power or POWER_TABLE.get(row[1]) or (-1 if move.category == "Status" else 1400)
            return sorted(rows, key=lambda row: -power(row), reverse=reverse_sort)
        if sort_col == "accuracy":
            def accuracy(row: Row) -> int:
                value = dex.get_move(row[1]).accuracy
                return 101 if value is True else (value or 0)
            return sorted(rows, key=lambda row: -accuracy(row), reverse=reverse_sort)
        if sort_col == "pp":
            return sorted(rows, key=lambda row: -(dex.get_move(row[1]).pp or 0), reverse=reverse_sort)
        if sort_col == "name":
            return sorted(rows, key=lambda row: row[1], reverse=reverse_sort)
        raise InvalidSortError(f"Cannot sort moves by '{sort_col}'")
