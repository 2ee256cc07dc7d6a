"""
Tests for dexsearch.core.formats — format id resolution and the rewrite rules.
"""

import pytest
from dexsearch.core.data import Dex
from dexsearch.core.formats import (
    DRAFT,
    FORMAT_RULES,
    LITTLE_CUP,
    NATIONAL_DEX,
    FormatContext,
    resolve_format,
)


def _ctx(game_data, fmt, format_type=None, gen=9):
    return FormatContext(format=fmt, mod_format=fmt, dex=Dex(game_data, gen), format_type=format_type)


# =============================================================================
# resolve_format
# =============================================================================

class TestResolveFormat:
    """End-to-end resolution of real-looking format ids."""

    @pytest.mark.parametrize("format_id, expected_format, expected_type, expected_gen", [
        ("gen9ou", "ou", None, 9),
        ("gen9vgc2023regulatione", "vgc2023regulatione", "svdlc1doubles", 9),
        ("gen7letsgoou", "ou", "letsgo", 7),
        ("gen9nfe", "ou", "nfe", 9),
        ("gen9lc", "lc", "lc", 9),
        ("gen9ubersdraft", "ubers", None, 9),
        ("gen8nationaldexag", "ag", "natdex", 8),
        ("gen9metronome", "metronome", "metronome", 9),
        ("gen8doublesou", "doublesou", "doubles", 8),
        ("gen8bdspou", "ou", "bdsp", 8),
        ("gen1stadiumou", "ou", "stadium", 1),
        ("gen9predlcou", "ou", "predlc", 9),
    ])
    def test_known_formats(self, game_data, format_id, expected_format, expected_type, expected_gen):
        ctx = resolve_format(format_id, game_data)
        assert ctx.format == expected_format
        assert ctx.format_type == expected_type
        assert ctx.gen == expected_gen

    def test_unknown_generation_digit_defaults_to_six(self, game_data):
        ctx = resolve_format("genxou", game_data)
        assert ctx.gen == 6
        assert ctx.format == "ou"

    def test_bare_gen_prefix_is_customgame(self, game_data):
        assert resolve_format("gen9", game_data).format == "customgame"

    def test_format_without_gen_prefix_keeps_current_gen(self, game_data):
        ctx = resolve_format("ou", game_data)
        assert ctx.gen == Dex.CURRENT_GEN
        assert ctx.format == "ou"

    def test_empty_format(self, game_data):
        ctx = resolve_format("", game_data)
        assert ctx.format == ""
        assert ctx.format_type is None

    def test_id_is_normalized(self, game_data):
        assert resolve_format("[Gen 9] OU", game_data).format == "ou"

    def test_mod_format_uses_teambuilder_format(self, game_data):
        ctx = resolve_format("gen9testmodou", game_data)
        assert ctx.mod == "gen9testmod"
        assert ctx.format == "ou"
        assert ctx.mod_format == "gen9testmodou"
        assert ctx.dex.mod == "gen9testmod"

    def test_mod_format_type_is_taken_from_mod_config(self, game_data):
        game_data.mod_config["gen9testmod"]["formats"]["gen9testmodnd"] = {
            "teambuilderFormat": "OU", "formatType": "natdex",
        }
        ctx = resolve_format("gen9testmodnd", game_data)
        assert ctx.format_type == "natdex"

    def test_bdsp_switches_to_its_dex(self, game_data):
        ctx = resolve_format("gen8bdspou", game_data)
        assert ctx.dex.mod == "gen8bdsp"


# =============================================================================
# Individual rules
# =============================================================================

class TestRules:
    """Each rule is callable on its own and reports whether it applied."""

    def test_rule_table_order_starts_with_dlc_rules(self):
        assert [rule.name for rule in FORMAT_RULES[:3]] == ["ssdlc1", "predlc", "svdlc1"]

    def test_draft_strips_suffix(self, game_data):
        ctx = _ctx(game_data, "ubersdraft")
        assert DRAFT(ctx) is True
        assert ctx.format == "ubers"

    def test_rule_reports_not_applied(self, game_data):
        ctx = _ctx(game_data, "ou")
        assert DRAFT(ctx) is False
        assert ctx.format == "ou"

    def test_little_cup_skips_caplc(self, game_data):
        assert LITTLE_CUP(_ctx(game_data, "caplc")) is False

    def test_little_cup_skips_typed_formats(self, game_data):
        assert LITTLE_CUP(_ctx(game_data, "lc", format_type="natdex")) is False

    @pytest.mark.parametrize("fmt, expected", [
        ("nationaldex", "ou"),
        ("nationaldexubers", "ubers"),
        ("ndou", "ou"),
        ("nationaldexdoubles", "nationaldexdoubles"),
    ])
    def test_national_dex_rewrites(self, game_data, fmt, expected):
        ctx = _ctx(game_data, fmt)
        assert NATIONAL_DEX(ctx) is True
        assert ctx.format == expected
        assert ctx.format_type == "natdex"

    def test_context_helpers(self, game_data):
        ctx = _ctx(game_data, "ou", format_type="svdlc1doubles")
        assert ctx.type_startswith("svdlc1")
        assert ctx.type_includes("doubles")
        assert not _ctx(game_data, "ou").type_includes("doubles")
