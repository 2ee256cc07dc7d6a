"""
DexSearch Format Resolution

Turns a format id such as ``gen9nationaldexubers`` or ``gen8vgc2020``
into the context every typed resolver works from: the generation (via
the :class:`~dexsearch.core.data.Dex` it selects), the format-type
variant (doubles, national dex, a DLC snapshot, ...), the mod overlay,
and the remaining bare format name (``ubers``, ``ou``, ``lc``, ...).

After the ``genN`` prefix and mod lookup, the rewrite chain is an
ordered table of :class:`FormatRule` entries.  Every rule whose predicate
holds is applied, in table order, and each sees the rewrites made by the
rules before it.  Rules are plain module-level objects so each one can
be tested on its own.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from dexsearch.core.data import Dex, GameData, to_id

logger = logging.getLogger(__name__)


@dataclass
class FormatContext:
    """Resolved format identity shared by a typed resolver."""

    format: str
    mod_format: str
    dex: Dex
    format_type: Optional[str] = None
    mod: str = ""

    @property
    def gen(self) -> int:
        return self.dex.gen

    def type_includes(self, fragment: str) -> bool:
        return bool(self.format_type) and fragment in self.format_type

    def type_startswith(self, prefix: str) -> bool:
        return bool(self.format_type) and self.format_type.startswith(prefix)


@dataclass(frozen=True)
class FormatRule:
    """One step of the rewrite chain: ``apply`` runs when ``predicate`` holds."""

    name: str
    predicate: Callable[[FormatContext], bool]
    apply: Callable[[FormatContext], None]

    def __call__(self, ctx: FormatContext) -> bool:
        if not self.predicate(ctx):
            return False
        self.apply(ctx)
        return True


# ── Rule bodies ──────────────────────────────────────────────────

def _sword_shield_dlc(ctx: FormatContext) -> None:
    ctx.format_type = "ssdlc1doubles" if "doubles" in ctx.format else "ssdlc1"
    ctx.format = ctx.format[4:]


def _pre_dlc(ctx: FormatContext) -> None:
    if "doubles" in ctx.format and "nationaldex" not in ctx.format:
        ctx.format_type = "predlcdoubles"
    elif "nationaldex" in ctx.format:
        ctx.format_type = "predlcnatdex"
    else:
        ctx.format_type = "predlc"
    ctx.format = ctx.format[6:]


def _scarlet_violet_dlc(ctx: FormatContext) -> None:
    if "doubles" in ctx.format and "nationaldex" not in ctx.format:
        ctx.format_type = "svdlc1doubles"
    elif "nationaldex" in ctx.format:
        ctx.format_type = "svdlc1natdex"
    else:
        ctx.format_type = "svdlc1"
    ctx.format = ctx.format[4:]


def _stadium(ctx: FormatContext) -> None:
    ctx.format_type = "stadium"
    ctx.format = ctx.format[7:] or "ou"


def _set_type(format_type: str) -> Callable[[FormatContext], None]:
    def apply(ctx: FormatContext) -> None:
        ctx.format_type = format_type
    return apply


def _bdsp(ctx: FormatContext) -> None:
    ctx.format_type = "bdspdoubles" if "doubles" in ctx.format else "bdsp"
    ctx.format = ctx.format[4:]
    ctx.dex = ctx.dex.for_mod("gen8bdsp")


def _letsgo(ctx: FormatContext) -> None:
    ctx.format_type = "letsgo"
    ctx.dex = ctx.dex.for_mod("gen7letsgo")


def _national_dex(ctx: FormatContext) -> None:
    fmt = ctx.format
    if fmt != "nationaldexdoubles":
        if fmt.startswith("nd"):
            fmt = fmt[2:]
        elif "natdex" in fmt:
            fmt = fmt[6:]
        else:
            fmt = fmt[11:]
    ctx.format = fmt or "ou"
    ctx.format_type = "natdex"


def _nfe(ctx: FormatContext) -> None:
    ctx.format = ctx.format[3:] or "ou"
    ctx.format_type = "nfe"


def _little_cup(ctx: FormatContext) -> None:
    ctx.format_type = "lc"
    ctx.format = "lc"


# ── Rule table ───────────────────────────────────────────────────

SSDLC1 = FormatRule(
    "ssdlc1", lambda c: c.format.startswith("dlc1") and c.gen == 8, _sword_shield_dlc)
PREDLC = FormatRule(
    "predlc", lambda c: c.format.startswith("predlc"), _pre_dlc)
SVDLC1 = FormatRule(
    "svdlc1", lambda c: c.format.startswith("dlc1") and c.gen == 9, _scarlet_violet_dlc)
STADIUM = FormatRule(
    "stadium", lambda c: c.format.startswith("stadium"), _stadium)
VGC = FormatRule(
    "vgc", lambda c: c.format.startswith("vgc"), _set_type("doubles"))
VGC2020 = FormatRule(
    "vgc2020", lambda c: c.format == "vgc2020", _set_type("ssdlc1doubles"))
VGC2023_REGULATION_D = FormatRule(
    "vgc2023regulationd", lambda c: c.format == "vgc2023regulationd", _set_type("predlcdoubles"))
VGC2023_REGULATION_E = FormatRule(
    "vgc2023regulatione", lambda c: c.format == "vgc2023regulatione", _set_type("svdlc1doubles"))
BDSP = FormatRule(
    "bdsp", lambda c: "bdsp" in c.format, _bdsp)
PARTNERS_IN_CRIME = FormatRule(
    "partnersincrime", lambda c: c.format == "partnersincrime", _set_type("doubles"))
FREE_FOR_ALL = FormatRule(
    "freeforall", lambda c: c.format.startswith("ffa") or c.format == "freeforall", _set_type("doubles"))
LETSGO = FormatRule(
    "letsgo", lambda c: "letsgo" in c.format, _letsgo)
NATIONAL_DEX = FormatRule(
    "natdex",
    lambda c: "nationaldex" in c.format or c.format.startswith("nd") or "natdex" in c.format,
    _national_dex)
DOUBLES = FormatRule(
    "doubles",
    lambda c: "doubles" in c.format and c.gen > 4 and not c.format_type,
    _set_type("doubles"))
LETSGO_PREFIX = FormatRule(
    "letsgoprefix", lambda c: c.format_type == "letsgo",
    lambda c: setattr(c, "format", c.format[6:]))
METRONOME = FormatRule(
    "metronome", lambda c: "metronome" in c.format, _set_type("metronome"))
NFE = FormatRule(
    "nfe", lambda c: c.format.endswith("nfe"), _nfe)
LITTLE_CUP = FormatRule(
    "lc",
    lambda c: (c.format.endswith("lc") or c.format.startswith("lc"))
    and c.format != "caplc" and not c.format_type,
    _little_cup)
DRAFT = FormatRule(
    "draft", lambda c: c.format.endswith("draft"),
    lambda c: setattr(c, "format", c.format[:-5]))

FORMAT_RULES: Tuple[FormatRule, ...] = (
    SSDLC1, PREDLC, SVDLC1, STADIUM,
    VGC, VGC2020, VGC2023_REGULATION_D, VGC2023_REGULATION_E,
    BDSP, PARTNERS_IN_CRIME, FREE_FOR_ALL, LETSGO, NATIONAL_DEX,
    DOUBLES, LETSGO_PREFIX, METRONOME, NFE, LITTLE_CUP, DRAFT,
)


# =============================================================================
# Resolution
# =============================================================================

def _generation_of(format_id: str) -> int:
    digit = format_id[3:4]
    return int(digit) if digit.isdigit() and int(digit) else 6


def resolve_format(format_id: str, data: GameData, rules: Tuple[FormatRule, ...] = FORMAT_RULES) -> FormatContext:
    """
    Resolve *format_id* against *data*'s mod configuration.

    Formats without a ``genN`` prefix keep the current generation and are
    fed to the rule table unchanged.
    """
    format_id = to_id(format_id)
    ctx = FormatContext(format=format_id, mod_format=format_id, dex=Dex(data))

    if format_id.startswith("gen"):
        gen = _generation_of(format_id)
        bare = format_id[4:]
        mod = ""
        override_format = ""
        mod_format_type = ""
        for mod_id, mod_entry in data.mod_config.items():
            for candidate, format_table in ((mod_entry or {}).get("formats") or {}).items():
                if candidate == format_id or bare == candidate:
                    if bare == candidate:
                        ctx.mod_format = candidate
                    mod = mod_id
                    format_table = format_table or {}
                    if format_table.get("teambuilderFormat"):
                        override_format = to_id(format_table["teambuilderFormat"])
                    if format_table.get("formatType"):
                        mod_format_type = to_id(format_table["formatType"])
                    break
        if mod:
            ctx.dex = Dex(data, gen, mod)
            ctx.mod = mod
        else:
            ctx.dex = Dex(data, gen)
        ctx.format = override_format or bare or "customgame"
        if mod_format_type:
            ctx.format_type = mod_format_type

    for rule in rules:
        if rule(ctx):
            logger.debug(f"Format rule '{rule.name}' applied: format={ctx.format!r} type={ctx.format_type!r}")

    return ctx
