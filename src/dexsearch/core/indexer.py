"""
DexSearch Index Builder

Builds the sorted search index and its highlight offset table from a
:class:`~dexsearch.core.data.GameData` bundle, and writes both to disk as
JSON next to the other data tables.

Steps:
  1. Collect every searchable name (species, moves, items, abilities,
     types, tiers, egg groups, move categories)
  2. Derive alias entries for later word starts and acronyms
  3. Sort, then point each alias at the final position of its original
  4. Encode the id-to-display-name drift of every real entry
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from dexsearch.core.config import CategorySchema, SearchConfig
from dexsearch.core.data import GameData, to_id
from dexsearch.core.index import IndexEntry, SearchIndex

logger = logging.getLogger(__name__)

_WORD_SPLIT = re.compile(r"[\s\-]+")


# =============================================================================
# Index Builder
# =============================================================================

class SearchIndexBuilder:
    """
    Turns raw game tables into a :class:`SearchIndex`.

    Args:
        data: the tables to index.
        show_progress: draw a tqdm progress bar while collecting names.
    """

    def __init__(self, data: GameData, show_progress: bool = False):
        self.data = data
        self.show_progress = show_progress
        self.stats = {
            "names": 0,
            "aliases": 0,
            "skipped": 0,
        }
        self.stats_by_category: Dict[str, int] = {}

    # ── Step 1: names ─────────────────────────────────────────────

    def _collect_names(self) -> List[Tuple[str, str, str]]:
        """``(id, category, display name)`` for every real entry."""
        data = self.data
        sources = [
            ("pokemon", {k: (v or {}).get("name", k) for k, v in data.pokedex.items()}),
            ("move", {k: (v or {}).get("name", k) for k, v in data.moves.items()}),
            ("item", {k: (v or {}).get("name", k) for k, v in data.items.items()}),
            ("ability", {k: (v or {}).get("name", k) for k, v in data.abilities.items()}),
            ("type", {k: (v or {}).get("name", k.capitalize()) for k, v in data.type_chart.items()}),
            ("tier", self._tier_names()),
            ("egggroup", self._egg_group_names()),
            ("category", {to_id(c): c.capitalize() for c in CategorySchema.MOVE_CATEGORIES}),
        ]
        names: List[Tuple[str, str, str]] = []
        seen = set()
        iterator = tqdm(sources, desc="Indexing", unit="table", disable=not self.show_progress)
        for category, table in iterator:
            count = 0
            for raw_id, name in table.items():
                entry_id = to_id(raw_id)
                if not entry_id or (entry_id, category) in seen:
                    self.stats["skipped"] += 1
                    continue
                seen.add((entry_id, category))
                names.append((entry_id, category, name if isinstance(name, str) else entry_id))
                count += 1
            self.stats_by_category[category] = count
        self.stats["names"] = len(names)
        return names

    def _tier_names(self) -> Dict[str, str]:
        tiers: Dict[str, str] = {}
        for record in self.data.pokedex.values():
            tier = (record or {}).get("tier")
            if tier and to_id(tier):
                tiers.setdefault(to_id(tier), tier)
        return tiers

    def _egg_group_names(self) -> Dict[str, str]:
        groups: Dict[str, str] = {}
        for record in self.data.pokedex.values():
            for group in (record or {}).get("eggGroups") or []:
                groups.setdefault(to_id(group), group)
        return groups

    # ── Step 2: aliases ───────────────────────────────────────────

    @staticmethod
    def _aliases_for(entry_id: str, name: str) -> List[Tuple[str, int]]:
        """``(alias key, id prefix length)`` pairs for one display name."""
        words = [to_id(word) for word in _WORD_SPLIT.split(name)]
        words = [word for word in words if word]
        if len(words) < 2:
            return []
        aliases: List[Tuple[str, int]] = []
        offset = 0
        for word in words[:-1]:
            offset += len(word)
            suffix = entry_id[offset:]
            if suffix and suffix != entry_id:
                aliases.append((suffix, offset))
        if len(words) >= 3:
            aliases.append(("".join(word[0] for word in words), 0))
        return aliases

    # ── Step 4: offsets ───────────────────────────────────────────

    @staticmethod
    def encode_offset(entry_id: str, name: str) -> str:
        """Per id character, how far its position in *name* drifts ahead."""
        lowered = name.lower()
        deltas: List[int] = []
        j = 0
        for i, char in enumerate(entry_id):
            while j < len(lowered) and lowered[j] != char:
                j += 1
            if j >= len(lowered):
                deltas.append(deltas[-1] if deltas else 0)
                continue
            deltas.append(j - i)
            j += 1
        if not any(deltas):
            return ""
        return "".join(chr(48 + max(delta, 0)) for delta in deltas)

    # ── Pipeline ──────────────────────────────────────────────────

    def build(self) -> SearchIndex:
        """Run every step and return the finished index."""
        logger.info("─" * 60)
        logger.info("  DEXSEARCH — Index Builder")
        logger.info("─" * 60)

        logger.info("[1/4] Collecting names...")
        names = self._collect_names()
        logger.info(f"  Found {len(names):,} names")

        logger.info("[2/4] Deriving aliases...")
        # (key, is_alias, bucket, name_position, alias_offset)
        rows: List[Tuple[str, int, int, int, int]] = []
        for position, (entry_id, category, name) in enumerate(names):
            bucket = CategorySchema.bucket_of(category)
            rows.append((entry_id, 0, bucket, position, 0))
            for alias_key, alias_offset in self._aliases_for(entry_id, name):
                rows.append((alias_key, 1, bucket, position, alias_offset))
                self.stats["aliases"] += 1
        logger.info(f"  Derived {self.stats['aliases']:,} aliases")

        logger.info("[3/4] Sorting...")
        rows.sort(key=lambda row: (row[0], row[1], row[2], row[3]))
        final_position: Dict[int, int] = {}
        for index, row in enumerate(rows):
            if not row[1]:
                final_position[row[3]] = index

        logger.info("[4/4] Encoding highlight offsets...")
        entries: List[IndexEntry] = []
        offsets: List[str] = []
        for key, is_alias, _bucket, name_position, alias_offset in rows:
            entry_id, category, name = names[name_position]
            if is_alias:
                entries.append(IndexEntry(key, category, final_position[name_position], alias_offset))
                offsets.append("")
            else:
                entries.append(IndexEntry(key, category))
                offsets.append(self.encode_offset(entry_id, name))

        logger.info("─" * 60)
        logger.info(f"  Entries : {len(entries):,}")
        logger.info(f"  Aliases : {self.stats['aliases']:,}")
        logger.info(f"  Skipped : {self.stats['skipped']:,}")
        logger.info("─" * 60)
        return SearchIndex(entries, offsets)

    def write(self, output_dir: Path, config: Optional[SearchConfig] = None) -> SearchIndex:
        """Build the index and write it as JSON into *output_dir*."""
        config = config or SearchConfig()
        index = self.build()
        raw_entries, raw_offsets = index.to_raw()
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        index_path = config.get_index_path(output_dir)
        offset_path = config.get_offset_path(output_dir)
        index_path.write_text(json.dumps(raw_entries), encoding="utf-8")
        offset_path.write_text(json.dumps(raw_offsets), encoding="utf-8")
        logger.info(f"Wrote {index_path} and {offset_path}")
        return index
