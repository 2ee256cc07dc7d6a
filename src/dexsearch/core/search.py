"""
DexSearch Search Orchestrator

:class:`DexSearch` is the stateful object behind a picker: it holds the
active category resolver, the structural filters and sort column, and
answers ``find(query)`` either with the resolver's structural listing
(empty query) or with a prefix / alias / fuzzy scan of the search index.

Text search overview:
  1. Binary-search the closest index position for the query
  2. Queue the passes: literal-alias target, normal prefix, alias prefix,
     and a fuzzy fallback when nothing starts with the query
  3. Scan each pass in order, routing admitted hits into per-category
     buckets (legal rows of the active category first)
  4. Optionally expand a lone cross-category hit into a full listing
     of the active category (the "instafilter")
  5. Concatenate the buckets
"""

import json
import logging
import re
import shutil
from collections import deque
from typing import Dict, List, Optional, Sequence, Tuple, Union

from dexsearch.core.config import CategorySchema, SearchConfig
from dexsearch.core.data import Dex, GameData, PokemonSet, Row, Species, to_id
from dexsearch.core.index import SearchIndex
from dexsearch.core.typed_search import Filter, TypedSearch, compact_headers

# Registers the resolvers with TypedSearch.
from dexsearch.core import categories, moves, species  # noqa: F401

logger = logging.getLogger(__name__)

NEAR_MATCH_ROW: Row = ("html", "<em>No exact match found. The closest matches alphabetically are:</em>")

# Literal aliases that get their own pass even though they prefix their target.
FORCED_ALIASES = ("sub", "tr")

# Literal alias targets that only ever show their single exact entry.
EXACT_ALIAS_TARGETS = ("hiddenpower",)

# Bucket -> (canonical table attribute, mod override map that re-adds ids).
EXISTENCE_TABLES = {
    1: ("pokedex", "overrideDexInfo"),
    2: ("type_chart", "overrideTypeChart"),
    4: ("moves", "overrideMoveInfo"),
    5: ("items", "overrideItemInfo"),
    6: ("abilities", "overrideAbilityDesc"),
}

SearchPass = Tuple[str, int, str]
"""``(kind, start position, query)``; kind is normal, alias, exact or fuzzy."""


# =============================================================================
# Search Orchestrator
# =============================================================================

class DexSearch:
    """
    Stateful search over one category.

    Args:
        category: active category (``"pokemon"``, ``"move"``, ...), or
            empty for a plain index search.
        format_id: format the results must be legal in.
        species_or_set: species id, or the :class:`PokemonSet` being built.
        data: the game tables (including the search index).
        config: tunables; defaults to :class:`SearchConfig`.
        mod: mod of the team being built; decides which mod-only entries
            count as existing.
    """

    def __init__(
        self,
        category: str = "",
        format_id: str = "",
        species_or_set: Union[str, PokemonSet, None] = "",
        *,
        data: GameData,
        config: Optional[SearchConfig] = None,
        mod: str = "",
    ):
        self.data = data
        self.config = config or SearchConfig()
        self.index = SearchIndex(data.search_index, data.search_index_offset)
        self.mod = mod
        self.dex = Dex(data)

        self.query = ""
        self.results: Optional[List[Row]] = None
        self.exact_match = False
        self.typed_search: Optional[TypedSearch] = None
        self.filters: Optional[List[Filter]] = None
        self.sort_col: Optional[str] = None
        self.reverse_sort = False

        self.set_category(category, format_id, species_or_set)
        if mod:
            self.dex = self.dex.for_mod(mod)

    @property
    def category(self) -> str:
        return self.typed_search.search_type if self.typed_search else ""

    # ── State ─────────────────────────────────────────────────────

    def set_category(
        self,
        category: str,
        format_id: str = "",
        species_or_set: Union[str, PokemonSet, None] = "",
    ) -> None:
        """Bind a new resolver; filters and sort survive only if the category is unchanged."""
        self.results = None
        if category != self.category:
            self.filters = None
            self.sort_col = None
        self.typed_search = TypedSearch.create(category, format_id, species_or_set, data=self.data)
        if self.typed_search is not None:
            self.dex = self.typed_search.dex
        elif category:
            logger.debug(f"No resolver for category '{category}'; text search only")

    def find(self, query: str) -> bool:
        """
        Search for *query*.

        Returns False when *query* normalizes to the previous query and
        results are cached; otherwise recomputes :attr:`results` and
        returns True.
        """
        query = to_id(query)
        if self.query == query and self.results is not None:
            return False
        self.query = query
        if not query:
            if self.typed_search is None:
                self.results = []
            else:
                self.results = self.typed_search.get_results(self.filters, self.sort_col, self.reverse_sort)
        else:
            self.results = self.text_search(query)
        return True

    def add_filter(self, entry: Filter) -> bool:
        """Add a ``(kind, value)`` filter if the active category accepts *kind*."""
        if self.typed_search is None:
            return False
        allowed = CategorySchema.FILTER_KINDS.get(self.typed_search.search_type)
        if allowed is None:
            return False
        kind, value = entry
        if kind == self.sort_col:
            self.sort_col = None
        if kind not in allowed:
            return False
        if kind in ("move", "pokemon"):
            value = to_id(value)
        entry = (kind, value)
        if self.filters is None:
            self.filters = []
        self.results = None
        if entry not in self.filters:
            self.filters.append(entry)
        return True

    def remove_filter(self, entry: Optional[Filter] = None) -> bool:
        """Remove *entry*, or the most recent filter when omitted."""
        if not self.filters:
            return False
        if entry is not None:
            entry = tuple(entry)
            if entry not in self.filters:
                return False
            self.filters.remove(entry)
        else:
            self.filters.pop()
        if not self.filters:
            self.filters = None
        self.results = None
        return True

    def toggle_sort(self, sort_col: str) -> None:
        """Cycle *sort_col* through default order, reversed order and unsorted."""
        if self.sort_col == sort_col:
            if not self.reverse_sort:
                self.reverse_sort = True
            else:
                self.sort_col = None
                self.reverse_sort = False
        else:
            self.sort_col = sort_col
            self.reverse_sort = False
        self.results = None

    def filter_label(self, filter_type: str) -> Optional[str]:
        if self.typed_search is not None and self.typed_search.search_type != filter_type:
            return "Filter"
        return None

    def illegal_label(self, entry_id: str) -> Optional[str]:
        if self.typed_search is None or not self.typed_search.illegal_reasons:
            return None
        return self.typed_search.illegal_reasons.get(entry_id)

    def get_tier(self, species: Species) -> str:
        if self.typed_search is None:
            return ""
        return self.typed_search.get_tier(species) or ""

    def closest_index(self, query: str) -> int:
        return self.index.closest_index(query)

    # ── Text search ───────────────────────────────────────────────

    def _plan_passes(self, query: str, start: int) -> Tuple[deque, Optional[str]]:
        """Pass queue for *query* plus the literal alias target, if any."""
        index = self.index
        passes: deque = deque([("normal", start, query)])
        if len(query) > 1:
            passes.append(("alias", start, query))

        query_alias = None
        if query in self.data.aliases:
            target = to_id(self.data.aliases[query])
            if query in FORCED_ALIASES or target[:len(query)] != query:
                query_alias = target
                kind = "exact" if target in EXACT_ALIAS_TARGETS else "normal"
                passes.appendleft((kind, index.closest_index(target), target))
            self.exact_match = True

        if not self.exact_match and index.key(start)[:len(query)] != query:
            match_length = len(query) - 1
            i = start or 1
            while (
                match_length
                and index.key(i)[:match_length] != query[:match_length]
                and index.key(i - 1)[:match_length] != query[:match_length]
            ):
                match_length -= 1
            match_query = query[:match_length]
            while i >= 1 and index.key(i - 1)[:match_length] == match_query:
                i -= 1
            passes.append(("fuzzy", i, ""))
        return passes, query_alias

    def _admits(self, type_index: int, entry_key: str, pass_query: str, filter_type: str) -> bool:
        """Category admission rules for one index hit."""
        search_type = self.category
        own_index = CategorySchema.bucket_of(search_type) if search_type else -1
        illegal = self.typed_search.illegal_reasons if self.typed_search else None
        if type_index < 0:
            return False
        if len(pass_query) == 1 and type_index != (own_index if search_type else 1):
            return False
        if search_type == "pokemon" and (type_index == 5 or type_index > 7):
            return False
        if search_type == "move":
            if (type_index != 8 and type_index > 4) or type_index == 3:
                return False
            if illegal is not None and type_index == 1:
                return False
        if search_type in ("ability", "item") and type_index != own_index:
            return False
        if filter_type == "type" and type_index != 2:
            return False
        if entry_key in ("megax", "megay") and "mega".startswith(pass_query):
            return False
        return True

    def _exists_for_mod(self, type_index: int, entry_id: str) -> bool:
        if type_index not in EXISTENCE_TABLES:
            return True
        table_attr, override_kind = EXISTENCE_TABLES[type_index]
        record = getattr(self.data, table_attr).get(entry_id)
        if record is not None and not (isinstance(record, dict) and record.get("exists") is False):
            return True
        mod_table = self.data.mod_table(self.mod)
        return mod_table is not None and entry_id in mod_table.override(override_kind)

    def _instafilter_rank(self, type_index: int) -> int:
        priority = self.config.instafilter_priority
        return priority[type_index] if 0 <= type_index < len(priority) else len(priority)

    def text_search(self, query: str) -> List[Row]:
        """Prefix, alias and fuzzy search of the index for *query*."""
        query = to_id(query)
        self.exact_match = False
        index = self.index
        if not len(index):
            self.results = []
            return self.results

        typed = self.typed_search
        if typed is not None:
            typed.ensure_base_results()
        illegal = typed.illegal_reasons if typed else None
        search_type = self.category
        search_type_index = CategorySchema.bucket_of(search_type) if search_type else -1

        # "fire type" ranks the type above the move
        filter_type = ""
        if query.endswith("type") and self.dex.type_exists(query[:-4]):
            query = query[:-4]
            filter_type = "type"

        start = index.closest_index(query)
        self.exact_match = index.key(start) == query
        passes, query_alias = self._plan_passes(query, start)
        logger.debug(f"Text search {query!r}: passes={list(passes)}")

        bufs: List[List[Row]] = [[] for _ in range(len(CategorySchema.TYPE_TABLE) + 1)]
        topbuf_index = -1
        count = 0
        near_match = False
        instafilter: Optional[Tuple[str, str, int]] = None

        index_ended = False
        for pass_kind, pass_start, pass_query in passes:
            if index_ended:
                break
            for i in range(pass_start, len(index)):
                entry = index[i]
                if not entry.key:
                    # a blank key ends the scan for every remaining pass
                    index_ended = True
                    break
                if pass_kind == "fuzzy":
                    if count >= self.config.fuzzy_result_limit:
                        break
                    near_match = True
                elif pass_kind == "exact":
                    if count >= 1:
                        break
                elif not entry.key.startswith(pass_query):
                    break

                if entry.is_alias != (pass_kind == "alias"):
                    continue
                type_index = CategorySchema.bucket_of(entry.category)
                if not self._admits(type_index, entry.key, pass_query, filter_type):
                    continue

                match_start = 0
                match_end = 0
                entry_id = entry.key
                if pass_kind == "alias":
                    match_start = entry.alias_offset or 0
                    if match_start:
                        match_end = match_start + len(pass_query)
                        match_start += index.display_offset(entry.alias_of, match_start)
                        match_end += index.display_offset(entry.alias_of, match_end - 1)
                    entry_id = index.key(entry.alias_of)
                else:
                    match_end = len(pass_query)
                    if match_end:
                        match_end += index.display_offset(i, match_end - 1)

                # some aliases are substrings of their target
                if query_alias == entry_id and pass_query != entry_id:
                    continue

                if search_type and search_type_index != type_index:
                    if instafilter is None or self._instafilter_rank(type_index) < self._instafilter_rank(instafilter[2]):
                        instafilter = (entry.category, entry_id, type_index)

                # types rank above same-named formes
                if topbuf_index < 0 and search_type_index < 2 and pass_kind == "alias" and not bufs[1] and bufs[2]:
                    topbuf_index = 2

                if not self._exists_for_mod(type_index, entry_id):
                    continue

                header = ("header", CategorySchema.TYPE_NAME[entry.category])
                if illegal is not None and type_index == search_type_index:
                    if not bufs[type_index] and not bufs[0]:
                        bufs[0] = [header]
                    if entry_id not in illegal:
                        type_index = 0
                elif not bufs[type_index]:
                    bufs[type_index] = [header]

                bucket = bufs[type_index]
                if pass_kind == "alias" and bucket and bucket[-1][1] == entry_id:
                    continue
                bucket.append((entry.category, entry_id, match_start, match_end))
                count += 1

        results: List[Row] = [NEAR_MATCH_ROW] if near_match else []
        if topbuf_index >= 0:
            results += bufs[topbuf_index]
            bufs[topbuf_index] = []
        if search_type_index >= 0:
            results += bufs[0] + bufs[search_type_index]
            bufs[0] = []
            bufs[search_type_index] = []
        for bucket in bufs:
            results += bucket
        if instafilter is not None and count < self.config.instafilter_threshold:
            logger.debug(f"Instafilter on {instafilter[0]} '{instafilter[1]}' ({count} hits)")
            results += self.instafilter(search_type, instafilter[0], instafilter[1])

        self.results = compact_headers(results)
        return self.results

    # ── Instafilter ───────────────────────────────────────────────

    def _merged_records(self, canonical: dict, override_kind: str) -> dict:
        mod_table = self.data.mod_table(self.mod)
        if mod_table is None:
            return canonical
        merged = {entry_id: record for entry_id, record in mod_table.override(override_kind).items()
                  if isinstance(record, dict)}
        merged.update(canonical)
        return merged

    def instafilter(self, search_type: str, filter_type: str, filter_id: str) -> List[Row]:
        """Every entry of *search_type* matching the ``(filter_type, filter_id)`` hit, legal first."""
        legal: List[Row] = []
        illegal_rows: List[Row] = []
        illegal = self.typed_search.illegal_reasons if self.typed_search else None

        def route(row: Row) -> None:
            (illegal_rows if illegal is not None and row[1] in illegal else legal).append(row)

        label = filter_id[:1].upper() + filter_id[1:]
        if search_type == "pokemon":
            pokedex = self._merged_records(self.data.pokedex, "overrideDexInfo")
            if filter_type == "type":
                legal.append(("header", f"{label}-type Pokémon"))
                for species_id, record in pokedex.items():
                    if (record or {}).get("types") and label in self.dex.get_species(species_id).types:
                        route(("pokemon", species_id))
            elif filter_type == "ability":
                ability = Dex(self.data).get_ability(filter_id).name
                legal.append(("header", f"{ability} Pokémon"))
                for species_id, record in pokedex.items():
                    if (record or {}).get("abilities") and Dex.has_ability(self.dex.get_species(species_id), ability):
                        route(("pokemon", species_id))
        elif search_type == "move":
            movedex = self._merged_records(self.data.moves, "overrideMoveInfo")
            if filter_type in ("type", "category"):
                suffix = "-type moves" if filter_type == "type" else " moves"
                legal.append(("header", f"{label}{suffix}"))
                for move_id, record in movedex.items():
                    if (record or {}).get(filter_type) == label:
                        route(("move", move_id))
        return legal + illegal_rows


# =============================================================================
# Result Formatting
# =============================================================================

_TAG = re.compile(r"<[^>]+>")


class ResultFormatter:
    """Format result rows for different output modes."""

    @staticmethod
    def _plain(fragment: str) -> str:
        return _TAG.sub("", fragment)

    @staticmethod
    def _highlight(row: Row) -> str:
        entry_id = row[1]
        if len(row) < 4 or row[3] <= row[2]:
            return entry_id
        start, end = row[2], min(row[3], len(entry_id))
        return f"{entry_id[:start]}[{entry_id[start:end]}]{entry_id[end:]}"

    @staticmethod
    def format_console(results: Sequence[Row], query: Optional[str] = None) -> str:
        """Sectioned listing with headers as section titles."""
        entries = [row for row in results if row[0] not in ("header", "html") and not row[0].startswith("sort")]
        if not entries:
            return "\n  No results found.\n"

        width = min(shutil.get_terminal_size().columns, 78)
        thin = "─" * width
        title = f"  DEXSEARCH — {len(entries)} result{'s' if len(entries) != 1 else ''}"
        if query:
            title += f" for '{query}'"

        out: List[str] = [f"\n{thin}", title, thin]
        for row in results:
            kind = row[0]
            if kind == "header":
                out.append("")
                out.append(f"  {row[1]}")
                out.append(f"  {'─' * (width - 2)}")
            elif kind == "html":
                out.append(f"  {ResultFormatter._plain(row[1])}")
            elif kind.startswith("sort"):
                continue
            else:
                out.append(f"    {kind:<10} {ResultFormatter._highlight(row)}")
        out.append(f"\n{thin}")
        return "\n".join(out)

    @staticmethod
    def format_json(results: Sequence[Row]) -> str:
        """Rows as a JSON list of objects."""
        objs: List[Dict[str, object]] = []
        for row in results:
            if row[0] == "header":
                objs.append({"header": row[1]})
            elif row[0] == "html":
                objs.append({"note": ResultFormatter._plain(row[1])})
            elif row[0].startswith("sort"):
                continue
            else:
                obj: Dict[str, object] = {"category": row[0], "id": row[1]}
                if len(row) >= 4:
                    obj["match"] = [row[2], row[3]]
                objs.append(obj)
        return json.dumps(objs, indent=2, ensure_ascii=False)

    @staticmethod
    def format_compact(results: Sequence[Row]) -> str:
        """One ``category:id`` line per entry (grep-friendly)."""
        return "\n".join(
            f"{row[0]}:{row[1]}" for row in results
            if row[0] not in ("header", "html") and not row[0].startswith("sort")
        )
