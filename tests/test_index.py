"""
Tests for dexsearch.core.index — IndexEntry and SearchIndex lookups.
"""

import pytest
from dexsearch.core.index import IndexEntry, SearchIndex


def _index(*keys):
    return SearchIndex([[key, "pokemon"] for key in keys])


# =============================================================================
# IndexEntry
# =============================================================================

class TestIndexEntry:
    """Stored rows decode into real entries and alias entries."""

    def test_real_entry_from_raw(self):
        entry = IndexEntry.from_raw(["pikachu", "pokemon"])
        assert entry.key == "pikachu"
        assert entry.category == "pokemon"
        assert not entry.is_alias

    def test_alias_entry_from_raw(self):
        entry = IndexEntry.from_raw(["punch", "move", 12, 7])
        assert entry.is_alias
        assert entry.alias_of == 12
        assert entry.alias_offset == 7

    def test_alias_entry_without_offset_defaults_to_zero(self):
        entry = IndexEntry.from_raw(["tb", "move", 3])
        assert entry.alias_offset == 0

    def test_to_raw_keeps_the_stored_shape(self):
        assert IndexEntry("pikachu", "pokemon").to_raw() == ["pikachu", "pokemon"]
        assert IndexEntry("punch", "move", 12, 7).to_raw() == ["punch", "move", 12, 7]


# =============================================================================
# closest_index
# =============================================================================

class TestClosestIndex:
    """Binary lookup of the first key >= the query."""

    @pytest.fixture
    def index(self) -> SearchIndex:
        return _index("aa", "ab", "ac", "ba", "bb")

    def test_prefix_lands_on_first_match(self, index):
        assert index.closest_index("a") == 0

    def test_prefix_of_later_block(self, index):
        assert index.closest_index("b") == 3

    def test_exact_key(self, index):
        assert index.closest_index("ac") == 2

    def test_saturates_at_last_position(self, index):
        assert index.closest_index("zz") == 4

    def test_empty_index_returns_zero(self):
        assert SearchIndex().closest_index("anything") == 0

    def test_first_of_duplicate_keys_wins(self):
        index = _index("a", "b", "b", "b", "c")
        assert index.closest_index("b") == 1

    def test_result_key_is_not_smaller_than_query(self, index):
        position = index.closest_index("ab")
        assert index.key(position) >= "ab"
        assert position == 0 or index.key(position - 1) < "ab"


# =============================================================================
# Accessors
# =============================================================================

class TestAccessors:
    """key() and display_offset() tolerate out-of-range positions."""

    def test_key_out_of_range_is_empty(self):
        index = _index("aa", "ab")
        assert index.key(-1) == ""
        assert index.key(2) == ""
        assert index.key(1) == "ab"

    def test_len_and_getitem(self):
        index = _index("aa", "ab")
        assert len(index) == 2
        assert index[1].key == "ab"

    def test_display_offset_decodes_drift(self):
        index = SearchIndex([["fireblast", "move"]], ["000011111"])
        assert index.display_offset(0, 3) == 0
        assert index.display_offset(0, 4) == 1
        assert index.display_offset(0, 8) == 1

    def test_display_offset_missing_is_zero(self):
        index = SearchIndex([["fire", "type"]], [""])
        assert index.display_offset(0, 2) == 0
        assert index.display_offset(5, 0) == 0

    def test_to_raw_round_trip(self):
        raw = [["fire", "type"], ["fire", "move", 2, 6], ["sacredfire", "move"]]
        entries, offsets = SearchIndex(raw, ["", "", "0000001111"]).to_raw()
        assert entries == raw
        assert offsets == ["", "", "0000001111"]
