"""
DexSearch Index Module

The precomputed, sorted search index and its highlight offset table.

Each entry is ``(key, category)`` for a real name, or
``(key, category, alias_of, alias_offset)`` for an alias entry: a later
word of a multi-word name (``"punch"`` for Ice Punch) or an acronym,
pointing back at the position of the entry it aliases.

The offset table holds one string per position.  Character *n* of that
string encodes how far the display name drifts from the id at id
character *n* (``chr(48 + delta)``), so highlight spans computed on ids
can be mapped back onto names with spaces and punctuation.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)


class IndexEntry(NamedTuple):
    """One row of the search index."""

    key: str
    category: str
    alias_of: Optional[int] = None
    alias_offset: Optional[int] = None

    @property
    def is_alias(self) -> bool:
        return self.alias_of is not None

    @classmethod
    def from_raw(cls, raw: Sequence) -> "IndexEntry":
        """Build from a stored ``[key, category, alias_of?, alias_offset?]`` list."""
        if len(raw) > 2:
            return cls(raw[0], raw[1], raw[2], raw[3] if len(raw) > 3 else 0)
        return cls(raw[0], raw[1])

    def to_raw(self) -> list:
        if self.is_alias:
            return [self.key, self.category, self.alias_of, self.alias_offset]
        return [self.key, self.category]


class SearchIndex:
    """
    Immutable sorted index with binary lookup.

    Args:
        entries: index rows sorted ascending by key.
        offsets: parallel highlight offset strings (may be shorter than
            *entries*; missing positions decode as zero drift).
    """

    def __init__(self, entries: Iterable = (), offsets: Iterable = ()):
        self.entries: List[IndexEntry] = [
            entry if isinstance(entry, IndexEntry) else IndexEntry.from_raw(entry)
            for entry in entries
        ]
        self.offsets: List[str] = [offset or "" for offset in offsets]

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, position: int) -> IndexEntry:
        return self.entries[position]

    def key(self, position: int) -> str:
        """Key at *position*, or ``""`` past either end."""
        if 0 <= position < len(self.entries):
            return self.entries[position].key
        return ""

    def closest_index(self, query: str) -> int:
        """
        Position of the first entry whose key is ``>= query``.

        Among duplicate keys equal to *query* the first one wins.  The
        result saturates at the last position when every key sorts before
        *query*, and is ``0`` for an empty index.
        """
        entries = self.entries
        if not entries:
            return 0
        left = 0
        right = len(entries) - 1
        while right > left:
            mid = (right - left) // 2 + left
            if entries[mid].key == query and (mid == 0 or entries[mid - 1].key != query):
                return mid
            elif entries[mid].key < query:
                left = mid + 1
            else:
                right = mid - 1
        if left >= len(entries) - 1:
            left = len(entries) - 1
        elif entries[left + 1].key and entries[left].key < query:
            left += 1
        if left and entries[left - 1].key == query:
            left -= 1
        return left

    def display_offset(self, position: int, char_index: int) -> int:
        """Drift between id and display name at *char_index* of entry *position*."""
        if not 0 <= position < len(self.offsets):
            return 0
        offset = self.offsets[position]
        if not 0 <= char_index < len(offset):
            return 0
        return ord(offset[char_index]) - 48

    def to_raw(self) -> tuple:
        return [entry.to_raw() for entry in self.entries], list(self.offsets)
