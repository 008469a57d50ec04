"""
Plot history and recent directions for Roundtable.
"""

import time
from typing import Iterable, List, Optional

from ..models import HistoryEntry
from ..services.security import MAX_HISTORY_LIMIT, MIN_HISTORY_LIMIT

DEFAULT_HISTORY_LIMIT = 5
MAX_RECENT_DIRECTIONS = 10


class PlotHistory:
    """Newest-first ring buffer of approved plots."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, entries: Optional[Iterable[HistoryEntry]] = None):
        self._limit = self._clamp(limit)
        self._entries: List[HistoryEntry] = list(entries or [])[:self._limit]

    @staticmethod
    def _clamp(limit: int) -> int:
        return max(MIN_HISTORY_LIMIT, min(MAX_HISTORY_LIMIT, int(limit)))

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def set_limit(self, limit: int) -> None:
        self._limit = self._clamp(limit)
        del self._entries[self._limit:]

    def add(self, text: str) -> HistoryEntry:
        entry = HistoryEntry(text=text)
        self._entries.insert(0, entry)
        del self._entries[self._limit:]
        return entry

    def find(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def update_in_place(self, entry_id: str, text: str) -> Optional[HistoryEntry]:
        """Replace an entry's text and timestamp, keeping its id and position."""
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                updated = entry.model_copy(update={"text": text, "timestamp": int(time.time() * 1000)})
                self._entries[index] = updated
                return updated
        return None

    def replace_all(self, entries: Iterable[HistoryEntry]) -> None:
        self._entries = list(entries)[:self._limit]

    def clear(self) -> None:
        self._entries = []


class RecentDirections:
    """Deduplicated operator direction hints, most recent first."""

    def __init__(self, limit: int = MAX_RECENT_DIRECTIONS, directions: Optional[Iterable[str]] = None):
        self._limit = max(1, int(limit))
        self._directions: List[str] = []
        for direction in reversed(list(directions or [])):
            self.add(direction)

    @property
    def items(self) -> List[str]:
        return list(self._directions)

    @property
    def latest(self) -> Optional[str]:
        return self._directions[0] if self._directions else None

    def __len__(self) -> int:
        return len(self._directions)

    def add(self, direction: str) -> bool:
        direction = (direction or "").strip()
        if not direction:
            return False
        if direction in self._directions:
            self._directions.remove(direction)
        self._directions.insert(0, direction)
        del self._directions[self._limit:]
        return True
