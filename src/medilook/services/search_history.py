"""
Bounded, de-duplicating history of past searches.

Entries are kept most-recent-first, at most one per query (compared
case-insensitively), and the whole list is written to a single JSON blob
after every change. Storage problems are logged and otherwise ignored: a
missing or corrupt blob loads as an empty history.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from medilook.constants import HISTORY_CAPACITY
from medilook.models.medicine import Medicine
from medilook.models.search_history import SearchHistoryEntry

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[SearchHistoryEntry])


class JsonFileHistoryStore:
    """Single named blob on disk holding the serialized history."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> bytes | None:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self.path)

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class SearchHistoryCache:
    """Most-recent-first list of past queries and the medicines they returned."""

    def __init__(
        self, store: JsonFileHistoryStore, capacity: int = HISTORY_CAPACITY
    ) -> None:
        self.store = store
        self.capacity = capacity
        self._entries: list[SearchHistoryEntry] = self._load()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[SearchHistoryEntry]:
        return list(self._entries)

    def find(self, query: str) -> SearchHistoryEntry | None:
        return next((e for e in self._entries if e.matches(query)), None)

    def record(self, query: str, results: list[Medicine]) -> SearchHistoryEntry:
        """Add ``query`` at the front, replacing any earlier entry for it."""
        entry = SearchHistoryEntry(
            query=query,
            results=[m.model_copy(deep=True) for m in results],
        )
        self._entries = [e for e in self._entries if not e.matches(query)]
        self._entries.insert(0, entry)
        del self._entries[self.capacity :]
        self._save()
        return entry

    def clear(self) -> None:
        self._entries = []
        try:
            self.store.delete()
        except OSError as e:
            logger.warning("Could not delete search history at %s: %s", self.store.path, e)

    # -- Persistence -----------------------------------------------------------

    def _load(self) -> list[SearchHistoryEntry]:
        try:
            raw = self.store.read()
        except OSError as e:
            logger.warning("Could not read search history at %s: %s", self.store.path, e)
            return []
        if not raw:
            return []
        try:
            entries = _ENTRIES.validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable search history: %s", e)
            return []
        return entries[: self.capacity]

    def _save(self) -> None:
        try:
            self.store.write(_ENTRIES.dump_json(self._entries).decode("utf-8"))
        except OSError as e:
            logger.warning("Could not save search history to %s: %s", self.store.path, e)
