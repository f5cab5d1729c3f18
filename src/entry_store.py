"""
Append-only, newest-first wellness entry log.

The whole list is rewritten on every append.  Loading is best-effort: a
missing, unreadable or malformed payload yields an empty log and a warning,
never an exception.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Optional, Tuple

from constants import ENTRIES_KEY, SCHEMA_VERSION, SCHEMA_VERSION_KEY
from wellness_entry import WellnessEntry, entry_from_record, entry_to_record

log = logging.getLogger("entry_store")


class EntryStore:
    """Owns the entry log; load/save are its only side effects."""

    def __init__(self, backend, clock: Callable[[], float] = time.time):
        self.backend = backend
        self._clock = clock
        self._entries: List[WellnessEntry] = []

    # ─── Lifecycle ────────────────────────────────────────────

    def load_all(self) -> List[WellnessEntry]:
        """Load the persisted log, substituting an empty one on any failure."""
        try:
            raw = self.backend.read(ENTRIES_KEY)
        except Exception as e:
            log.warning("Could not read %s: %s", ENTRIES_KEY, e)
            raw = None

        entries: List[WellnessEntry] = []
        if raw:
            try:
                records = json.loads(raw)
                if not isinstance(records, list):
                    raise ValueError(f"expected a JSON array, got {type(records).__name__}")
                entries = [entry_from_record(r) for r in records]
            except (ValueError, TypeError) as e:
                log.warning("Discarding unreadable entry log (%s); starting empty.", e)
                entries = []

        self._entries = entries
        log.debug("Loaded %d entries", len(entries))
        return list(entries)

    def _save(self) -> None:
        payload = json.dumps([entry_to_record(e) for e in self._entries], ensure_ascii=False)
        self.backend.write(ENTRIES_KEY, payload)
        self.backend.write(SCHEMA_VERSION_KEY, json.dumps(SCHEMA_VERSION))

    # ─── Operations ───────────────────────────────────────────

    def append(self, entry: WellnessEntry) -> None:
        """Prepend the entry and persist the full list."""
        self._entries.insert(0, entry)
        self._save()
        log.info("Stored entry %s for %s (log size %d)", entry.id, entry.date, len(self._entries))

    def all(self) -> Tuple[WellnessEntry, ...]:
        return tuple(self._entries)

    def recent(self, n: int) -> List[WellnessEntry]:
        return list(self._entries[: max(n, 0)])

    def next_id(self) -> int:
        """Millisecond timestamp, bumped past the newest id if the clock lags."""
        now_ms = int(self._clock() * 1000)
        newest: Optional[WellnessEntry] = self._entries[0] if self._entries else None
        if newest is not None and newest.id >= now_ms:
            return newest.id + 1
        return now_ms

    def __len__(self) -> int:
        return len(self._entries)
