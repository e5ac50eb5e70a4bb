from __future__ import annotations

import threading
from typing import Callable, List, Optional

from tingyi.contracts import TranslationEntry

DEFAULT_MAX_ENTRIES = 15


class SessionState:
    """
    Most-recent-first list of delivered entries.

    An entry whose id is already present replaces the old one in place;
    anything else is prepended and the list is cut to `max_entries`.
    Clearing this alone is not enough to re-translate old text: the owner
    must clear the translation memory at the same time.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        on_change: Optional[Callable[[TranslationEntry], None]] = None,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self.max_entries = int(max_entries)
        self.on_change = on_change
        self._lock = threading.Lock()
        self._entries: List[TranslationEntry] = []

    def deliver(self, entry: TranslationEntry) -> None:
        with self._lock:
            for i, existing in enumerate(self._entries):
                if existing.id == entry.id:
                    self._entries[i] = entry
                    break
            else:
                self._entries.insert(0, entry)
                del self._entries[self.max_entries :]
        if self.on_change is not None:
            self.on_change(entry)

    def entries(self) -> List[TranslationEntry]:
        with self._lock:
            return list(self._entries)

    def get(self, entry_id: str) -> Optional[TranslationEntry]:
        with self._lock:
            for entry in self._entries:
                if entry.id == entry_id:
                    return entry
        return None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
