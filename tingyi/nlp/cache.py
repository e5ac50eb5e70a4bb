"""Session-scoped translation memory: dedup set plus result cache."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Optional

from tingyi.contracts import TranslationResult


def normalize_key(text: str) -> str:
    return (text or "").lower().strip()


class TranslationMemory:
    """
    Two stores keyed by normalized source text.

    `claim()` records a text as submitted before any I/O happens, so a
    second submission of the same text is refused even while the first one
    is still in flight or after it failed. The result cache is a FIFO ring
    of `max_items` entries (0 = unbounded).
    """

    def __init__(self, max_items: int = 0) -> None:
        if max_items < 0:
            raise ValueError("max_items must be >= 0")
        self.max_items = int(max_items)
        self._lock = threading.Lock()
        self._seen: set[str] = set()
        self._results: "OrderedDict[str, TranslationResult]" = OrderedDict()

    def claim(self, text: str) -> bool:
        key = normalize_key(text)
        if not key:
            return False
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def was_submitted(self, text: str) -> bool:
        with self._lock:
            return normalize_key(text) in self._seen

    def get(self, text: str) -> Optional[TranslationResult]:
        with self._lock:
            return self._results.get(normalize_key(text))

    def store(self, text: str, result: TranslationResult) -> None:
        key = normalize_key(text)
        if not key:
            return
        with self._lock:
            self._results[key] = result
            self._results.move_to_end(key)
            if self.max_items > 0:
                while len(self._results) > self.max_items:
                    self._results.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()
            self._results.clear()

    @property
    def submitted_count(self) -> int:
        with self._lock:
            return len(self._seen)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
