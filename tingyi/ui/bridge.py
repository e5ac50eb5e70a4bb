from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Optional, Union

from tingyi.contracts import SentenceEvent, TranslationEntry


@dataclass(frozen=True)
class FlagChange:
    name: str
    value: bool


DeliveryEvent = Union[TranslationEntry, SentenceEvent, FlagChange]


class DeliveryBus:
    """
    Thread-safe handoff from pipeline threads -> the rendering side.
    Producers push entries, interim previews and busy flags; the consumer polls (non-blocking).
    """
    def __init__(self, maxsize: int = 100):
        self.q: "queue.Queue[DeliveryEvent]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def push(self, item: DeliveryEvent) -> None:
        try:
            self.q.put_nowait(item)
        except queue.Full:
            # drop oldest to keep the consumer current
            try:
                _ = self.q.get_nowait()
                self.dropped += 1
            except queue.Empty:
                return
            try:
                self.q.put_nowait(item)
            except queue.Full:
                return

    def push_flag(self, name: str, value: bool) -> None:
        self.push(FlagChange(name=name, value=value))

    def pop(self) -> Optional[DeliveryEvent]:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return None
