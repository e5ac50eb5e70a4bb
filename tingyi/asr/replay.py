from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional

from tingyi.asr.stream_base import EngineTransientError, FragmentSource
from tingyi.contracts import TranscriptFragment


@dataclass(frozen=True)
class ReplayItem:
    at: float
    text: str = ""
    is_final: bool = True
    confidence: float = 1.0
    error: Optional[str] = None


def parse_replay_line(line: str, index: int) -> Optional[ReplayItem]:
    """
    One transcript line -> ReplayItem.

    JSON objects: {"text": ..., "final": bool, "at": seconds, "confidence": float}
    or {"error": "no-speech", "at": seconds} to simulate an engine hiccup.
    Any other non-blank line is a final fragment, one per second.
    """
    raw = line.rstrip("\r\n")
    if not raw.strip():
        return None
    if raw.lstrip().startswith("{"):
        obj = json.loads(raw)
        at = float(obj.get("at", obj.get("t", index)))
        if obj.get("error"):
            return ReplayItem(at=at, error=str(obj["error"]))
        return ReplayItem(
            at=at,
            text=str(obj.get("text", "")),
            is_final=bool(obj.get("final", obj.get("is_final", True))),
            confidence=float(obj.get("confidence", 1.0)),
        )
    return ReplayItem(at=float(index), text=raw, is_final=True)


def load_replay(lines: Iterable[str]) -> List[ReplayItem]:
    items = []
    for i, line in enumerate(lines):
        item = parse_replay_line(line, i)
        if item is not None:
            items.append(item)
    return items


class ReplayFragmentSource(FragmentSource):
    """
    Replays a recorded transcript in wall-clock time.

    The position survives restarts, so an injected error behaves like a live
    engine hiccup: the owner restarts and the stream continues where it was.
    """

    def __init__(self, items: List[ReplayItem], *, speed: float = 1.0) -> None:
        self.items = items
        self.speed = float(speed)
        self._pos = 0
        self._stop = threading.Event()
        self._start_wall = 0.0
        self._base_at = items[0].at if items else 0.0

    @classmethod
    def from_path(cls, path: str | Path, *, speed: float = 1.0) -> "ReplayFragmentSource":
        with Path(path).open("r", encoding="utf-8-sig") as f:
            return cls(load_replay(f), speed=speed)

    @classmethod
    def from_stream(cls, stream: IO[str], *, speed: float = 1.0) -> "ReplayFragmentSource":
        return cls(load_replay(stream), speed=speed)

    def start(self) -> None:
        self._stop.clear()
        # Re-anchor so the remaining items keep their relative spacing.
        anchor = self.items[self._pos].at if self._pos < len(self.items) else self._base_at
        self._base_at = anchor
        self._start_wall = time.perf_counter()

    def stop(self) -> None:
        self._stop.set()

    def _wait_until(self, at: float) -> bool:
        if self.speed <= 0:
            return not self._stop.is_set()
        target = (at - self._base_at) / self.speed
        remaining = target - (time.perf_counter() - self._start_wall)
        if remaining > 0:
            return not self._stop.wait(remaining)
        return not self._stop.is_set()

    def fragments(self) -> Iterator[TranscriptFragment]:
        while self._pos < len(self.items):
            item = self.items[self._pos]
            if not self._wait_until(item.at):
                return
            self._pos += 1
            if item.error:
                raise EngineTransientError(item.error)
            yield TranscriptFragment(text=item.text, is_final=item.is_final, confidence=item.confidence)

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self.items)
