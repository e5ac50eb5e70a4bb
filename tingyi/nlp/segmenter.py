# tingyi/nlp/segmenter.py
from __future__ import annotations

import logging
import re
import threading
import time
from enum import Enum
from typing import Callable, Optional, Protocol

from tingyi.app.logging_setup import log_event
from tingyi.contracts import SentenceEvent, TranscriptFragment, new_sentence_id

_END_PUNCT = re.compile(r"[。.！!？?]\s*$")
_END_PARTICLE = re.compile(r"(吗|呢|吧|啊|啦|呀|哩|么)\s*$")
_PAUSE_MARK = re.compile(r"\s{2,}$")
_CJK = re.compile(r"[\u3000-\u303f\u3400-\u4dbf\u4e00-\u9fff\uff00-\uffef]")

DEFAULT_FLUSH_DELAY_SEC = 1.2


class Timer(Protocol):
    def start(self) -> None:
        ...

    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def thread_timer(delay: float, fn: Callable[[], None]) -> Timer:
    t = threading.Timer(delay, fn)
    t.daemon = True
    return t


class SegmenterState(str, Enum):
    ACCUMULATING = "accumulating"
    PENDING_FLUSH = "pending_flush"


def boundary_reason(text: str) -> Optional[str]:
    """Return which rule marks `text` as a finished sentence, or None."""
    if _END_PUNCT.search(text):
        return "punctuation"
    if _END_PARTICLE.search(text):
        return "particle"
    if _PAUSE_MARK.search(text):
        return "pause"
    return None


def join_fragment(buffer: str, text: str) -> str:
    if not buffer:
        return text.lstrip()
    head = buffer.rstrip()
    tail = text.lstrip()
    if not tail:
        return buffer
    # Chinese is written without word spaces.
    if _CJK.match(head[-1:]) and _CJK.match(tail[:1]):
        return head + tail
    return head + " " + tail


class SentenceSegmenter:
    """
    Turns a stream of interim/final transcript fragments into sentence events.

    Commit rules for final fragments (any one is enough):
      1) trailing sentence-final punctuation (Latin or CJK),
      2) trailing discourse particle (吗, 呢, 吧 ...),
      3) two or more trailing whitespace characters (pause marker).
    An unterminated buffer is committed after `flush_delay_sec` without
    activity, and synchronously on stop().

    Interim fragments only produce previews; they never touch the buffer.
    Every fragment goes through `_cancel_timer()` first, and every commit
    clears the buffer under the same lock, so a buffer is emitted once.
    """

    def __init__(
        self,
        on_event: Callable[[SentenceEvent], None],
        *,
        flush_delay_sec: float = DEFAULT_FLUSH_DELAY_SEC,
        timer_factory: TimerFactory = thread_timer,
        logger: logging.Logger | None = None,
    ) -> None:
        if flush_delay_sec <= 0:
            raise ValueError("flush_delay_sec must be > 0")
        self.on_event = on_event
        self.flush_delay_sec = float(flush_delay_sec)
        self._timer_factory = timer_factory
        self._logger = logger
        self._lock = threading.RLock()
        self._buffer = ""
        self._timer: Optional[Timer] = None
        self._timer_gen = 0
        self.state = SegmenterState.ACCUMULATING

    @property
    def buffer(self) -> str:
        with self._lock:
            return self._buffer

    def push(self, fragment: TranscriptFragment) -> None:
        if fragment.is_final:
            self.push_final(fragment.text, confidence=fragment.confidence)
        else:
            self.push_interim(fragment.text, confidence=fragment.confidence)

    def push_final(self, text: str, *, confidence: float = 1.0) -> None:
        raw = text or ""
        if not raw.strip():
            return
        with self._lock:
            self._cancel_timer()
            self._buffer = join_fragment(self._buffer, raw)
            reason = boundary_reason(self._buffer)
            if reason is not None:
                self._commit(reason, confidence=confidence)
                return
            self._arm_timer()

    def push_interim(self, text: str, *, confidence: float = 1.0) -> None:
        raw = (text or "").strip()
        if not raw:
            return
        with self._lock:
            self._cancel_timer()
            preview = join_fragment(self._buffer, raw).strip()
            self.on_event(
                SentenceEvent(
                    text=preview,
                    is_final=False,
                    is_sentence_complete=False,
                    timestamp=time.time(),
                    sentence_id=new_sentence_id(),
                    confidence=confidence,
                )
            )
            if self._buffer.strip():
                self._arm_timer()

    def stop(self) -> None:
        with self._lock:
            self._cancel_timer()
            if self._buffer.strip():
                self._commit("stop")
            else:
                self._buffer = ""

    def _commit(self, reason: str, *, confidence: float = 1.0) -> None:
        text = self._buffer.strip()
        self._buffer = ""
        self.state = SegmenterState.ACCUMULATING
        event = SentenceEvent(
            text=text,
            is_final=True,
            is_sentence_complete=True,
            timestamp=time.time(),
            sentence_id=new_sentence_id(),
            confidence=confidence,
        )
        log_event(self._logger, logging.INFO, "sentence_commit", reason=reason, chars=len(text))
        self.on_event(event)

    def _arm_timer(self) -> None:
        self._timer_gen += 1
        gen = self._timer_gen
        self._timer = self._timer_factory(self.flush_delay_sec, lambda: self._on_timer(gen))
        self.state = SegmenterState.PENDING_FLUSH
        self._timer.start()

    def _cancel_timer(self) -> None:
        # Bumping the generation also defuses a timer callback that is
        # already running and waiting on the lock.
        self._timer_gen += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state = SegmenterState.ACCUMULATING

    def _on_timer(self, gen: int) -> None:
        with self._lock:
            if gen != self._timer_gen:
                return
            self._timer = None
            if self._buffer.strip():
                self._commit("silence")
            else:
                self.state = SegmenterState.ACCUMULATING
