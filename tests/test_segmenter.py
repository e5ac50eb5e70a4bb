from __future__ import annotations

import threading

from tingyi.contracts import SentenceEvent, TranscriptFragment
from tingyi.nlp.segmenter import SegmenterState, SentenceSegmenter, boundary_reason, join_fragment


class FakeTimer:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fn()


class TimerBox:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay, fn):
        t = FakeTimer(delay, fn)
        self.timers.append(t)
        return t

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


def _make():
    events: list[SentenceEvent] = []
    timers = TimerBox()
    seg = SentenceSegmenter(events.append, flush_delay_sec=1.2, timer_factory=timers)
    return seg, events, timers


def _final(text: str) -> TranscriptFragment:
    return TranscriptFragment(text=text, is_final=True)


def _interim(text: str) -> TranscriptFragment:
    return TranscriptFragment(text=text, is_final=False)


def test_boundary_rules() -> None:
    assert boundary_reason("你好。") == "punctuation"
    assert boundary_reason("Are you there? ") == "punctuation"
    assert boundary_reason("你好吗") == "particle"
    assert boundary_reason("我们开始  ") == "pause"
    assert boundary_reason("我们开始") is None


def test_join_fragment_spacing() -> None:
    assert join_fragment("", "  你好") == "你好"
    assert join_fragment("我们", "开始") == "我们开始"
    assert join_fragment("hello", "world") == "hello world"


def test_terminal_punctuation_completes_immediately() -> None:
    seg, events, timers = _make()
    seg.push(_final("你好。"))

    assert len(events) == 1
    ev = events[0]
    assert ev.text == "你好。"
    assert ev.is_final and ev.is_sentence_complete
    assert ev.sentence_id
    assert seg.buffer == ""
    assert timers.timers == []


def test_particle_completes_without_waiting() -> None:
    seg, events, timers = _make()
    seg.push(_final("你好吗"))

    assert [e.text for e in events] == ["你好吗"]
    assert timers.timers == []


def test_silence_timeout_flushes_unterminated_buffer() -> None:
    seg, events, timers = _make()
    seg.push(_final("我们开始"))

    assert events == []
    assert seg.state == SegmenterState.PENDING_FLUSH
    assert timers.last.delay == 1.2
    assert timers.last.started

    timers.last.fire()

    assert len(events) == 1
    assert events[0].text == "我们开始"
    assert events[0].is_sentence_complete
    assert seg.buffer == ""
    assert seg.state == SegmenterState.ACCUMULATING


def test_new_fragment_cancels_pending_timer() -> None:
    seg, events, timers = _make()
    seg.push(_final("我们"))
    first = timers.last
    seg.push(_final("开始"))

    assert first.cancelled
    # The superseded timer must not flush even if its thread already woke up.
    first.fire()
    assert events == []

    timers.last.fire()
    assert [e.text for e in events] == ["我们开始"]


def test_interim_previews_do_not_touch_buffer() -> None:
    seg, events, timers = _make()
    seg.push(_final("我们"))
    seg.push(_interim("开始吧"))

    assert len(events) == 1
    preview = events[0]
    assert preview.text == "我们开始吧"
    assert not preview.is_final
    assert not preview.is_sentence_complete
    assert seg.buffer == "我们"


def test_interim_on_empty_buffer_does_not_arm_timer() -> None:
    seg, events, timers = _make()
    seg.push(_interim("你"))
    assert [e.text for e in events] == ["你"]
    assert timers.timers == []


def test_whitespace_only_final_is_ignored() -> None:
    seg, events, timers = _make()
    seg.push(_final("我们"))
    seg.push(_final("   "))
    seg.push(_final(""))

    assert events == []
    assert seg.buffer == "我们"


def test_stop_flushes_buffer_synchronously() -> None:
    seg, events, timers = _make()
    seg.push(_final("请稍等"))
    pending = timers.last

    seg.stop()

    assert len(events) == 1
    assert events[0].text == "请稍等"
    assert events[0].is_sentence_complete
    assert pending.cancelled
    pending.fire()
    assert len(events) == 1


def test_stop_with_empty_buffer_emits_nothing() -> None:
    seg, events, _ = _make()
    seg.stop()
    assert events == []


def test_completion_is_emitted_once() -> None:
    seg, events, timers = _make()
    seg.push(_final("我们"))
    pending = timers.last
    seg.push(_final("开始。"))

    assert [e.text for e in events] == ["我们开始。"]
    pending.fire()
    seg.stop()
    assert len(events) == 1


def test_fresh_sentence_id_per_emission() -> None:
    seg, events, _ = _make()
    seg.push(_final("你好。"))
    seg.push(_final("你好。"))
    assert len(events) == 2
    assert events[0].sentence_id != events[1].sentence_id


def test_real_timer_flushes_after_delay() -> None:
    done = threading.Event()
    events: list[SentenceEvent] = []

    def on_event(ev: SentenceEvent) -> None:
        events.append(ev)
        done.set()

    seg = SentenceSegmenter(on_event, flush_delay_sec=0.05)
    seg.push(_final("我们开始"))

    assert done.wait(2.0)
    assert [e.text for e in events] == ["我们开始"]
