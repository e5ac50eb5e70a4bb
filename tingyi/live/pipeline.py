# tingyi/live/pipeline.py
from __future__ import annotations

import logging
from typing import Optional

from tingyi.app.logging_setup import log_event
from tingyi.app.state import RuntimeStateTracker
from tingyi.asr.stream_base import FragmentSource
from tingyi.contracts import SentenceEvent, TranscriptFragment
from tingyi.live.dispatcher import TranslationDispatcher
from tingyi.live.live_transcribe import LiveTranscriptPump
from tingyi.nlp.segmenter import DEFAULT_FLUSH_DELAY_SEC, SentenceSegmenter, TimerFactory, thread_timer
from tingyi.ui.bridge import DeliveryBus


class LiveTranslatePipeline:
    """
    engine fragments -> SentenceSegmenter -> TranslationDispatcher -> SessionState

    Interim previews skip the dispatcher and go to the bus as they are.
    Session deliveries and busy flags are forwarded to the bus too.
    """

    def __init__(
        self,
        *,
        dispatcher: TranslationDispatcher,
        bus: Optional[DeliveryBus] = None,
        flush_delay_sec: float = DEFAULT_FLUSH_DELAY_SEC,
        timer_factory: TimerFactory = thread_timer,
        logger: logging.Logger | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.bus = bus
        self._logger = logger
        self.commits = 0
        self.segmenter = SentenceSegmenter(
            self._on_sentence,
            flush_delay_sec=flush_delay_sec,
            timer_factory=timer_factory,
            logger=logger,
        )
        if bus is not None:
            dispatcher.session.on_change = bus.push
            dispatcher.on_flag = bus.push_flag
        self._pump: Optional[LiveTranscriptPump] = None

    def _on_sentence(self, event: SentenceEvent) -> None:
        if not event.is_sentence_complete:
            if self.bus is not None:
                self.bus.push(event)
            return
        self.commits += 1
        self.dispatcher.submit(event)

    def push(self, fragment: TranscriptFragment) -> None:
        self.segmenter.push(fragment)

    def run(
        self,
        source: FragmentSource,
        *,
        state: Optional[RuntimeStateTracker] = None,
        restart_delay_sec: float = 0.5,
        restart_on_end: bool = False,
        max_restarts: int | None = None,
    ) -> None:
        self._pump = LiveTranscriptPump(
            source=source,
            segmenter=self.segmenter,
            state=state,
            restart_delay_sec=restart_delay_sec,
            restart_on_end=restart_on_end,
            max_restarts=max_restarts,
            logger=self._logger,
        )
        self._pump.run()

    def stop(self) -> None:
        if self._pump is not None:
            self._pump.stop()
        else:
            self.segmenter.stop()

    def clear(self) -> None:
        """Forget everything translated so far; the segmenter buffer is kept."""
        self.dispatcher.clear()
        log_event(self._logger, logging.INFO, "pipeline_cleared", commits=self.commits)
