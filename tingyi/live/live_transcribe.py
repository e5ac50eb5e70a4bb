from __future__ import annotations

import logging
import threading
from typing import Optional

from tingyi.app.logging_setup import log_event
from tingyi.app.state import RuntimeState, RuntimeStateTracker
from tingyi.asr.stream_base import EngineTransientError, FragmentSource
from tingyi.nlp.segmenter import SentenceSegmenter


class LiveTranscriptPump:
    """
    Owns the speech engine on behalf of the segmenter.

    Fragments go straight into the segmenter. A transient engine error
    restarts the engine after `restart_delay_sec`; a natural end of stream
    restarts it only when `restart_on_end` is set. The segmenter buffer is
    left alone across restarts and flushed once on stop.
    """

    def __init__(
        self,
        *,
        source: FragmentSource,
        segmenter: SentenceSegmenter,
        state: Optional[RuntimeStateTracker] = None,
        restart_delay_sec: float = 0.5,
        restart_on_end: bool = False,
        max_restarts: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if restart_delay_sec < 0:
            raise ValueError("restart_delay_sec must be >= 0")
        if max_restarts is not None and max_restarts < 0:
            raise ValueError("max_restarts must be >= 0 when set")

        self.source = source
        self.segmenter = segmenter
        self.state = state if state is not None else RuntimeStateTracker()
        self.restart_delay_sec = float(restart_delay_sec)
        self.restart_on_end = bool(restart_on_end)
        self.max_restarts = max_restarts
        self._logger = logger
        self._stop = threading.Event()

    def _may_restart(self) -> bool:
        return self.max_restarts is None or self.state.restarts < self.max_restarts

    def _restart(self, reason: str) -> bool:
        if not self._may_restart():
            log_event(self._logger, logging.WARNING, "engine_restart_limit", reason=reason, restarts=self.state.restarts)
            return False
        self.state.set_restarting(reason)
        log_event(
            self._logger,
            logging.INFO,
            "engine_restart",
            reason=reason,
            restarts=self.state.restarts,
            buffered_chars=len(self.segmenter.buffer),
        )
        return not self._stop.wait(self.restart_delay_sec)

    def run(self) -> None:
        self.state.set_starting()
        log_event(self._logger, logging.INFO, "engine_start")
        try:
            while not self._stop.is_set():
                self.source.start()
                self.state.set_listening()
                try:
                    for fragment in self.source.fragments():
                        if self._stop.is_set():
                            break
                        self.segmenter.push(fragment)
                except EngineTransientError as exc:
                    if self._stop.is_set() or not self._restart(str(exc) or "transient"):
                        break
                    continue
                if self._stop.is_set() or not self.restart_on_end:
                    break
                if not self._restart("end"):
                    break
        except Exception as exc:
            self.state.set_error(f"{type(exc).__name__}: {exc}")
            log_event(self._logger, logging.ERROR, "engine_crash", error=self.state.last_error)
            raise
        finally:
            self.source.stop()
            self.segmenter.stop()
            if self.state.state != RuntimeState.ERROR:
                self.state.set_stopped()
            log_event(self._logger, logging.INFO, "engine_stop", restarts=self.state.restarts)

    def stop(self) -> None:
        """Stop listening; whatever is buffered is committed before this returns."""
        self._stop.set()
        self.source.stop()
        self.segmenter.stop()
