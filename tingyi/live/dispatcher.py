from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Dict, Optional

from tingyi.app.diagnostics import hint_for_exception, summarize_exception
from tingyi.app.logging_setup import log_event
from tingyi.contracts import (
    SentenceEvent,
    TranslationEntry,
    TranslationRequest,
    TranslationResult,
    new_sentence_id,
    utc_now_iso,
)
from tingyi.live.session import SessionState
from tingyi.nlp.cache import TranslationMemory, normalize_key
from tingyi.nlp.translator.base import TranslatorConfigError
from tingyi.nlp.translator.chain import BackendChain, ChainOutcome
from tingyi.nlp.translator.remote import RemoteAITranslator

ERROR_MARKER = "[Translation Error]"
EXPLAIN_NO_KEY = "API key required for explanations."
EXPLAIN_EMPTY = "Unable to provide explanation."
EXPLAIN_FAILED = "Unable to provide explanation at this time."

FLAG_TRANSLATING = "translating"
FLAG_EXPLAINING = "explaining"


def build_entry(text: str, result: TranslationResult, event: SentenceEvent, *, is_error: bool = False) -> TranslationEntry:
    return TranslationEntry(
        id=event.sentence_id or new_sentence_id(),
        original=text,
        translation=result.text,
        context=result.context or "Translation",
        tone=result.tone or "Professional",
        alternatives=tuple(result.alternatives),
        confidence=event.confidence or 1.0,
        context_info=event.context_info,
        is_final=True,
        is_sentence_complete=True,
        is_paragraph_complete=False,
        timestamp=utc_now_iso(),
        provider=result.provider,
        is_error=is_error,
    )


def error_result(text: str) -> TranslationResult:
    return TranslationResult(
        text=f"{ERROR_MARKER} {text}",
        context="Error occurred during translation",
        tone="Error",
        provider="error",
    )


class TranslationDispatcher:
    """
    Admits complete sentences, translates each normalized text at most once
    per session, and delivers one entry per admitted sentence.

    Admission claims the text in the translation memory before any I/O, so
    concurrent duplicates never reach a backend. Backend calls run on a
    worker pool; submissions for different texts do not wait on each other.
    A sentence whose backends all fail is still delivered, as an error entry.
    """

    def __init__(
        self,
        *,
        chain: BackendChain,
        session: SessionState,
        memory: Optional[TranslationMemory] = None,
        explainer: Optional[RemoteAITranslator] = None,
        max_workers: int = 4,
        on_flag: Optional[Callable[[str, bool], None]] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.chain = chain
        self.session = session
        self.memory = memory if memory is not None else TranslationMemory()
        self.explainer = explainer
        self.on_flag = on_flag
        self._logger = logger
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="tingyi-translate")
        self._lock = threading.Lock()
        self._deliver_lock = threading.RLock()
        # Held across a busy-count change and its flag callback.
        self._flag_lock = threading.RLock()
        self._futures: Dict[str, "Future[Optional[TranslationEntry]]"] = {}
        self._epoch = 0
        self._busy: Dict[str, int] = {FLAG_TRANSLATING: 0, FLAG_EXPLAINING: 0}
        self._closed = False
        self.stats: Dict[str, int] = {
            "submitted": 0,
            "dedup_skips": 0,
            "cache_hits": 0,
            "dispatched": 0,
            "delivered": 0,
            "errors": 0,
            "discarded": 0,
        }

    @property
    def is_translating(self) -> bool:
        with self._lock:
            return self._busy[FLAG_TRANSLATING] > 0

    @property
    def is_explaining(self) -> bool:
        with self._lock:
            return self._busy[FLAG_EXPLAINING] > 0

    @property
    def in_flight(self) -> int:
        """Admitted submissions whose future has not resolved yet."""
        with self._lock:
            return len(self._futures)

    def _bump(self, key: str) -> None:
        with self._lock:
            self.stats[key] += 1

    def _adjust_busy(self, name: str, delta: int) -> None:
        with self._flag_lock:
            with self._lock:
                before = self._busy[name]
                after = before + delta
                self._busy[name] = after
            if (before == 0) != (after == 0) and self.on_flag is not None:
                self.on_flag(name, after > 0)

    def submit(self, event: SentenceEvent) -> "Optional[Future[Optional[TranslationEntry]]]":
        """
        Admit a sentence for translation.

        Returns a future resolving to the delivered entry (None if the result
        was dropped by clear()). A duplicate of a sentence still in flight gets
        that sentence's future; any other rejected submission returns None.
        """
        text = (event.text or "").strip()
        if not text:
            return None
        if not event.is_sentence_complete and not event.is_final:
            return None
        if self._closed:
            raise RuntimeError("dispatcher is disposed")

        key = normalize_key(text)
        fut: "Future[Optional[TranslationEntry]]" = Future()
        with self._lock:
            claimed = self.memory.claim(key)
            if claimed:
                self.stats["submitted"] += 1
                self._futures[key] = fut
            else:
                self.stats["dedup_skips"] += 1
                earlier = self._futures.get(key)
            epoch = self._epoch
        if not claimed:
            log_event(self._logger, logging.INFO, "dedup_skip", chars=len(text))
            return earlier

        entry: Optional[TranslationEntry] = None
        with self._deliver_lock:
            stale = epoch != self._epoch
            cached = None if stale else self.memory.get(key)
            if cached is not None:
                self._bump("cache_hits")
                log_event(self._logger, logging.INFO, "cache_hit", chars=len(text))
                entry = build_entry(text, cached, event)
                self._deliver(entry)
        if stale:
            self._bump("discarded")
            self._resolve(key, fut, None)
            return fut
        if entry is not None:
            self._resolve(key, fut, entry)
            return fut

        self._adjust_busy(FLAG_TRANSLATING, 1)
        try:
            self._executor.submit(self._run, key, text, event, epoch, fut)
        except RuntimeError as exc:
            self._adjust_busy(FLAG_TRANSLATING, -1)
            self._resolve(key, fut, None, exc)
            raise
        return fut

    def _resolve(
        self,
        key: str,
        fut: "Future[Optional[TranslationEntry]]",
        entry: Optional[TranslationEntry],
        failure: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            if self._futures.get(key) is fut:
                del self._futures[key]
        if failure is not None:
            fut.set_exception(failure)
        else:
            fut.set_result(entry)

    def _run(
        self,
        key: str,
        text: str,
        event: SentenceEvent,
        epoch: int,
        fut: "Future[Optional[TranslationEntry]]",
    ) -> None:
        entry: Optional[TranslationEntry] = None
        failure: Optional[BaseException] = None
        try:
            self._bump("dispatched")
            outcome = self.chain.translate(TranslationRequest(text=text))
            # Held through delivery so clear() cannot interleave.
            with self._deliver_lock:
                if epoch != self._epoch:
                    self._bump("discarded")
                    log_event(self._logger, logging.INFO, "result_discarded_after_clear", chars=len(text))
                else:
                    entry = self._finish(text, event, outcome)
        except Exception as exc:  # noqa: BLE001 - surfaced through the future
            log_event(self._logger, logging.ERROR, "dispatch_crash", error=f"{type(exc).__name__}: {exc}")
            failure = exc
        finally:
            self._adjust_busy(FLAG_TRANSLATING, -1)
        # Resolve only after the busy flag is released.
        self._resolve(key, fut, entry, failure)

    def _finish(self, text: str, event: SentenceEvent, outcome: ChainOutcome) -> TranslationEntry:
        result = outcome.result
        if result is not None:
            self.memory.store(text, result)
            entry = build_entry(text, result, event)
        else:
            self._bump("errors")
            detail = summarize_exception(str(outcome.last_error or "all translation backends failed"))
            log_event(
                self._logger,
                logging.ERROR,
                "translation_failed",
                chars=len(text),
                providers=[a.provider for a in outcome.attempts],
                error=detail,
                hint=hint_for_exception(detail),
            )
            entry = replace(build_entry(text, error_result(text), event, is_error=True), context_info=detail)
        self._deliver(entry)
        return entry

    def _deliver(self, entry: TranslationEntry) -> None:
        self.session.deliver(entry)
        self._bump("delivered")
        log_event(self._logger, logging.INFO, "entry_delivered", entry_id=entry.id, provider=entry.provider)

    def explain(self, original: str, translated: str) -> Optional[str]:
        """Ask the remote backend why `original` became `translated`. Never raises."""
        if not (original or "").strip() or not (translated or "").strip():
            return None
        self._adjust_busy(FLAG_EXPLAINING, 1)
        try:
            if self.explainer is None:
                return EXPLAIN_NO_KEY
            explanation = self.explainer.explain(original, translated)
            return explanation or EXPLAIN_EMPTY
        except TranslatorConfigError:
            return EXPLAIN_NO_KEY
        except Exception as exc:  # noqa: BLE001 - explanations degrade to a fixed message
            log_event(self._logger, logging.WARNING, "explain_failed", error=f"{type(exc).__name__}: {exc}")
            return EXPLAIN_FAILED
        finally:
            self._adjust_busy(FLAG_EXPLAINING, -1)

    def correct(self, original: str, corrected: str) -> None:
        """Override the cached translation for `original`."""
        corrected = (corrected or "").strip()
        if not normalize_key(original) or not corrected:
            return
        self.memory.store(original, TranslationResult(text=corrected, context="User corrected", provider="user"))
        log_event(self._logger, logging.INFO, "cache_corrected", chars=len(corrected))

    def toggle_local_preference(self) -> bool:
        self.chain.prefer_local = not self.chain.prefer_local
        return self.chain.prefer_local

    def clear(self) -> None:
        """Wipe entries, dedup set and cache together; in-flight results are dropped."""
        with self._deliver_lock, self._lock:
            self._epoch += 1
            self._futures.clear()
            self.memory.clear()
            self.session.clear()
        log_event(self._logger, logging.INFO, "session_cleared")

    def dispose(self, *, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)

