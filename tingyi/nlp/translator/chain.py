from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from tingyi.app.logging_setup import log_event
from tingyi.contracts import TranslationRequest, TranslationResult

from .base import Translator


@dataclass(frozen=True)
class BackendAttempt:
    provider: str
    result: Optional[TranslationResult] = None
    error: Optional[BaseException] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class ChainOutcome:
    attempts: tuple[BackendAttempt, ...] = field(default_factory=tuple)

    @property
    def result(self) -> Optional[TranslationResult]:
        for attempt in self.attempts:
            if attempt.ok:
                return attempt.result
        return None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def last_error(self) -> Optional[BaseException]:
        for attempt in reversed(self.attempts):
            if attempt.error is not None:
                return attempt.error
        return None


class BackendChain:
    """
    Ordered fallback over translation backends (local first, remote last).

    A backend that is not ready, or is local while the local preference is
    off, is skipped. Any exception from a backend is recorded and the next
    one is tried; the caller only sees the collected attempts.
    """

    def __init__(
        self,
        backends: Sequence[Translator],
        *,
        prefer_local: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        if not backends:
            raise ValueError("BackendChain needs at least one backend")
        self.backends = list(backends)
        self.prefer_local = prefer_local
        self._logger = logger

    def _usable(self, backend: Translator) -> bool:
        if backend.is_local and not self.prefer_local:
            return False
        try:
            return bool(backend.is_ready())
        except Exception as exc:  # noqa: BLE001 - readiness probe is advisory
            log_event(self._logger, logging.WARNING, "backend_ready_check_failed", provider=backend.name, error=str(exc))
            return False

    def translate(self, req: TranslationRequest) -> ChainOutcome:
        attempts: list[BackendAttempt] = []
        for backend in self.backends:
            if not self._usable(backend):
                log_event(self._logger, logging.INFO, "backend_skip", provider=backend.name)
                attempts.append(BackendAttempt(provider=backend.name, skipped=True))
                continue
            try:
                result = backend.translate(req)
            except Exception as exc:  # noqa: BLE001 - API boundary
                log_event(
                    self._logger,
                    logging.WARNING,
                    "backend_failed",
                    provider=backend.name,
                    error=f"{type(exc).__name__}: {exc}",
                )
                attempts.append(BackendAttempt(provider=backend.name, error=exc))
                continue
            attempts.append(BackendAttempt(provider=backend.name, result=result))
            if len(attempts) > 1:
                log_event(self._logger, logging.INFO, "backend_fallback_used", provider=backend.name)
            break
        return ChainOutcome(attempts=tuple(attempts))
