from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from tingyi.app.logging_setup import log_event
from tingyi.contracts import TranslationRequest, TranslationResult

from .base import BackendError, Translator


@dataclass(frozen=True)
class ModelStatus:
    translation_ready: bool = False
    sentiment_ready: bool = False


class LocalHTTPTranslator(Translator):
    """
    Client for the local translation server.

    POST {base_url}/translate          {"text": ...} -> {"translation": ...}
    GET  {base_url}/api/models/status  -> {"translation_ready": bool, "sentiment_ready": bool}

    The readiness probe result is reused for `ready_ttl_sec`; a probe that
    cannot reach the server counts as "not ready".
    """

    is_local = True

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        timeout_sec: float = 30.0,
        ready_ttl_sec: float = 30.0,
        session: Any = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = float(timeout_sec)
        self.ready_ttl_sec = float(ready_ttl_sec)
        self.session = session if session is not None else requests.Session()
        self._logger = logger
        self._lock = threading.Lock()
        self._status: Optional[ModelStatus] = None
        self._status_at = 0.0

    @property
    def name(self) -> str:
        return "local"

    def model_status(self, *, refresh: bool = False) -> ModelStatus:
        with self._lock:
            fresh = self._status is not None and (time.monotonic() - self._status_at) < self.ready_ttl_sec
            if fresh and not refresh:
                return self._status  # type: ignore[return-value]
        status = self._probe()
        with self._lock:
            self._status = status
            self._status_at = time.monotonic()
        return status

    def _probe(self) -> ModelStatus:
        try:
            r = self.session.get(f"{self.base_url}/api/models/status", timeout=self.timeout_sec)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            log_event(self._logger, logging.WARNING, "local_status_failed", error=str(exc))
            return ModelStatus()
        status = ModelStatus(
            translation_ready=bool(data.get("translation_ready")),
            sentiment_ready=bool(data.get("sentiment_ready")),
        )
        log_event(
            self._logger,
            logging.INFO,
            "local_status",
            translation_ready=status.translation_ready,
            sentiment_ready=status.sentiment_ready,
        )
        return status

    def is_ready(self) -> bool:
        return self.model_status().translation_ready

    def translate(self, req: TranslationRequest) -> TranslationResult:
        r = self.session.post(
            f"{self.base_url}/translate",
            json={"text": req.text},
            headers={"Content-Type": "application/json; charset=utf-8"},
            timeout=self.timeout_sec,
        )
        if not r.ok:
            raise BackendError(f"Local translation failed: {r.status_code}")
        try:
            data = r.json()
        except ValueError as exc:
            raise BackendError("Local translation returned invalid JSON") from exc
        text = str(data.get("translation") or "").strip()
        if not text:
            raise BackendError("Local translation returned no text")
        return TranslationResult(text=text, context="Local model translation", provider=self.name)
