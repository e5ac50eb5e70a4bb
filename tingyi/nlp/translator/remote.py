from __future__ import annotations

import logging
import os
from typing import Any, Optional

import requests

from tingyi.app.logging_setup import log_event
from tingyi.contracts import TranslationRequest, TranslationResult
from tingyi.nlp.extractor import ChatMessage, extract

from .base import BackendError, ExtractionError, Translator, TranslatorConfigError

TRANSLATE_SYSTEM_PROMPT = """Translate Chinese to English. Respond with ONLY the English translation.

Examples:
你好 → Hello
你好，很高兴见到你 → Hello, nice to meet you
谢谢 → Thank you
我们开始会议吧 → Let's start the meeting"""

EXPLAIN_SYSTEM_PROMPT = "Explain Chinese-English translations briefly (max 30 words)."


class RemoteAITranslator(Translator):
    """
    OpenAI-compatible chat-completions backend (OpenRouter by default).

    The reply text is recovered with the response extractor because
    reasoning models may return the answer in a `reasoning` field.
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_key_env: str = "OPENROUTER_API_KEY",
        url: str = "https://openrouter.ai/api/v1/chat/completions",
        model: str = "deepseek/deepseek-r1-0528:free",
        temperature: float = 0.1,
        max_tokens: int = 300,
        explain_temperature: float = 0.3,
        explain_max_tokens: int = 400,
        app_title: str = "Professional Real-Time Translator",
        referer: str = "http://localhost",
        timeout_sec: float = 30.0,
        session: Any = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api_key = api_key
        self.api_key_env = api_key_env
        self.url = url
        self.model = model
        self.temperature = float(temperature)
        self.max_tokens = int(max_tokens)
        self.explain_temperature = float(explain_temperature)
        self.explain_max_tokens = int(explain_max_tokens)
        self.app_title = app_title
        self.referer = referer
        self.timeout_sec = float(timeout_sec)
        self.session = session if session is not None else requests.Session()
        self._logger = logger

    @property
    def name(self) -> str:
        return "remote"

    def _resolve_key(self) -> str:
        key = self._api_key or os.getenv(self.api_key_env) or ""
        if not key.strip():
            raise TranslatorConfigError(f"{self.api_key_env} is required for remote translation.")
        return key.strip()

    def _chat(self, messages: list[dict[str, str]], *, temperature: float, max_tokens: int) -> ChatMessage:
        key = self._resolve_key()
        headers = {
            "Authorization": f"Bearer {key}",
            "HTTP-Referer": self.referer,
            "X-Title": self.app_title,
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }
        r = self.session.post(self.url, headers=headers, json=payload, timeout=self.timeout_sec)
        if not r.ok:
            raise BackendError(f"AI API error: {r.status_code}")
        try:
            data = r.json()
        except ValueError as exc:
            raise BackendError("AI API returned invalid JSON") from exc
        choices = data.get("choices") or []
        if not choices:
            raise BackendError("No choices returned from API")
        return ChatMessage.from_payload(choices[0].get("message"))

    def translate(self, req: TranslationRequest) -> TranslationResult:
        message = self._chat(
            [
                {"role": "system", "content": TRANSLATE_SYSTEM_PROMPT},
                {"role": "user", "content": req.text},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        found = extract(message)
        if not found.text:
            raise ExtractionError("No translation content found in API response")
        log_event(self._logger, logging.DEBUG, "remote_extracted", rule=found.rule, chars=len(found.text))
        return TranslationResult(text=found.text, context="AI translation", provider=self.name)

    def explain(self, original: str, translated: str) -> str:
        """Raw explanation text; "" when the reply held nothing usable."""
        message = self._chat(
            [
                {"role": "system", "content": EXPLAIN_SYSTEM_PROMPT},
                {"role": "user", "content": f'Why is "{original}" translated as "{translated}"?'},
            ],
            temperature=self.explain_temperature,
            max_tokens=self.explain_max_tokens,
        )
        return extract(message).text
