"""
Recover a clean English sentence from a chat-completion message.

Reasoning models sometimes leave the answer field empty and bury the
translation inside their free-form reasoning. The rules below are tried in
order on the reasoning text; the first candidate that passes
`is_valid_translation` wins. Every result goes through `normalize_en`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from tingyi.nlp.postprocess_en import normalize_en

_Q = "\"“”'"

_QUOTED_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(rf"[{_Q}]([A-Z][^{_Q}]{{5,50}})[{_Q}]"),
    re.compile(rf"[{_Q}]((?:Hello|Hi|Good|Nice|Thank|Welcome)[^{_Q}]*)[{_Q}]", re.IGNORECASE),
)
_KEYWORD_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"(?:\btranslates? to|\bmeans?|\bis|\bwould be)\b[:\s]*[{_Q}]?([A-Z][^{_Q}\n.]{{5,50}})[{_Q}]?[.!]?[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        rf"(?:\bshould be|\bequivalent)\b[:\s]*[{_Q}]?([A-Z][^{_Q}\n.]{{5,50}})[{_Q}]?[.!]?[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    ),
)
_SENTENCE_SPLIT = re.compile(r"[.!?。！？]")

_ALLOWED_CHARS = re.compile(r"^[a-zA-Z\s,.'!?-]+$")
_META_WORDS = re.compile(
    r"phrase|translat|recogniz|direct|part|means|common|standard|polite|literally|equivalent",
    re.IGNORECASE,
)
_GREETING = re.compile(r"Hello|Hi|Good|Nice|Thank|Welcome|How|What|Please", re.IGNORECASE)
_TERMINAL = re.compile(r"[.!?]$")

TRUNCATED_GREETING = "Hello, nice to meet you"


@dataclass(frozen=True)
class ChatMessage:
    content: str = ""
    reasoning: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "ChatMessage":
        payload = payload or {}
        reasoning = payload.get("reasoning") or payload.get("reasoning_content") or ""
        return cls(content=str(payload.get("content") or ""), reasoning=str(reasoning))


def is_valid_translation(text: str) -> bool:
    if not text or len(text) < 3 or len(text) > 100:
        return False
    if not text[0].isascii() or not text[0].isupper():
        return False
    if not _ALLOWED_CHARS.match(text):
        return False
    if _META_WORDS.search(text):
        return False
    return bool(_GREETING.search(text) or _TERMINAL.search(text))


def _first_valid(candidates: Iterable[str]) -> Optional[str]:
    for candidate in candidates:
        candidate = (candidate or "").strip()
        if candidate and is_valid_translation(candidate):
            return candidate
    return None


def quoted_substring(reasoning: str) -> Optional[str]:
    for pattern in _QUOTED_PATTERNS:
        found = _first_valid(m.group(1) for m in pattern.finditer(reasoning))
        if found:
            return found
    return None


def keyword_anchored(reasoning: str) -> Optional[str]:
    for pattern in _KEYWORD_PATTERNS:
        found = _first_valid(m.group(1) for m in pattern.finditer(reasoning))
        if found:
            return found
    return None


def last_valid_sentence(reasoning: str) -> Optional[str]:
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(reasoning)]
    return _first_valid(reversed(sentences))


def truncated_greeting(reasoning: str) -> Optional[str]:
    # 很高兴见到你 gets cut off mid-reasoning ("very happy ...") often enough
    # that the greeting is worth recovering on its own.
    if "very" in reasoning and ("Hello" in reasoning or "hello" in reasoning):
        return TRUNCATED_GREETING
    return None


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    find: Callable[[str], Optional[str]]


RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule("quoted_substring", quoted_substring),
    ExtractionRule("keyword_anchored", keyword_anchored),
    ExtractionRule("last_valid_sentence", last_valid_sentence),
    ExtractionRule("truncated_greeting", truncated_greeting),
)


@dataclass(frozen=True)
class Extraction:
    text: str
    rule: Optional[str]


def extract(message: ChatMessage | Mapping[str, Any] | None) -> Extraction:
    msg = message if isinstance(message, ChatMessage) else ChatMessage.from_payload(message)

    content = msg.content.strip()
    if content:
        return Extraction(text=normalize_en(content), rule="content")

    reasoning = msg.reasoning.strip()
    if not reasoning:
        return Extraction(text="", rule=None)
    for rule in RULES:
        found = rule.find(reasoning)
        if found:
            return Extraction(text=normalize_en(found), rule=rule.name)
    return Extraction(text="", rule=None)


def extract_translation(message: ChatMessage | Mapping[str, Any] | None) -> str:
    """Best-effort translation text, or "" when nothing is recoverable."""
    return extract(message).text
