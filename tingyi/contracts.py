from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple


def new_sentence_id() -> str:
    """Opaque id per emission: wall-clock millis plus a random salt."""
    return f"{int(time.time() * 1000)}-{random.getrandbits(32):08x}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TranscriptFragment:
    text: str
    is_final: bool
    timestamp: float = field(default_factory=time.time)
    confidence: float = 1.0


@dataclass(frozen=True)
class SentenceEvent:
    text: str
    is_final: bool
    is_sentence_complete: bool
    timestamp: float
    sentence_id: str
    confidence: float = 1.0
    context_info: str = ""


@dataclass(frozen=True)
class TranslationRequest:
    text: str


@dataclass(frozen=True)
class TranslationResult:
    text: str
    context: str = "Translation"
    tone: str = "Professional"
    alternatives: Tuple[str, ...] = ()
    provider: str = ""


@dataclass(frozen=True)
class TranslationEntry:
    id: str
    original: str
    translation: str
    context: str
    tone: str
    alternatives: Tuple[str, ...]
    confidence: float
    context_info: str
    is_final: bool
    is_sentence_complete: bool
    is_paragraph_complete: bool
    timestamp: str
    provider: str = ""
    is_error: bool = False
