# tingyi/nlp/postprocess_en.py
from __future__ import annotations
import re

_LABEL = re.compile(r"^(Translation:|English:|Output:|Answer:|Result:)\s*", flags=re.IGNORECASE)
_CURLY_DOUBLE = re.compile(r"[“”]")
_CURLY_SINGLE = re.compile(r"[‘’]")
_WRAPPING_QUOTES = re.compile(r"^[\"“”']|[\"“”']$")
_SPACES = re.compile(r"\s+")
_TERMINAL = re.compile(r"[.!?]$")

def normalize_en(text: str) -> str:
    text = (text or "").strip()
    if not text:
        return ""

    # "Translation: Hello" -> "Hello"
    text = _LABEL.sub("", text)
    text = _CURLY_DOUBLE.sub('"', text)
    text = _CURLY_SINGLE.sub("'", text)
    text = _WRAPPING_QUOTES.sub("", text)
    text = _SPACES.sub(" ", text).strip()

    if text and not _TERMINAL.search(text):
        text += "."
    return text
