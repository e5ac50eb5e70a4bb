from __future__ import annotations

from tingyi.nlp.extractor import (
    RULES,
    TRUNCATED_GREETING,
    ChatMessage,
    extract,
    extract_translation,
    is_valid_translation,
    keyword_anchored,
    last_valid_sentence,
    quoted_substring,
    truncated_greeting,
)
from tingyi.nlp.postprocess_en import normalize_en


def test_content_field_wins() -> None:
    msg = {"content": "  Thank you  ", "reasoning": 'It is "Hello there."'}
    found = extract(msg)
    assert found.rule == "content"
    assert found.text == "Thank you."


def test_quoted_substring_from_reasoning() -> None:
    msg = {"content": "", "reasoning": 'You should respond with "Hello, nice to meet you."'}
    assert extract_translation(msg) == "Hello, nice to meet you."
    assert extract(msg).rule == "quoted_substring"


def test_quoted_substring_skips_meta_commentary() -> None:
    reasoning = 'The phrase "Common polite phrase" is not it. Answer: "Good morning everyone."'
    assert quoted_substring(reasoning) == "Good morning everyone."


def test_keyword_anchored_rule() -> None:
    reasoning = "Okay, 谢谢 is simple.\nSo it translates to Thank you very much"
    assert quoted_substring(reasoning) is None
    assert keyword_anchored(reasoning) == "Thank you very much"
    assert extract_translation({"reasoning": reasoning}) == "Thank you very much."


def test_last_valid_sentence_scans_backwards() -> None:
    reasoning = "The user wants English. I think about it. Please come in! ok"
    assert last_valid_sentence(reasoning) == "Please come in"


def test_truncated_greeting_rule() -> None:
    reasoning = "The user said 你好 which is hello, and 很高兴 is very"
    assert truncated_greeting(reasoning) == TRUNCATED_GREETING
    assert truncated_greeting("nothing to see") is None


def test_rules_are_ordered() -> None:
    assert [r.name for r in RULES] == [
        "quoted_substring",
        "keyword_anchored",
        "last_valid_sentence",
        "truncated_greeting",
    ]


def test_nothing_recoverable_returns_empty() -> None:
    assert extract_translation({"content": "", "reasoning": "用户说了中文。"}) == ""
    assert extract_translation({}) == ""
    assert extract_translation(None) == ""
    assert extract(ChatMessage()).rule is None


def test_reasoning_content_alias() -> None:
    msg = ChatMessage.from_payload({"content": None, "reasoning_content": 'Reply "Good night."'})
    assert msg.reasoning == 'Reply "Good night."'
    assert extract_translation(msg) == "Good night."


def test_validity_predicate() -> None:
    assert is_valid_translation("Hello")
    assert is_valid_translation("See you soon.")
    assert not is_valid_translation("Hi")  # too short
    assert not is_valid_translation("hello there.")  # lower-case start
    assert not is_valid_translation("Hello 你好.")  # non-Latin letters
    assert not is_valid_translation("This literally means hello.")
    assert not is_valid_translation("See you soon")  # no greeting token, no terminal punctuation
    assert not is_valid_translation("A" * 101)


def test_normalize_en_post_processing() -> None:
    assert normalize_en("Translation: “Hello   world”") == "Hello world."
    assert normalize_en("answer: Thank you!") == "Thank you!"
    assert normalize_en("'Good morning'") == "Good morning."
    assert normalize_en("   ") == ""
