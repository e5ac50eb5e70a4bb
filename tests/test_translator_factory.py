from __future__ import annotations

import pytest

from tingyi.contracts import TranslationRequest
from tingyi.nlp.translator.argos import ArgosTranslator
from tingyi.nlp.translator.factory import get_local_translator
from tingyi.nlp.translator.local_http import LocalHTTPTranslator
from tingyi.nlp.translator.stub import StubTranslator


def test_stub_translator_deterministic() -> None:
    out = StubTranslator().translate(TranslationRequest(text="你好。"))
    assert out.provider == "stub"
    assert out.text == "[EN] 你好。"


def test_factory_builds_each_backend() -> None:
    assert get_local_translator("none") is None
    assert isinstance(get_local_translator("stub"), StubTranslator)
    assert isinstance(get_local_translator("argos"), ArgosTranslator)
    http = get_local_translator("http", base_url="http://127.0.0.1:9000/")
    assert isinstance(http, LocalHTTPTranslator)
    assert http.base_url == "http://127.0.0.1:9000"
    assert http.is_local


def test_factory_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("TINGYI_LOCAL_BACKEND", "stub")
    assert isinstance(get_local_translator(None), StubTranslator)


def test_factory_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        get_local_translator("deepl")
