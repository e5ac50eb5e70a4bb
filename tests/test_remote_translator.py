from __future__ import annotations

import pytest
import requests

from tingyi.contracts import TranslationRequest
from tingyi.nlp.translator.base import BackendError, ExtractionError, TranslatorConfigError
from tingyi.nlp.translator.remote import EXPLAIN_SYSTEM_PROMPT, RemoteAITranslator


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _reply(content: str = "", reasoning: str = "") -> dict:
    return {"choices": [{"message": {"content": content, "reasoning": reasoning}}]}


def _remote(session: FakeSession, **kwargs) -> RemoteAITranslator:
    return RemoteAITranslator(api_key="sk-test", session=session, **kwargs)


def test_translate_sends_chat_payload() -> None:
    session = FakeSession(FakeResponse(payload=_reply(content="Thank you")))
    remote = _remote(session, model="m-1", temperature=0.1, max_tokens=300, app_title="T")

    result = remote.translate(TranslationRequest(text="谢谢"))

    assert result.text == "Thank you."
    assert result.context == "AI translation"
    assert result.provider == "remote"
    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["headers"]["X-Title"] == "T"
    body = call["json"]
    assert body["model"] == "m-1"
    assert body["temperature"] == 0.1
    assert body["max_tokens"] == 300
    assert body["stream"] is False
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "ONLY the English translation" in body["messages"][0]["content"]
    assert body["messages"][1]["content"] == "谢谢"


def test_translate_recovers_answer_from_reasoning() -> None:
    session = FakeSession(
        FakeResponse(payload=_reply(reasoning='You should respond with "Hello, nice to meet you."'))
    )
    result = _remote(session).translate(TranslationRequest(text="你好，很高兴见到你"))
    assert result.text == "Hello, nice to meet you."


def test_http_error_raises_backend_error() -> None:
    session = FakeSession(FakeResponse(status_code=502))
    with pytest.raises(BackendError, match="502"):
        _remote(session).translate(TranslationRequest(text="你好"))


def test_empty_choices_raise_backend_error() -> None:
    session = FakeSession(FakeResponse(payload={"choices": []}))
    with pytest.raises(BackendError, match="No choices"):
        _remote(session).translate(TranslationRequest(text="你好"))


def test_unrecoverable_reply_raises_extraction_error() -> None:
    session = FakeSession(FakeResponse(payload=_reply(reasoning="用户在打招呼")))
    with pytest.raises(ExtractionError):
        _remote(session).translate(TranslationRequest(text="你好"))


def test_missing_key_raises_before_any_request(monkeypatch) -> None:
    monkeypatch.delenv("TINGYI_TEST_KEY", raising=False)
    session = FakeSession(FakeResponse(payload=_reply(content="Hello")))
    remote = RemoteAITranslator(api_key_env="TINGYI_TEST_KEY", session=session)
    with pytest.raises(TranslatorConfigError):
        remote.translate(TranslationRequest(text="你好"))
    assert session.calls == []


def test_key_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TINGYI_TEST_KEY", "sk-env")
    session = FakeSession(FakeResponse(payload=_reply(content="Hello")))
    RemoteAITranslator(api_key_env="TINGYI_TEST_KEY", session=session).translate(TranslationRequest(text="你好"))
    assert session.calls[0]["headers"]["Authorization"] == "Bearer sk-env"


def test_transport_errors_propagate() -> None:
    session = FakeSession(requests.ConnectionError("connection refused"))
    with pytest.raises(requests.ConnectionError):
        _remote(session).translate(TranslationRequest(text="你好"))


def test_explain_uses_explain_settings() -> None:
    session = FakeSession(FakeResponse(payload=_reply(content="Polite greeting")))
    remote = _remote(session, explain_temperature=0.3, explain_max_tokens=400)

    out = remote.explain("你好", "Hello.")

    assert out == "Polite greeting."
    body = session.calls[0]["json"]
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 400
    assert body["messages"][0]["content"] == EXPLAIN_SYSTEM_PROMPT
    assert body["messages"][1]["content"] == 'Why is "你好" translated as "Hello."?'
