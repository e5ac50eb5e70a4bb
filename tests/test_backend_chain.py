from __future__ import annotations

from tingyi.contracts import TranslationRequest, TranslationResult
from tingyi.nlp.translator.base import BackendError, Translator
from tingyi.nlp.translator.chain import BackendChain


class FakeBackend(Translator):
    def __init__(self, name: str, *, local: bool, ready: bool = True, fail: bool = False, text: str = "Thank you"):
        self._name = name
        self.is_local = local
        self.ready = ready
        self.fail = fail
        self.text = text
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def is_ready(self) -> bool:
        return self.ready

    def translate(self, req: TranslationRequest) -> TranslationResult:
        self.calls.append(req.text)
        if self.fail:
            raise BackendError(f"{self._name} down")
        return TranslationResult(text=self.text, provider=self._name)


def test_local_answer_short_circuits_remote() -> None:
    local = FakeBackend("local", local=True)
    remote = FakeBackend("remote", local=False)
    outcome = BackendChain([local, remote]).translate(TranslationRequest(text="谢谢"))

    assert outcome.ok
    assert outcome.result.provider == "local"
    assert remote.calls == []


def test_failing_local_falls_back_to_remote_once() -> None:
    local = FakeBackend("local", local=True, fail=True)
    remote = FakeBackend("remote", local=False)

    outcome = BackendChain([local, remote]).translate(TranslationRequest(text="谢谢"))

    assert outcome.result.text == "Thank you"
    assert outcome.result.provider == "remote"
    assert local.calls == ["谢谢"]
    assert remote.calls == ["谢谢"]
    assert [a.provider for a in outcome.attempts] == ["local", "remote"]
    assert isinstance(outcome.attempts[0].error, BackendError)


def test_unready_backend_is_skipped_without_a_call() -> None:
    local = FakeBackend("local", local=True, ready=False)
    remote = FakeBackend("remote", local=False)

    outcome = BackendChain([local, remote]).translate(TranslationRequest(text="你好"))

    assert local.calls == []
    assert outcome.attempts[0].skipped
    assert outcome.result.provider == "remote"


def test_local_preference_off_skips_local_backends() -> None:
    local = FakeBackend("local", local=True)
    remote = FakeBackend("remote", local=False)

    outcome = BackendChain([local, remote], prefer_local=False).translate(TranslationRequest(text="你好"))

    assert local.calls == []
    assert outcome.result.provider == "remote"


def test_all_backends_failing_reports_last_error() -> None:
    local = FakeBackend("local", local=True, fail=True)
    remote = FakeBackend("remote", local=False, fail=True)

    outcome = BackendChain([local, remote]).translate(TranslationRequest(text="你好"))

    assert not outcome.ok
    assert outcome.result is None
    assert "remote down" in str(outcome.last_error)


def test_readiness_probe_errors_count_as_not_ready() -> None:
    class Flaky(FakeBackend):
        def is_ready(self) -> bool:
            raise OSError("probe exploded")

    flaky = Flaky("local", local=True)
    remote = FakeBackend("remote", local=False)
    outcome = BackendChain([flaky, remote]).translate(TranslationRequest(text="你好"))

    assert flaky.calls == []
    assert outcome.result.provider == "remote"
