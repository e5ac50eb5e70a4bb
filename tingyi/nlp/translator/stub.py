from __future__ import annotations
from .base import Translator
from tingyi.contracts import TranslationRequest, TranslationResult

class StubTranslator(Translator):
    is_local = True

    @property
    def name(self) -> str:
        return "stub"

    def translate(self, req: TranslationRequest) -> TranslationResult:
        # Deterministic, test-friendly
        en = f"[EN] {req.text}"
        return TranslationResult(text=en, context="Stub translation", provider=self.name)
