from __future__ import annotations
from abc import ABC, abstractmethod
from tingyi.contracts import TranslationRequest, TranslationResult


class TranslatorError(RuntimeError):
    """Base class for backend failures."""


class BackendError(TranslatorError):
    """The backend answered badly: HTTP error, no choices, malformed body."""


class ExtractionError(BackendError):
    """The backend answered but no translation could be recovered."""


class TranslatorConfigError(TranslatorError):
    """The backend cannot be used as configured (e.g. missing API key)."""


class Translator(ABC):
    # Local backends can be switched off by the "prefer local" toggle.
    is_local: bool = False

    @property
    @abstractmethod
    def name(self) -> str: ...

    def is_ready(self) -> bool:
        return True

    @abstractmethod
    def translate(self, req: TranslationRequest) -> TranslationResult: ...
