from __future__ import annotations
from .base import BackendError, Translator
from tingyi.contracts import TranslationRequest, TranslationResult

class ArgosTranslator(Translator):
    """In-process zh->en model; an alternative to the local HTTP server."""

    is_local = True

    def __init__(self, from_code: str = "zh", to_code: str = "en", auto_install: bool = True):
        self.from_code = from_code
        self.to_code = to_code
        self.auto_install = auto_install
        self._installed = False

    @property
    def name(self) -> str:
        return "argos"

    def _has_pair(self) -> bool:
        import argostranslate.translate

        codes = {lang.code for lang in argostranslate.translate.get_installed_languages()}
        return self.from_code in codes and self.to_code in codes

    def _install_pair(self) -> None:
        import argostranslate.package

        argostranslate.package.update_package_index()
        for pkg in argostranslate.package.get_available_packages():
            if pkg.from_code == self.from_code and pkg.to_code == self.to_code:
                argostranslate.package.install_from_path(pkg.download())
                return
        raise BackendError(f"No Argos package found for {self.from_code}->{self.to_code}")

    def is_ready(self) -> bool:
        # A missing model is downloaded on first use when auto_install is on.
        if self._installed or self.auto_install:
            return True
        try:
            self._installed = self._has_pair()
        except ImportError:
            return False
        return self._installed

    def translate(self, req: TranslationRequest) -> TranslationResult:
        if not self._installed:
            if not self._has_pair():
                if not self.auto_install:
                    raise BackendError("Argos model not installed and auto_install=False")
                self._install_pair()
            self._installed = True

        import argostranslate.translate

        en = argostranslate.translate.translate(req.text, self.from_code, self.to_code).strip()
        if not en:
            raise BackendError("Argos returned no text")
        return TranslationResult(text=en, context="Local model translation", provider=self.name)
