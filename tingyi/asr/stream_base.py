from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from tingyi.contracts import TranscriptFragment


class EngineTransientError(RuntimeError):
    """Recoverable engine hiccup (no speech, aborted); the owner restarts the engine."""


class FragmentSource(ABC):
    """Push source of transcript fragments (the speech engine boundary)."""

    def start(self) -> None:
        """(Re)start recognition. Called again after every restart."""

    def stop(self) -> None:
        """Stop recognition; fragments() should end soon after."""

    @abstractmethod
    def fragments(self) -> Iterator[TranscriptFragment]:
        """Yield fragments until the stream ends; raise EngineTransientError on a hiccup."""
        raise NotImplementedError
