from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RuntimeState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    LISTENING = "listening"
    RESTARTING = "restarting"
    ERROR = "error"


@dataclass
class RuntimeStateTracker:
    state: RuntimeState = RuntimeState.STOPPED
    last_error: str | None = None
    restarts: int = 0

    def set_starting(self) -> None:
        self.state = RuntimeState.STARTING
        self.last_error = None

    def set_listening(self) -> None:
        self.state = RuntimeState.LISTENING

    def set_restarting(self, detail: str | None = None) -> None:
        if self.state in (RuntimeState.LISTENING, RuntimeState.STARTING):
            self.state = RuntimeState.RESTARTING
            self.restarts += 1
            if detail:
                self.last_error = detail

    def set_stopped(self) -> None:
        self.state = RuntimeState.STOPPED

    def set_error(self, detail: str) -> None:
        self.state = RuntimeState.ERROR
        self.last_error = detail

    @property
    def is_active(self) -> bool:
        return self.state in (RuntimeState.STARTING, RuntimeState.LISTENING, RuntimeState.RESTARTING)
