from __future__ import annotations

from enum import Enum

from tickprint.exceptions.core import LifecycleError


class RuntimePhase(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    FINISHED = "finished"


_ALLOWED: dict[RuntimePhase, frozenset[RuntimePhase]] = {
    RuntimePhase.STOPPED: frozenset({RuntimePhase.RUNNING}),
    RuntimePhase.RUNNING: frozenset({RuntimePhase.FINISHED}),
    RuntimePhase.FINISHED: frozenset(),
}


class LifecycleGuard:
    """
    Enforces STOPPED -> RUNNING -> FINISHED.

    There is no way back to STOPPED: a driver runs once.
    """

    def __init__(self) -> None:
        self._phase = RuntimePhase.STOPPED

    @property
    def phase(self) -> RuntimePhase:
        return self._phase

    def can_enter(self, phase: RuntimePhase) -> bool:
        return phase in _ALLOWED[self._phase]

    def enter(self, phase: RuntimePhase) -> None:
        if not self.can_enter(phase):
            raise LifecycleError(f"illegal phase transition {self._phase.value} -> {phase.value}")
        self._phase = phase
