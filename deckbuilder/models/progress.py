"""
Generation progress reporting.

A `ProgressReporter` is written by the generation task and read by the
status endpoint at the same time, so every access goes through a lock.
Setters overwrite; there is no history of earlier values or runs.
"""

from dataclasses import dataclass, field
from enum import Enum
from threading import Lock


class GenerationStatus(str, Enum):
    """Lifecycle status of a generation run."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.DONE, GenerationStatus.ERROR)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time copy of a reporter's fields."""

    phase: str = ""
    status: GenerationStatus = GenerationStatus.NOT_STARTED
    message: str = ""
    percent: float = 0.0


@dataclass
class ProgressReporter:
    """Thread-safe progress state for one generation run."""

    _phase: str = ""
    _status: GenerationStatus = GenerationStatus.NOT_STARTED
    _message: str = ""
    _percent: float = 0.0
    _lock: Lock = field(default_factory=Lock)

    def set_phase(self, phase: str) -> None:
        with self._lock:
            self._phase = phase

    def set_status(self, status: GenerationStatus) -> None:
        with self._lock:
            self._status = status

    def set_message(self, message: str) -> None:
        with self._lock:
            self._message = message

    def set_percent(self, percent: float) -> None:
        """Set completion percentage, clamped to 0..100."""
        with self._lock:
            self._percent = min(100.0, max(0.0, float(percent)))

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                phase=self._phase,
                status=self._status,
                message=self._message,
                percent=self._percent,
            )
