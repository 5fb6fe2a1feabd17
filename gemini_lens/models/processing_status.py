from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

"""ProcessingStatus domain model and RunState enum for bulk generation.

The pipeline never mutates a status in place: each change produces a new
frozen instance that replaces the previous one, so a reader on another thread
always sees a whole record.
"""

__all__ = [
    "RunState",
    "ProcessingStatus",
    "ACTION_COMPLETED",
    "ACTION_STOPPED",
]

ACTION_COMPLETED = "Completed!"
ACTION_STOPPED = "Stopped"


class RunState(Enum):
    """Lifecycle of a bulk run.

    State transitions: idle → running → (completed | stopped), and back to
    idle when the data source is reset.
    """
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ProcessingStatus:
    """Progress counters shown by the bulk view and the CLI progress bar."""
    total: int = 0
    completed: int = 0
    is_processing: bool = False
    current_action: str | None = None

    @classmethod
    def started(cls, total: int) -> ProcessingStatus:
        return cls(total=total, completed=0, is_processing=True)

    def advance(self) -> ProcessingStatus:
        """One more row handled, whatever its outcome."""
        return replace(self, completed=min(self.completed + 1, self.total))

    def with_action(self, action: str | None) -> ProcessingStatus:
        return replace(self, current_action=action)

    def finished(self, stopped: bool) -> ProcessingStatus:
        return replace(
            self,
            is_processing=False,
            current_action=ACTION_STOPPED if stopped else ACTION_COMPLETED,
        )

    @property
    def fraction(self) -> float:
        """Completed share in [0, 1]; 0 when nothing is queued."""
        if self.total <= 0:
            return 0.0
        return self.completed / self.total
