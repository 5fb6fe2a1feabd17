from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .error_record import ErrorRecord
from .generated_image import GeneratedImage
from .processing_status import ProcessingStatus, RunState

"""Aggregated outcome of one bulk generation run.

Returned by the pipeline when a run ends and rendered by the summary service
as the closing SUMMARY line of the CLI.
"""

__all__ = [
    "BulkRunResult",
]


@dataclass(frozen=True)
class BulkRunResult:
    """Final counters, results and failures of a bulk run."""
    state: RunState
    status: ProcessingStatus
    results: tuple[GeneratedImage, ...]
    skipped_rows: int
    start_time: datetime
    end_time: datetime
    failures: tuple[ErrorRecord, ...] = field(default_factory=tuple)

    @property
    def generated(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def stopped(self) -> bool:
        return self.state is RunState.STOPPED
