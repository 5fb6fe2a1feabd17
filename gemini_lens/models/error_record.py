from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for per-row failure logging.

Each bulk row that fails to generate produces one ErrorRecord. The CLI
buffers them and writes JSON Lines with a fixed set of keys; row=-1 marks a
failure that is not tied to a particular row (ingestion, export).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: Spreadsheet (or image) name being processed
        row: Row number (1-based). Use -1 when no row applies
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human-readable error text
    """
    timestamp: str
    source: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(source: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry with exactly the dataclass keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
