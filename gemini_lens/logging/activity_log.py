from __future__ import annotations

import logging
from collections import deque

"""Bounded activity log shown next to the bulk progress bar.

Entries are kept most-recent-first in a capped deque: once ``capacity`` is
reached the oldest entry falls off silently. Every entry is also forwarded to
the ``gemini_lens.activity`` logger so CLI runs get the same lines on stdout.
"""

__all__ = [
    "DEFAULT_LOG_CAPACITY",
    "ActivityLog",
]

DEFAULT_LOG_CAPACITY = 50

logger = logging.getLogger("gemini_lens.activity")


class ActivityLog:
    """Most-recent-first, fixed-capacity list of status strings.

    Only the pipeline and the ingestion handler write to it; the UI reads
    :meth:`entries` snapshots. Single writer, so no locking.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("activity log capacity must be positive")
        self.capacity = capacity
        self._entries: deque[str] = deque(maxlen=capacity)

    def append(self, message: str, level: int = logging.INFO) -> None:
        # appendleft on a full deque drops from the right, i.e. the oldest
        self._entries.appendleft(message)
        logger.log(level, message)

    def entries(self) -> tuple[str, ...]:
        """Snapshot, newest first."""
        return tuple(self._entries)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._entries)
