from __future__ import annotations

from ..models.run_result import BulkRunResult

"""Summary line rendering for bulk runs.

Format::

    SUMMARY rows={completed}/{total} generated={n} skipped={n} failed={n} state={state} elapsed_sec={s}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for very fast (mocked) runs
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: BulkRunResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from gemini_lens.models import ProcessingStatus, RunState
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = BulkRunResult(
        ...     state=RunState.COMPLETED,
        ...     status=ProcessingStatus(total=3, completed=3),
        ...     results=(), skipped_rows=3, start_time=start, end_time=end,
        ... )
        >>> render_summary_line(result)
        'SUMMARY rows=3/3 generated=0 skipped=3 failed=0 state=completed elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.status.completed}/{result.status.total} "
        f"generated={result.generated} "
        f"skipped={result.skipped_rows} "
        f"failed={result.failed} "
        f"state={result.state.value} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
