from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from ..logging.activity_log import DEFAULT_LOG_CAPACITY, ActivityLog
from ..models.error_record import ErrorRecord
from ..models.generated_image import GeneratedImage
from ..models.job_config import GenerationJobConfig, sanitize_file_name
from ..models.processing_status import ProcessingStatus, RunState
from ..models.row_record import RowRecord
from ..models.run_result import BulkRunResult
from ..remote.client import GenerationError, ImageGenerator, NoImageGeneratedError
from .progress import ProgressTracker

"""Bulk generation pipeline.

Rows are processed strictly one after another: for each row the prompt is
composed, one generation request is made and the outcome is logged. A failing
row is recorded and the run moves on. Stopping is cooperative; the token is
only looked at before a row starts, so a request already in flight always
finishes.
"""

__all__ = [
    "CancellationToken",
    "BulkGenerationPipeline",
    "StatusListener",
]

logger = logging.getLogger(__name__)

StatusListener = Callable[[ProcessingStatus], None]


class CancellationToken:
    """Cooperative stop flag polled at row boundaries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class BulkGenerationPipeline:
    """Sequential controller for one bulk data source.

    Owns the processing status, the result list and the activity log. Those
    are replaced (status, results) or appended (log) only from the thread that
    runs the loop; the UI reads them through the properties below.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        *,
        log: ActivityLog | None = None,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        show_progress: bool | None = False,
        listener: StatusListener | None = None,
    ) -> None:
        self.generator = generator
        self.log = log if log is not None else ActivityLog(log_capacity)
        self.token = CancellationToken()
        self.show_progress = show_progress
        self.listener = listener
        self._status = ProcessingStatus()
        self._results: tuple[GeneratedImage, ...] = ()
        self._state = RunState.IDLE
        self._last_result: BulkRunResult | None = None
        self._worker: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def status(self) -> ProcessingStatus:
        return self._status

    @property
    def results(self) -> tuple[GeneratedImage, ...]:
        return self._results

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._status.is_processing

    @property
    def last_result(self) -> BulkRunResult | None:
        return self._last_result

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    @staticmethod
    def can_start(rows: Sequence[RowRecord], job: GenerationJobConfig) -> bool:
        """Entry guard: rows loaded and both columns chosen."""
        return bool(rows) and job.is_complete

    def request_stop(self) -> None:
        """Ask the running loop to stop once the current row is done."""
        if self.is_processing:
            self.token.cancel()
            self.log.append("Stopping generation after current item finishes...")

    def reset(self) -> None:
        """Drop results and go back to idle. Ignored while a run is active."""
        if self.is_processing:
            logger.debug("reset ignored while processing")
            return
        self._results = ()
        self._set_status(ProcessingStatus())
        self._state = RunState.IDLE
        self._last_result = None

    def start_background(
        self,
        rows: Sequence[RowRecord],
        job: GenerationJobConfig,
        *,
        source_name: str = "",
    ) -> threading.Thread | None:
        """Run the loop on a daemon worker thread (browser UI).

        Returns:
            The started thread, or None when the entry guard refused the run
            or a run is already active
        """
        if self.is_processing or not self.can_start(rows, job):
            return None
        # Mark the run as started before the thread exists so the UI never
        # sees an idle status right after clicking start.
        self._begin(len(rows))
        worker = threading.Thread(
            target=self._run_rows,
            args=(tuple(rows), job, self.token, source_name),
            name="bulk-generation",
            daemon=True,
        )
        self._worker = worker
        worker.start()
        return worker

    def join(self, timeout: float | None = None) -> None:
        if self._worker is not None:
            self._worker.join(timeout)

    def run(
        self,
        rows: Sequence[RowRecord],
        job: GenerationJobConfig,
        token: CancellationToken | None = None,
        *,
        source_name: str = "",
    ) -> BulkRunResult | None:
        """Process every row in order on the calling thread.

        Args:
            rows: Ingested rows, processed in this order
            job: Column mapping and baseline prompt, fixed for the run
            token: Cancellation token; defaults to the pipeline's own
            source_name: Spreadsheet name used in error records

        Returns:
            BulkRunResult, or None when the entry guard refused the run
        """
        if self.is_processing or not self.can_start(rows, job):
            logger.debug("bulk run not started: rows=%d job=%s", len(rows), job)
            return None
        self._begin(len(rows))
        return self._run_rows(tuple(rows), job, token or self.token, source_name)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _set_status(self, status: ProcessingStatus) -> None:
        self._status = status
        if self.listener is not None:
            self.listener(status)

    def _begin(self, total: int) -> None:
        # listener is first called from _run_rows, where a failure is guarded
        self.token.reset()
        self._results = ()
        self._last_result = None
        self._state = RunState.RUNNING
        self._status = ProcessingStatus.started(total)
        self.log.append("Starting bulk generation...")

    def _run_rows(
        self,
        rows: tuple[RowRecord, ...],
        job: GenerationJobConfig,
        token: CancellationToken,
        source_name: str,
    ) -> BulkRunResult:
        start_time = datetime.now(UTC)
        skipped = 0
        failures: list[ErrorRecord] = []
        finished = False

        try:
            self._set_status(self._status)
            with ProgressTracker(len(rows), enabled=self.show_progress) as progress:
                for index, row in enumerate(rows):
                    if token.is_cancelled:
                        self.log.append("Process stopped by user.", logging.WARNING)
                        break

                    product_prompt = row.text(job.prompt_column)
                    product_name = row.text(job.filename_column) or f"image-{index}"

                    if not product_prompt.strip():
                        self.log.append(f"Skipping row {index + 1}: Empty prompt", logging.WARNING)
                        skipped += 1
                        self._set_status(self._status.advance())
                        progress.finish_row()
                        continue

                    full_prompt = job.compose_prompt(product_prompt)
                    self._set_status(self._status.with_action(f"Generating: {product_name}"))
                    progress.start_row(product_name)

                    try:
                        payload = self.generator.generate_image(full_prompt)
                    except Exception as e:  # any row failure is logged and the run goes on
                        self.log.append(f"Failed row {index + 1} ({product_name}): {e}", logging.ERROR)
                        failures.append(
                            ErrorRecord.create(
                                source=source_name,
                                row=row.row_number,
                                error_type=_error_type(e),
                                message=str(e),
                            )
                        )
                    else:
                        result = GeneratedImage.create(
                            payload=payload,
                            prompt=full_prompt,
                            file_name=sanitize_file_name(product_name, fallback=f"image-{index}"),
                            original_name=product_name,
                        )
                        self._results = self._results + (result,)
                        self.log.append(f"Success: {product_name}")

                    self._set_status(self._status.advance())
                    progress.finish_row()
                    progress.set_postfix(
                        ok=len(self._results), failed=len(failures), skipped=skipped
                    )
            finished = True
        finally:
            # An aborted loop (KeyboardInterrupt, failing listener) ends as
            # Stopped so the pipeline never stays in RUNNING.
            stopped = token.is_cancelled or not finished
            if not finished:
                self.log.append("Bulk generation aborted.", logging.ERROR)
            self._state = RunState.STOPPED if stopped else RunState.COMPLETED
            self._status = self._status.finished(stopped)
            token.reset()
            if token is not self.token:
                self.token.reset()

        self._set_status(self._status)
        result = BulkRunResult(
            state=self._state,
            status=self._status,
            results=self._results,
            skipped_rows=skipped,
            start_time=start_time,
            end_time=datetime.now(UTC),
            failures=tuple(failures),
        )
        self._last_result = result
        logger.debug(
            "bulk run finished state=%s generated=%d failed=%d skipped=%d",
            result.state.value, result.generated, result.failed, skipped,
        )
        return result


def _error_type(exc: Exception) -> str:
    if isinstance(exc, NoImageGeneratedError):
        return "NO_IMAGE"
    if isinstance(exc, GenerationError):
        return "GENERATION_ERROR"
    return "UNEXPECTED_ERROR"
