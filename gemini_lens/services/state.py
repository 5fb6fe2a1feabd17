from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from ..logging.activity_log import ActivityLog
from ..models.job_config import DEFAULT_BASELINE_PROMPT, GenerationJobConfig
from ..models.row_record import RowRecord
from ..sheets.reader import IngestionError, SheetData, default_columns, read_sheet
from .editor import EditorState

"""Application state for the browser UI.

Everything the views edit lives in frozen dataclasses. Each user action is a
function taking the current state and returning the next one; the Streamlit
script stores the returned object back in the session.
"""

__all__ = [
    "AppMode",
    "AppState",
    "BulkFormState",
    "switch_mode",
    "apply_sheet",
    "ingest_upload",
    "select_prompt_column",
    "select_filename_column",
    "set_baseline_prompt",
    "reset_source",
    "can_start",
    "current_job",
]

PARSE_ERROR_MESSAGE = "Error parsing Excel file. Please ensure it is a valid .xlsx or .csv"


class AppMode(Enum):
    EDITOR = "EDITOR"
    BULK = "BULK"


@dataclass(frozen=True)
class BulkFormState:
    """Loaded data source plus the user's job settings."""
    source_name: str | None = None
    rows: tuple[RowRecord, ...] = ()
    columns: tuple[str, ...] = ()
    prompt_column: str = ""
    filename_column: str = ""
    baseline_prompt: str = DEFAULT_BASELINE_PROMPT

    @property
    def has_data(self) -> bool:
        return bool(self.rows)


@dataclass(frozen=True)
class AppState:
    mode: AppMode = AppMode.EDITOR
    editor: EditorState = field(default_factory=EditorState)
    bulk: BulkFormState = field(default_factory=BulkFormState)


def switch_mode(state: AppState, mode: AppMode) -> AppState:
    if state.mode is mode:
        return state
    return replace(state, mode=mode)


def apply_sheet(state: BulkFormState, sheet: SheetData) -> BulkFormState:
    """Take over a parsed sheet and pick default columns.

    An empty sheet leaves the previous data in place.
    """
    if not sheet.rows:
        return state
    prompt_column, filename_column = default_columns(sheet.columns)
    return replace(
        state,
        source_name=sheet.source_name,
        rows=tuple(sheet.rows),
        columns=tuple(sheet.columns),
        prompt_column=prompt_column,
        filename_column=filename_column,
    )


def ingest_upload(state: BulkFormState, data: bytes, file_name: str, log: ActivityLog) -> BulkFormState:
    """Parse an uploaded file and log the outcome.

    On any parse failure the diagnostic goes to the activity log and the
    previously loaded rows are kept.
    """
    try:
        sheet = read_sheet(data, file_name)
    except IngestionError as e:
        log.append(f"{PARSE_ERROR_MESSAGE} ({e})", logging.ERROR)
        return state
    if not sheet.rows:
        log.append(f"No data rows found in {file_name}", logging.WARNING)
        return state
    log.append(f"Loaded {len(sheet.rows)} rows from {file_name}")
    return apply_sheet(state, sheet)


def select_prompt_column(state: BulkFormState, column: str) -> BulkFormState:
    if column not in state.columns:
        return state
    return replace(state, prompt_column=column)


def select_filename_column(state: BulkFormState, column: str) -> BulkFormState:
    if column not in state.columns:
        return state
    return replace(state, filename_column=column)


def set_baseline_prompt(state: BulkFormState, baseline_prompt: str) -> BulkFormState:
    return replace(state, baseline_prompt=baseline_prompt)


def reset_source(state: BulkFormState) -> BulkFormState:
    """Forget the loaded sheet; the baseline prompt is kept."""
    return BulkFormState(baseline_prompt=state.baseline_prompt)


def can_start(state: BulkFormState) -> bool:
    """Start is offered only with rows loaded and both columns chosen."""
    return state.has_data and bool(state.prompt_column) and bool(state.filename_column)


def current_job(state: BulkFormState) -> GenerationJobConfig:
    """Freeze the form into the job passed to the pipeline."""
    return GenerationJobConfig(
        prompt_column=state.prompt_column,
        filename_column=state.filename_column,
        baseline_prompt=state.baseline_prompt,
    )
