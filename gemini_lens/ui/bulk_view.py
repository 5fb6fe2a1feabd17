from __future__ import annotations

import logging
from collections.abc import Callable

import streamlit as st

from gemini_lens.config.loader import LensConfig
from gemini_lens.services.archive import ExportError, build_archive
from gemini_lens.services.pipeline import BulkGenerationPipeline
from gemini_lens.services.state import (
    BulkFormState,
    can_start,
    current_job,
    ingest_upload,
    reset_source,
    select_filename_column,
    select_prompt_column,
    set_baseline_prompt,
)
from gemini_lens.sheets.reader import SUPPORTED_EXTENSIONS

UPLOAD_ID_KEY = "bulk_upload_id"
ARCHIVE_KEY = "bulk_archive"
WATCHING_KEY = "bulk_watching"
REFRESH_SECONDS = 1.0
GRID_COLUMNS = 3

Commit = Callable[[BulkFormState], None]


def _data_source(state: BulkFormState, pipeline: BulkGenerationPipeline, commit: Commit) -> BulkFormState:
    st.subheader("Data Source")
    processing = pipeline.is_processing

    if not state.has_data:
        uploaded = st.file_uploader(
            "Upload .xlsx, .xls or .csv",
            type=sorted(ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS),
            key="bulk_upload",
        )
        if uploaded is not None and uploaded.file_id != st.session_state.get(UPLOAD_ID_KEY):
            st.session_state[UPLOAD_ID_KEY] = uploaded.file_id
            state = ingest_upload(state, uploaded.getvalue(), uploaded.name, pipeline.log)
            if state.has_data:
                commit(state)
                st.rerun()
        return state

    info_col, reset_col = st.columns([3, 1])
    info_col.write(f"{len(state.rows)} rows loaded from {state.source_name}")
    if reset_col.button("Reset", disabled=processing):
        pipeline.reset()
        st.session_state.pop(ARCHIVE_KEY, None)
        return reset_source(state)

    columns = list(state.columns)
    prompt_column = st.selectbox(
        "Prompt Column",
        columns,
        index=columns.index(state.prompt_column) if state.prompt_column in columns else 0,
        disabled=processing,
    )
    state = select_prompt_column(state, prompt_column)
    filename_column = st.selectbox(
        "Filename Column",
        columns,
        index=columns.index(state.filename_column) if state.filename_column in columns else 0,
        disabled=processing,
    )
    return select_filename_column(state, filename_column)


def _configuration(state: BulkFormState, pipeline: BulkGenerationPipeline, commit: Commit) -> BulkFormState:
    st.subheader("Configuration")
    processing = pipeline.is_processing
    baseline = st.text_area(
        "Baseline Style Prompt",
        value=state.baseline_prompt,
        placeholder="e.g. Studio lighting, white background...",
        help="Prepended to every row prompt for catalog consistency.",
        disabled=processing,
    )
    state = set_baseline_prompt(state, baseline)

    if not processing:
        if st.button("Start Generation", type="primary", disabled=not can_start(state)):
            st.session_state.pop(ARCHIVE_KEY, None)
            worker = pipeline.start_background(
                state.rows, current_job(state), source_name=state.source_name or ""
            )
            if worker is not None:
                st.session_state[WATCHING_KEY] = True
                commit(state)
                st.rerun()
    elif st.button("Stop"):
        pipeline.request_stop()
    return state


def _progress_panel(pipeline: BulkGenerationPipeline) -> None:
    status = pipeline.status
    label = status.current_action or "Progress"
    st.progress(status.fraction, text=f"{label} ({status.completed} / {status.total})")

    entries = pipeline.log.entries()
    with st.container(height=200):
        if not entries:
            st.caption("Waiting to start...")
        for entry in entries:
            st.text(entry)

    results = pipeline.results
    st.subheader(f"Generated Assets ({len(results)})" if results else "Output Preview")
    if not results:
        st.caption("No images generated yet")
    for start in range(0, len(results), GRID_COLUMNS):
        cols = st.columns(GRID_COLUMNS)
        for col, res in zip(cols, results[start:start + GRID_COLUMNS], strict=False):
            col.image(res.payload.data, caption=res.file_name, width="stretch")

    # Run ended while this panel was auto-refreshing: redraw the whole page so
    # the form and download controls are enabled again.
    if st.session_state.get(WATCHING_KEY) and not status.is_processing:
        st.session_state[WATCHING_KEY] = False
        st.rerun()


def _archive_download(pipeline: BulkGenerationPipeline, cfg: LensConfig) -> None:
    results = pipeline.results
    if not results or pipeline.is_processing:
        return

    result_ids = tuple(r.id for r in results)
    cached = st.session_state.get(ARCHIVE_KEY)
    if cached is None or cached[0] != result_ids:
        if st.button("Prepare ZIP"):
            pipeline.log.append("Preparing ZIP download...")
            try:
                archive = build_archive(results, folder=cfg.archive_folder)
            except ExportError as e:
                pipeline.log.append(f"Error generating ZIP file: {e}", logging.ERROR)
                return
            st.session_state[ARCHIVE_KEY] = (result_ids, archive)
            cached = st.session_state[ARCHIVE_KEY]
        else:
            return

    st.download_button(
        "Download ZIP",
        data=cached[1],
        file_name=cfg.archive_name,
        mime="application/zip",
        on_click=pipeline.log.append,
        args=("ZIP file downloaded successfully.",),
    )


def render_bulk_view(
    state: BulkFormState,
    pipeline: BulkGenerationPipeline,
    cfg: LensConfig,
    commit: Commit,
) -> BulkFormState:
    """Draw the bulk generator and return the form state after this run.

    ``commit`` stores a form state in the session; it is called before any
    full-page rerun so the change survives it.
    """
    st.header("Bulk Product Generator")
    st.caption("Upload a product list (Excel/CSV) to auto-generate images for your catalog.")

    setup_col, output_col = st.columns([1, 2])
    with setup_col:
        state = _data_source(state, pipeline, commit)
        state = _configuration(state, pipeline, commit)

    with output_col:
        _archive_download(pipeline, cfg)
        refresh = REFRESH_SECONDS if pipeline.is_processing else None
        st.fragment(run_every=refresh)(_progress_panel)(pipeline)

    return state
