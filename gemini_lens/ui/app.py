"""Streamlit shell for Gemini Lens.

Run:
  gemini-lens ui
  # or
  streamlit run gemini_lens/ui/app.py

Requirements:
  - GOOGLE_API_KEY (or GEMINI_API_KEY / API_KEY) in the environment or .env
"""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from gemini_lens.config.loader import ConfigError, LensConfig, load_config, resolve_api_key
from gemini_lens.logging.init import setup_logging
from gemini_lens.remote.client import ImageGenerationClient
from gemini_lens.services.pipeline import BulkGenerationPipeline
from gemini_lens.services.state import AppMode, AppState, BulkFormState, switch_mode
from gemini_lens.ui.bulk_view import render_bulk_view
from gemini_lens.ui.editor_view import render_editor_view

STATE_KEY = "app_state"
PIPELINE_KEY = "pipeline"

MODE_LABELS = {
    AppMode.EDITOR: "Image Editor",
    AppMode.BULK: "Bulk Generator",
}


@st.cache_resource
def _client(api_key: str, model: str) -> ImageGenerationClient:
    return ImageGenerationClient(api_key, model=model)


def _session_defaults(cfg: LensConfig, client: ImageGenerationClient) -> None:
    """Initialize per-browser-session objects once."""
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = AppState(bulk=BulkFormState(baseline_prompt=cfg.baseline_prompt))
    if PIPELINE_KEY not in st.session_state:
        st.session_state[PIPELINE_KEY] = BulkGenerationPipeline(client, log_capacity=cfg.log_capacity)


def _commit_bulk(bulk: BulkFormState) -> None:
    st.session_state[STATE_KEY] = replace(st.session_state[STATE_KEY], bulk=bulk)


def main() -> None:
    st.set_page_config(page_title="Gemini Lens", page_icon="⚡", layout="wide")
    load_dotenv(dotenv_path=Path(".env"), override=False)
    logger = setup_logging()

    try:
        cfg = load_config()
    except ConfigError as e:
        logger.error(f"config: {e}")
        st.error(f"Configuration error: {e}")
        st.stop()

    api_key = resolve_api_key()
    if api_key is None:
        st.error("No API key found. Set GOOGLE_API_KEY (or GEMINI_API_KEY / API_KEY) and reload.")
        st.stop()

    client = _client(api_key, cfg.model)
    _session_defaults(cfg, client)
    state: AppState = st.session_state[STATE_KEY]
    pipeline: BulkGenerationPipeline = st.session_state[PIPELINE_KEY]

    st.title("Gemini Lens")
    modes = list(MODE_LABELS)
    mode = st.radio(
        "Mode",
        modes,
        index=modes.index(state.mode),
        format_func=MODE_LABELS.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    state = switch_mode(state, mode)
    st.session_state[STATE_KEY] = state

    if state.mode is AppMode.EDITOR:
        state = replace(state, editor=render_editor_view(state.editor, client, cfg))
    else:
        state = replace(state, bulk=render_bulk_view(state.bulk, pipeline, cfg, _commit_bulk))
    st.session_state[STATE_KEY] = state

    st.divider()
    st.caption(f"Powered by Google Gemini ({cfg.model})")


main()
