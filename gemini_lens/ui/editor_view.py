from __future__ import annotations

import streamlit as st

from gemini_lens.config.loader import LensConfig
from gemini_lens.remote.client import ImageGenerationClient, is_image_media_type
from gemini_lens.services.editor import (
    EditorState,
    can_edit,
    clear_source,
    run_edit,
    select_source,
    set_prompt,
)

UPLOAD_ID_KEY = "editor_upload_id"
PROMPT_KEY = "editor_prompt"
IMAGE_TYPES = ["png", "jpg", "jpeg", "webp", "gif", "bmp", "heic"]


def render_editor_view(state: EditorState, client: ImageGenerationClient, cfg: LensConfig) -> EditorState:
    """Draw the editor and return the state after this script run."""
    st.header("AI Magic Editor")
    st.caption("Upload an image and describe the change you want.")

    source_col, result_col = st.columns(2)

    with source_col:
        st.subheader("Source Image")
        uploaded = st.file_uploader(
            "Drop an image here or select a file",
            type=IMAGE_TYPES,
            key="editor_upload",
        )
        if uploaded is not None and uploaded.file_id != st.session_state.get(UPLOAD_ID_KEY):
            st.session_state[UPLOAD_ID_KEY] = uploaded.file_id
            if is_image_media_type(uploaded.type):
                state = select_source(state, uploaded.getvalue(), uploaded.type, uploaded.name)
            else:
                st.warning(f"{uploaded.name} is not an image")

        if state.source is not None:
            st.image(state.source.data, caption=state.source_name, width="stretch")
            if st.button("Clear", key="editor_clear"):
                state = clear_source(state)
                # the widget is created below, so its value can still be reset here
                st.session_state[PROMPT_KEY] = ""

        st.session_state.setdefault(PROMPT_KEY, state.prompt)
        prompt = st.text_input(
            "Edit instruction",
            key=PROMPT_KEY,
            placeholder="e.g., 'Add a vintage film filter' or 'Make it snow'",
        )
        state = set_prompt(state, prompt)

        if st.button("Generate", type="primary", disabled=not can_edit(state)):
            with st.spinner("Magic..."):
                state = run_edit(state, client)

    with result_col:
        st.subheader("Result")
        if state.result is not None:
            st.image(state.result.data, width="stretch")
            st.download_button(
                "Download",
                data=state.result.data,
                file_name=cfg.edited_file_name,
                mime=state.result.mime_type,
            )
        else:
            st.info("Your creation will appear here")

        if state.error:
            st.error(state.error)

    return state
