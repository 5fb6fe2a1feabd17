from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Protocol

from ..models.generated_image import ImagePayload
from ..remote.client import GenerationError

"""Single-image editor state and its transitions.

The editor holds one source image and at most one result. ``run_edit`` sends
exactly one request; a failure turns into the banner text shown under the
result panel and is not retried.
"""

__all__ = [
    "DEFAULT_EDIT_ERROR",
    "EditorState",
    "ImageEditor",
    "select_source",
    "clear_source",
    "set_prompt",
    "can_edit",
    "run_edit",
]

DEFAULT_EDIT_ERROR = "Failed to generate image. Please try again."

logger = logging.getLogger(__name__)


class ImageEditor(Protocol):
    def edit_image(self, image_data: bytes, mime_type: str, prompt: str) -> ImagePayload: ...


@dataclass(frozen=True)
class EditorState:
    source: ImagePayload | None = None
    source_name: str | None = None
    prompt: str = ""
    result: ImagePayload | None = None
    error: str | None = None


def select_source(state: EditorState, data: bytes, mime_type: str, name: str) -> EditorState:
    """New source image; any previous result and error are dropped."""
    return replace(
        state,
        source=ImagePayload(data=data, mime_type=mime_type),
        source_name=name,
        result=None,
        error=None,
    )


def clear_source(state: EditorState) -> EditorState:
    return replace(state, source=None, source_name=None, result=None, prompt="")


def set_prompt(state: EditorState, prompt: str) -> EditorState:
    return replace(state, prompt=prompt)


def can_edit(state: EditorState) -> bool:
    return state.source is not None and bool(state.prompt.strip())


def run_edit(state: EditorState, client: ImageEditor) -> EditorState:
    """Send the source image and prompt to the model once.

    Returns the state unchanged when there is no source or the prompt is
    blank. Otherwise the returned state carries either the new result or an
    error message, never both.
    """
    if state.source is None or not can_edit(state):
        return state

    try:
        result = client.edit_image(state.source.data, state.source.mime_type, state.prompt)
    except GenerationError as e:
        logger.error("edit failed for %s: %s", state.source_name, e)
        return replace(state, error=str(e) or DEFAULT_EDIT_ERROR)

    logger.info("edit succeeded for %s", state.source_name)
    return replace(state, result=result, error=None)
