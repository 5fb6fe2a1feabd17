from __future__ import annotations

import base64
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from gemini_lens.cli.__main__ import UI_SCRIPT
from gemini_lens.models.generated_image import ImagePayload
from gemini_lens.services.editor import EditorState
from gemini_lens.services.state import AppState

"""Smoke tests for the Streamlit shell (no network: the client is only built)."""


@pytest.fixture()
def no_api_key(monkeypatch):
    for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_app_requires_api_key(temp_workdir: Path, no_api_key):
    at = AppTest.from_file(str(UI_SCRIPT), default_timeout=60)
    at.run()
    assert not at.exception
    assert at.error[0].value.startswith("No API key found")


def test_app_renders_editor_by_default(temp_workdir: Path, no_api_key, monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    at = AppTest.from_file(str(UI_SCRIPT), default_timeout=60)
    at.run()
    assert not at.exception
    assert at.title[0].value == "Gemini Lens"
    assert at.header[0].value == "AI Magic Editor"
    assert at.info[0].value == "Your creation will appear here"


def test_app_switches_to_bulk_mode(temp_workdir: Path, no_api_key, monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    at = AppTest.from_file(str(UI_SCRIPT), default_timeout=60)
    at.run()
    at.radio[0].set_value(at.radio[0].options[1]).run()
    assert not at.exception
    assert at.header[0].value == "Bulk Product Generator"


PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def test_editor_shows_source_and_result_images(temp_workdir: Path, no_api_key, monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    pixel = ImagePayload(data=PIXEL_PNG, mime_type="image/png")
    at = AppTest.from_file(str(UI_SCRIPT), default_timeout=60)
    at.session_state["app_state"] = AppState(
        editor=EditorState(source=pixel, source_name="pixel.png", prompt="make it snow", result=pixel)
    )
    at.run()
    assert not at.exception
    assert [s.value for s in at.subheader] == ["Source Image", "Result"]
    assert not at.info
