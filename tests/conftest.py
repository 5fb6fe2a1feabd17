# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from gemini_lens.models.generated_image import ImagePayload
from gemini_lens.models.row_record import RowRecord
from gemini_lens.remote.client import GenerationError


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """model: gemini-test-image
baseline_prompt: "studio lighting"
log_capacity: 10
archive_name: catalog.zip
archive_folder: catalog-images
edited_file_name: edited.png
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "lens.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_xlsx(sheets: dict[str, list[dict]]) -> bytes:
    """Build an in-memory workbook; sheet order follows the dict order."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, records in sheets.items():
            pd.DataFrame(records).to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


@pytest.fixture()
def catalog_rows() -> list[RowRecord]:
    """Three rows: two good ones around a row with an empty prompt."""
    return [
        RowRecord(row_number=1, values={"Name": "A1", "Desc": "red sneaker"}),
        RowRecord(row_number=2, values={"Name": "X", "Desc": ""}),
        RowRecord(row_number=3, values={"Name": "B2", "Desc": "blue mug"}),
    ]


class FakeGenerator:
    """Stand-in for ImageGenerationClient.generate_image.

    Prompts containing any of ``fail_on`` raise GenerationError; every call is
    recorded in ``prompts``. ``on_call`` runs before each answer, which lets a
    test cancel a run while a row is "in flight".
    """

    def __init__(self, fail_on: tuple[str, ...] = (), on_call=None) -> None:
        self.fail_on = fail_on
        self.on_call = on_call
        self.prompts: list[str] = []

    def generate_image(self, prompt: str) -> ImagePayload:
        self.prompts.append(prompt)
        if self.on_call is not None:
            self.on_call(len(self.prompts))
        if any(marker in prompt for marker in self.fail_on):
            raise GenerationError("quota exceeded")
        return ImagePayload(data=f"png:{prompt}".encode(), mime_type="image/png")


@pytest.fixture()
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def generator_factory():
    return FakeGenerator


@pytest.fixture()
def xlsx_bytes():
    return make_xlsx
