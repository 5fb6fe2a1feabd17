from __future__ import annotations

import json
import re
from pathlib import Path

from gemini_lens.logging.error_log import ErrorLogBuffer
from gemini_lens.models.error_record import ErrorRecord


def _rec(row: int) -> ErrorRecord:
    return ErrorRecord.create(source="catalog.csv", row=row, error_type="GENERATION_ERROR", message=f"row {row}")


def test_flush_without_records_writes_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_flush_writes_json_lines(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    buf.append(_rec(1))
    buf.extend([_rec(2), _rec(3)])
    path = buf.flush()
    assert path is not None
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["row"] for line in lines] == [1, 2, 3]


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(_rec(1))
    first = buf.flush()
    buf.append(_rec(2))
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2


def test_default_dir_is_logs_under_cwd(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(_rec(1))
    path = buf.flush()
    assert path.parent.resolve() == (temp_workdir / "logs").resolve()
