from __future__ import annotations

import re

from gemini_lens.models.job_config import GenerationJobConfig
from gemini_lens.models.row_record import RowRecord
from gemini_lens.services.pipeline import BulkGenerationPipeline
from gemini_lens.services.summary import render_summary_line

"""SUMMARY line contract for CLI bulk runs."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY rows=(\d+)/(\d+) generated=(\d+) skipped=(\d+) failed=(\d+) "
    r"state=(completed|stopped) elapsed_sec=\d+(\.\d+)?$"
)


def test_real_run_matches_contract(fake_generator):
    rows = [RowRecord(row_number=1, values={"Name": "A1", "Desc": "red sneaker"})]
    result = BulkGenerationPipeline(fake_generator).run(rows, GenerationJobConfig("Desc", "Name"))
    m = SUMMARY_PATTERN.match(render_summary_line(result))
    assert m
    assert m.group(1, 2, 3) == ("1", "1", "1")
