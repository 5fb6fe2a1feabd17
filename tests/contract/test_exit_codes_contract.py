from __future__ import annotations

from gemini_lens.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL

"""Exit code contract: 0 all rows ok, 2 partial failure or stopped, 1 fatal."""


def test_exit_code_values():
    assert EXIT_SUCCESS_ALL == 0
    assert EXIT_PARTIAL_FAILURE == 2
    assert EXIT_FATAL == 1
