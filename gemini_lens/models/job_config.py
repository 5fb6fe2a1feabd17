from __future__ import annotations

import re
from dataclasses import dataclass

"""Generation job configuration for a bulk run.

The job is captured as a frozen dataclass when a run starts, so edits made to
the form while the pipeline is working never leak into the run in progress.
"""

__all__ = [
    "DEFAULT_BASELINE_PROMPT",
    "GenerationJobConfig",
    "compose_prompt",
    "sanitize_file_name",
]

DEFAULT_BASELINE_PROMPT = "Professional product photography, studio lighting, white background, 4k"

# Anything outside letters, digits, underscore, hyphen and space
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_\- ]")


def compose_prompt(baseline_prompt: str, row_prompt: str) -> str:
    """Join the style prefix and the row prompt as ``"<baseline>. <row>"``.

    With an empty baseline the row prompt is returned unchanged.
    """
    if baseline_prompt:
        return f"{baseline_prompt}. {row_prompt}"
    return row_prompt


def sanitize_file_name(name: str, fallback: str) -> str:
    """Make ``name`` safe to use as an archive entry base name.

    Every unsafe character becomes ``_`` and surrounding whitespace is
    trimmed. If nothing is left, ``fallback`` is used instead.
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("_", name).strip()
    return safe or fallback


@dataclass(frozen=True)
class GenerationJobConfig:
    """Column mapping and style prefix for one bulk run."""
    prompt_column: str
    filename_column: str
    baseline_prompt: str = DEFAULT_BASELINE_PROMPT

    @property
    def is_complete(self) -> bool:
        return bool(self.prompt_column) and bool(self.filename_column)

    def compose_prompt(self, row_prompt: str) -> str:
        return compose_prompt(self.baseline_prompt, row_prompt)
