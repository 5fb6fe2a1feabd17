from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

"""RowRecord model for catalog spreadsheets.

A RowRecord is one ingested spreadsheet row: the original row number plus a
mapping from column name to the scalar read from that cell. Blank cells are
not present in ``values`` at all, so lookups on a missing column are normal
and coerce to an empty string.
"""

__all__ = [
    "RowRecord",
    "coerce_text",
]


def coerce_text(value: Any) -> str:
    """Render a cell value as prompt/filename text.

    Falsy cells (None, False, 0, 0.0) and NaN become "", so a row whose
    prompt cell holds 0 is skipped like a blank one. Integral floats lose
    their ".0" so that a SKU read as 1042.0 stays "1042".
    """
    if value is None or value is False:
        return ""
    if value is True:
        return "true"
    if isinstance(value, (int, float)) and value == 0:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


@dataclass(frozen=True)
class RowRecord:
    """Logical representation of a single catalog row after ingestion.

    ``row_number`` is the 1-based data row position in the source sheet
    (the header row is not counted).
    """
    row_number: int
    values: dict[str, Any]

    def text(self, column: str) -> str:
        """Cell text for ``column``; missing columns read as ""."""
        return coerce_text(self.values.get(column))

    @property
    def columns(self) -> list[str]:
        return list(self.values.keys())
