from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from gemini_lens.models.row_record import RowRecord

"""Spreadsheet ingestion for bulk catalog runs.

- First row is the header, every following non-blank row is a product row.
- Excel workbooks (.xlsx/.xlsm via openpyxl, legacy .xls via xlrd): only the
  first sheet is read.
- CSV: cells are read as text so SKUs like "00123" keep their zeros.
- Blank cells are left out of the row record, and the column set is the key
  set of the first row record. Later rows are not checked against it.
"""

__all__ = [
    "IngestionError",
    "SheetData",
    "SUPPORTED_EXTENSIONS",
    "read_sheet",
    "read_sheet_file",
    "normalize_frame",
    "default_columns",
]

EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
LEGACY_EXCEL_EXTENSIONS = {".xls"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = EXCEL_EXTENSIONS | LEGACY_EXCEL_EXTENSIONS | CSV_EXTENSIONS

# Substrings that mark a column as a good default for output file names
FILENAME_COLUMN_HINTS = ("name", "sku", "id")


class IngestionError(Exception):
    """Raised when an uploaded spreadsheet cannot be parsed."""


@dataclass
class SheetData:
    source_name: str
    columns: list[str]
    rows: list[RowRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def _read_frame(data: bytes, extension: str) -> pd.DataFrame:
    buffer = io.BytesIO(data)
    if extension in CSV_EXTENSIONS:
        # keep_default_na=False: literal "NA" / "null" stay text
        return pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
    # sheet_name=0 -> first sheet only; .xls workbooks need xlrd
    engine = "xlrd" if extension in LEGACY_EXCEL_EXTENSIONS else "openpyxl"
    return pd.read_excel(buffer, sheet_name=0, engine=engine, keep_default_na=False, na_values=[""])


def _normalize_value(val: Any) -> Any:
    """Turn a pandas cell into a plain Python scalar, or None when blank."""
    if isinstance(val, np.generic):
        val = val.item()
    if val is None:
        return None
    if isinstance(val, float):
        if np.isnan(val):
            return None
        if val.is_integer():
            return int(val)
        return val
    if val is pd.NaT:
        return None
    if isinstance(val, str) and val == "":
        return None
    return val


def normalize_frame(df: pd.DataFrame, source_name: str) -> SheetData:
    """Build row records from a DataFrame whose header is already applied.

    Steps:
    1. Header names are stripped strings
    2. Fully blank rows are skipped
    3. Blank cells are omitted from each record
    4. The column set is taken from the first record's keys
    """
    header = [str(c).strip() for c in df.columns.tolist()]
    rows: list[RowRecord] = []
    for position, raw in enumerate(df.itertuples(index=False, name=None), start=1):
        values: dict[str, Any] = {}
        for col, val in zip(header, raw, strict=False):
            normalized = _normalize_value(val)
            if normalized is None:
                continue
            values[col] = normalized
        if not values:
            continue
        rows.append(RowRecord(row_number=position, values=values))

    columns = rows[0].columns if rows else []
    return SheetData(source_name=source_name, columns=columns, rows=rows)


def read_sheet(data: bytes, file_name: str) -> SheetData:
    """Parse uploaded spreadsheet bytes.

    Parameters
    ----------
    data: raw file contents
    file_name: original name, used to pick the format by extension

    Raises
    ------
    IngestionError: unsupported extension, empty or corrupt file
    """
    extension = Path(file_name).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise IngestionError(
            f"unsupported file type '{extension or file_name}'; use one of {sorted(SUPPORTED_EXTENSIONS)}"
        )
    if not data:
        raise IngestionError(f"{file_name} is empty")
    try:
        df = _read_frame(data, extension)
    except pd.errors.EmptyDataError as e:
        raise IngestionError(f"{file_name} has no header row") from e
    except Exception as e:  # openpyxl, xlrd and the csv engine raise a wide range of types
        raise IngestionError(f"could not parse {file_name}: {e}") from e
    return normalize_frame(df, source_name=file_name)


def read_sheet_file(path: Path) -> SheetData:
    """Read a spreadsheet from disk (CLI entry point)."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise IngestionError(f"cannot read {path}: {e}") from e
    return read_sheet(data, path.name)


def default_columns(columns: list[str]) -> tuple[str, str]:
    """Pick default prompt and filename columns.

    The prompt column is the first column. The filename column is the first
    one whose name contains "name", "sku" or "id" (any case), else the first.

    Returns:
        (prompt_column, filename_column), both "" when ``columns`` is empty
    """
    if not columns:
        return "", ""
    prompt_column = columns[0]
    filename_column = next(
        (c for c in columns if any(hint in c.lower() for hint in FILENAME_COLUMN_HINTS)),
        columns[0],
    )
    return prompt_column, filename_column
