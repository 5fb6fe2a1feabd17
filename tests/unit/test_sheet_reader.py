from __future__ import annotations

import struct
from pathlib import Path

import pandas as pd
import pytest

from gemini_lens.sheets.reader import (
    IngestionError,
    default_columns,
    normalize_frame,
    read_sheet,
    read_sheet_file,
)


def test_read_csv_keeps_text_and_order():
    data = b"SKU,Description\n00123,red sneaker\n00456,blue mug\n"
    sheet = read_sheet(data, "catalog.csv")
    assert sheet.source_name == "catalog.csv"
    assert sheet.columns == ["SKU", "Description"]
    assert [r.values for r in sheet.rows] == [
        {"SKU": "00123", "Description": "red sneaker"},
        {"SKU": "00456", "Description": "blue mug"},
    ]
    assert [r.row_number for r in sheet.rows] == [1, 2]


def test_csv_literal_na_is_text():
    sheet = read_sheet(b"Name,Desc\nNA,null\n", "catalog.CSV")
    assert sheet.rows[0].values == {"Name": "NA", "Desc": "null"}


def test_read_xlsx_first_sheet_only(xlsx_bytes):
    data = xlsx_bytes(
        {
            "Products": [{"Name": "Mug", "Price": 12.5, "Qty": 3}],
            "Other": [{"Ignored": "yes"}],
        }
    )
    sheet = read_sheet(data, "catalog.xlsx")
    assert sheet.columns == ["Name", "Price", "Qty"]
    assert len(sheet.rows) == 1
    row = sheet.rows[0]
    assert row.values == {"Name": "Mug", "Price": 12.5, "Qty": 3}
    assert row.text("Qty") == "3"


def test_blank_cells_are_omitted_and_columns_come_from_first_row(xlsx_bytes):
    data = xlsx_bytes(
        {
            "Sheet1": [
                {"Name": "A1", "Desc": None, "SKU": 1},
                {"Name": "B2", "Desc": "blue mug", "SKU": 2},
            ]
        }
    )
    sheet = read_sheet(data, "catalog.xlsx")
    assert sheet.columns == ["Name", "SKU"]
    assert sheet.rows[0].values == {"Name": "A1", "SKU": 1}
    assert sheet.rows[1].text("Desc") == "blue mug"


def test_fully_blank_rows_are_skipped():
    df = pd.DataFrame({"Name": ["A1", None, "B2"], "Desc": ["x", None, "y"]})
    sheet = normalize_frame(df, "frame")
    assert [r.text("Name") for r in sheet.rows] == ["A1", "B2"]
    assert [r.row_number for r in sheet.rows] == [1, 3]


def test_header_only_file_has_no_rows():
    sheet = read_sheet(b"Name,Desc\n", "empty.csv")
    assert sheet.rows == []
    assert sheet.columns == []


@pytest.mark.parametrize("name", ["catalog.txt", "catalog.ods", "catalog"])
def test_unsupported_extension(name):
    with pytest.raises(IngestionError) as e:
        read_sheet(b"a,b\n1,2\n", name)
    assert "unsupported file type" in str(e.value)


def test_empty_bytes():
    with pytest.raises(IngestionError):
        read_sheet(b"", "catalog.csv")


def test_corrupt_workbook():
    with pytest.raises(IngestionError) as e:
        read_sheet(b"this is not a zip archive", "catalog.xlsx")
    assert "could not parse catalog.xlsx" in str(e.value)


def test_read_sheet_file(tmp_path: Path):
    p = tmp_path / "catalog.csv"
    p.write_text("Name,Desc\nA1,red sneaker\n", encoding="utf-8")
    sheet = read_sheet_file(p)
    assert sheet.source_name == "catalog.csv"
    assert len(sheet) == 1


def test_read_sheet_file_missing(tmp_path: Path):
    with pytest.raises(IngestionError):
        read_sheet_file(tmp_path / "missing.csv")


@pytest.mark.parametrize(
    "columns,expected",
    [
        (["Description", "Product Name", "SKU"], ("Description", "Product Name")),
        (["Description", "sku_code"], ("Description", "sku_code")),
        (["Prompt", "ProductID"], ("Prompt", "ProductID")),
        (["Prompt", "Colour"], ("Prompt", "Prompt")),
        ([], ("", "")),
    ],
)
def test_default_columns(columns, expected):
    assert default_columns(columns) == expected


def _record(opcode: int, data: bytes = b"") -> bytes:
    return struct.pack("<HH", opcode, len(data)) + data


def _bof(stream_type: int) -> bytes:
    return _record(0x0809, struct.pack("<HHHHII", 0x0600, stream_type, 0x0DBB, 0x07CC, 0, 0x06))


def _label(row: int, col: int, text: str) -> bytes:
    raw = text.encode("latin-1")
    return _record(0x0204, struct.pack("<HHHHB", row, col, 0, len(raw), 0) + raw)


def _biff8_workbook(sheet_name: str, cells: list[list[str]]) -> bytes:
    """Minimal BIFF8 stream: one worksheet holding text cells."""

    def globals_stream(sheet_offset: int) -> bytes:
        name = sheet_name.encode("latin-1")
        boundsheet = _record(0x0085, struct.pack("<IBBBB", sheet_offset, 0, 0, len(name), 0) + name)
        return _bof(0x0005) + _record(0x0042, struct.pack("<H", 1200)) + boundsheet + _record(0x000A)

    offset = len(globals_stream(0))
    sheet = _bof(0x0010)
    for r, row in enumerate(cells):
        for c, text in enumerate(row):
            if text:
                sheet += _label(r, c, text)
    sheet += _record(0x000A)
    return globals_stream(offset) + sheet


def test_read_legacy_xls():
    data = _biff8_workbook(
        "Products",
        [["Name", "Desc"], ["A1", "red sneaker"], ["X", ""], ["B2", "blue mug"]],
    )
    sheet = read_sheet(data, "catalog.XLS")
    assert sheet.source_name == "catalog.XLS"
    assert sheet.columns == ["Name", "Desc"]
    assert [r.values for r in sheet.rows] == [
        {"Name": "A1", "Desc": "red sneaker"},
        {"Name": "X"},
        {"Name": "B2", "Desc": "blue mug"},
    ]


def test_corrupt_legacy_xls():
    with pytest.raises(IngestionError) as e:
        read_sheet(b"plain text pretending to be a workbook", "catalog.xls")
    assert "could not parse catalog.xls" in str(e.value)
