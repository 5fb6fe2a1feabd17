from .reader import IngestionError, SheetData, default_columns, read_sheet, read_sheet_file

__all__ = [
    "IngestionError",
    "SheetData",
    "default_columns",
    "read_sheet",
    "read_sheet_file",
]
