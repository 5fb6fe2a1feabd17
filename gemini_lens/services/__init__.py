from .archive import ExportError, build_archive, dedupe_file_names, write_archive
from .pipeline import BulkGenerationPipeline, CancellationToken
from .summary import render_summary_line

__all__ = [
    "BulkGenerationPipeline",
    "CancellationToken",
    "ExportError",
    "build_archive",
    "dedupe_file_names",
    "render_summary_line",
    "write_archive",
]
