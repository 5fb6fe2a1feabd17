"""Domain models for the Gemini Lens catalog tools.

This package contains the immutable records shared by ingestion, the bulk
pipeline, export and the UI state layer.
"""

from .error_record import ErrorRecord
from .generated_image import GeneratedImage, ImagePayload
from .job_config import GenerationJobConfig, compose_prompt, sanitize_file_name
from .processing_status import ProcessingStatus, RunState
from .row_record import RowRecord, coerce_text
from .run_result import BulkRunResult

__all__ = [
    # Ingestion
    "RowRecord",
    "coerce_text",
    # Job configuration
    "GenerationJobConfig",
    "compose_prompt",
    "sanitize_file_name",
    # Run tracking
    "ProcessingStatus",
    "RunState",
    "BulkRunResult",
    "ErrorRecord",
    # Results
    "GeneratedImage",
    "ImagePayload",
]
