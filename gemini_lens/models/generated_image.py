from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

"""Image payload and GeneratedImage result models.

ImagePayload is what the remote client hands back: raw bytes plus the media
type the model declared. GeneratedImage wraps a payload produced by a bulk
row together with the prompt that was sent and the names used for export.
"""

__all__ = [
    "DEFAULT_IMAGE_MIME_TYPE",
    "ImagePayload",
    "GeneratedImage",
]

DEFAULT_IMAGE_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class ImagePayload:
    """Encoded image bytes with their media type."""
    data: bytes
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE


@dataclass(frozen=True)
class GeneratedImage:
    """One successful bulk row.

    Attributes:
        id: Unique identifier (UUID4 string)
        payload: Image returned by the model
        prompt: Fully composed prompt that was sent
        file_name: Sanitized base name used in the archive (no extension)
        original_name: Raw filename-column text read from the row
        timestamp: Creation instant (UTC)
    """
    id: str
    payload: ImagePayload
    prompt: str
    file_name: str
    original_name: str
    timestamp: datetime

    @staticmethod
    def create(payload: ImagePayload, prompt: str, file_name: str, original_name: str) -> GeneratedImage:
        """Create a result with a fresh id and the current UTC time."""
        return GeneratedImage(
            id=str(uuid.uuid4()),
            payload=payload,
            prompt=prompt,
            file_name=file_name,
            original_name=original_name,
            timestamp=datetime.now(UTC),
        )
