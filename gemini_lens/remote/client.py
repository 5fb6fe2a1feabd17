from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

from google import genai
from google.genai import types

from gemini_lens.config.loader import DEFAULT_MODEL
from gemini_lens.models.generated_image import DEFAULT_IMAGE_MIME_TYPE, ImagePayload

"""Remote image generation client (Gemini).

Two operations against the hosted multimodal model:

- edit_image: source image part followed by a text instruction
- generate_image: text part only

Each call is one ``generate_content`` request answered by one complete
response. There is no retry, timeout or cache here; a failure is raised to
the caller as GenerationError with the SDK exception chained as the cause.
"""

__all__ = [
    "GenerationError",
    "NoImageGeneratedError",
    "ImageGenerator",
    "ImageGenerationClient",
    "extract_image",
    "guess_mime_type",
    "is_image_media_type",
]

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image generated. The model might have returned only text."

MIME_MAP = {
    ".jpg":  "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png":  "image/png",
    ".webp": "image/webp",
    ".bmp":  "image/bmp",
    ".tiff": "image/tiff",
    ".gif":  "image/gif",
    ".heic": "image/heic",
}


class GenerationError(Exception):
    """The remote call failed or produced no image."""


class NoImageGeneratedError(GenerationError):
    """The model answered, but without an inline image part."""

    def __init__(self, message: str = NO_IMAGE_MESSAGE) -> None:
        super().__init__(message)


class ImageGenerator(Protocol):
    """What the bulk pipeline needs from a client."""

    def generate_image(self, prompt: str) -> ImagePayload: ...


def guess_mime_type(file_name: str, default: str = "image/jpeg") -> str:
    return MIME_MAP.get(Path(file_name).suffix.lower(), default)


def is_image_media_type(mime_type: str | None) -> bool:
    """Drop-time check used by the editor: only ``image/*`` is accepted."""
    return bool(mime_type) and mime_type.startswith("image/")


def extract_image(response: Any) -> ImagePayload | None:
    """Pull the first inline image out of a ``generate_content`` response.

    Only the first candidate is examined. Its parts are scanned in order and
    the first one carrying inline bytes wins; its declared media type is kept,
    defaulting to image/png.

    Returns:
        The payload, or None when there is no candidate, no content or no
        inline data part
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        return None
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return ImagePayload(
                data=inline.data,
                mime_type=getattr(inline, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE,
            )
    return None


class ImageGenerationClient:
    """Thin wrapper over ``genai.Client`` for the two image operations."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = DEFAULT_MODEL,
        client: genai.Client | None = None,
    ) -> None:
        self.model = model
        self.client = client if client is not None else genai.Client(api_key=api_key)

    def _request(self, contents: list[types.Part], operation: str) -> ImagePayload:
        logger.debug("%s request model=%s parts=%d", operation, self.model, len(contents))
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except Exception as exc:
            logger.debug("%s request failed: %s", operation, exc)
            raise GenerationError(str(exc) or exc.__class__.__name__) from exc

        payload = extract_image(response)
        if payload is None:
            raise NoImageGeneratedError()
        logger.debug("%s returned %d bytes (%s)", operation, len(payload.data), payload.mime_type)
        return payload

    def edit_image(self, image_data: bytes, mime_type: str, prompt: str) -> ImagePayload:
        """Apply a text instruction to an existing image.

        Args:
            image_data: Raw bytes of the source image
            mime_type: Media type of ``image_data``
            prompt: Edit instruction

        Raises:
            GenerationError: Transport failure or no image in the response
        """
        contents = [
            types.Part.from_bytes(data=image_data, mime_type=mime_type),
            types.Part.from_text(text=prompt),
        ]
        return self._request(contents, "edit")

    def generate_image(self, prompt: str) -> ImagePayload:
        """Create an image from text alone. Same failure contract as edit."""
        return self._request([types.Part.from_text(text=prompt)], "generate")
