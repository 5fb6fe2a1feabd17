from .client import (
    GenerationError,
    ImageGenerationClient,
    ImageGenerator,
    NoImageGeneratedError,
    extract_image,
    guess_mime_type,
    is_image_media_type,
)

__all__ = [
    "GenerationError",
    "ImageGenerationClient",
    "ImageGenerator",
    "NoImageGeneratedError",
    "extract_image",
    "guess_mime_type",
    "is_image_media_type",
]
