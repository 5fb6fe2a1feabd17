"""Gemini Lens: image editing and bulk catalog generation with Gemini."""

__version__ = "0.1.0"
