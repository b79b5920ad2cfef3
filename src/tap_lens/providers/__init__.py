"""Providers for tap-lens."""

from tap_lens.providers.base import BaseProvider
from tap_lens.providers.gemini import GeminiProvider
from tap_lens.providers.google_vision_ocr import GoogleVisionOCRProvider

__all__ = ["BaseProvider", "GeminiProvider", "GoogleVisionOCRProvider"]
