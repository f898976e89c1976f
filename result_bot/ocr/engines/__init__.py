from typing import Optional

import httpx

from ...config import Settings
from .base import OcrProvider
from .tess import TesseractProvider
from .vision import VisionProvider


def make_provider(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> OcrProvider:
    """
    Factory. Supported names:
      - 'vision' / 'google' (default; needs GOOGLE_VISION_API_KEY)
      - 'tesseract' (local, requires the tesseract binary)
    """
    n = (settings.ocr_engine or "vision").strip().lower()
    if n == "tesseract":
        return TesseractProvider()
    if n not in ("vision", "google", "gcv"):
        raise ValueError(f"Unknown OCR engine: {settings.ocr_engine!r}")
    return VisionProvider(
        settings.vision_api_key,
        max_results=settings.max_results,
        client=client,
        timeout_seconds=settings.http_timeout_seconds,
    )


__all__ = [
    "OcrProvider",
    "TesseractProvider",
    "VisionProvider",
    "make_provider",
]
