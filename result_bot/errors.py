"""
Exceptions raised by the OCR/export pipeline.
"""

from __future__ import annotations


class ResultBotError(Exception):
    """Base exception for the result bot."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class EmptyResultError(ResultBotError):
    """Raised when the OCR provider returned zero annotations."""

    def __init__(self, source: str = ""):
        self.source = source
        msg = f"No text found in image: {source}" if source else "No text found in image"
        super().__init__(msg)


class ExportIOError(ResultBotError):
    """Raised when the CSV destination cannot be opened, written or flushed."""


class ProviderError(ResultBotError):
    """Raised when the OCR call fails or the source image cannot be fetched."""
