from __future__ import annotations

import dataclasses
from typing import List, Optional

from result_bot.config import Settings
from result_bot.ocr.engines.base import OcrProvider
from result_bot.ocr.schema import Annotation, Point


def box(x0: int, y0: int, x1: int, y1: int) -> tuple:
    return (Point(x0, y0), Point(x1, y0), Point(x1, y1), Point(x0, y1))


BASE_SETTINGS = Settings(
    bot_token="",
    application_id="app-1",
    public_key="",
    guild_id="",
    remove_commands=True,
    ocr_engine="vision",
    vision_api_key="test-key",
    max_results=10,
    output_dir="output",
    default_image="testdata/sdvx_result.jpg",
    keep_output=False,
    http_timeout_seconds=5.0,
    environment="test",
    host="127.0.0.1",
    port=8000,
)


def make_settings(**overrides) -> Settings:
    return dataclasses.replace(BASE_SETTINGS, **overrides)


class FakeProvider(OcrProvider):
    name = "fake"

    def __init__(self, annotations: Optional[List[Annotation]] = None) -> None:
        self.annotations = list(annotations or [])
        self.calls: List[bytes] = []

    async def detect_text(self, image: bytes) -> List[Annotation]:
        self.calls.append(image)
        return list(self.annotations)
