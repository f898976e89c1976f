from __future__ import annotations

from typing import List

import pytest

from result_bot.ocr.schema import SUMMARY, Annotation, Point
from tests.helpers import box


@pytest.fixture
def sample_annotations() -> List[Annotation]:
    return [
        Annotation(text="SCORE 9876543\nPERFECT", corners=box(0, 0, 640, 480), kind=SUMMARY),
        Annotation(text="SCORE", corners=box(5, 2, 9, 7)),
        Annotation(text="9876543", corners=(Point(3, 10), Point(8, 1))),
        Annotation(text="PERFECT", corners=()),
    ]
