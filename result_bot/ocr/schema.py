from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

SUMMARY = "summary"
WORD = "word"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Annotation:
    text: str
    corners: Tuple[Point, ...] = ()
    kind: str = WORD  # summary | word; providers tag their whole-image element as summary


@dataclass(frozen=True)
class ExportRow:
    text: str
    x: int
    y: int

    def as_csv_fields(self) -> Tuple[str, str, str]:
        return (self.text, str(self.x), str(self.y))
