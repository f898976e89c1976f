import asyncio
import os
from typing import Dict, List

import numpy as np

import pytesseract
from pytesseract import Output  # type: ignore

from ...errors import ProviderError
from ..preprocess import load_gray
from ..schema import SUMMARY, WORD, Annotation, Point
from .base import OcrProvider

# Allow override on Windows (desktop dev)
if os.name == "nt":
    tpath = os.getenv("TESSERACT_PATH")
    if tpath and os.path.exists(tpath):
        pytesseract.pytesseract.tesseract_cmd = tpath


def _cfg(psm: int = 11) -> str:
    # psm 11 = sparse text; result screens are scattered labels, not paragraphs
    return f"--oem 1 --psm {psm} -c preserve_interword_spaces=1"


def _safe_float(x) -> float:
    try:
        return float(x)
    except Exception:
        return float("nan")


def _box(left: int, top: int, width: int, height: int) -> tuple:
    right, bottom = left + width, top + height
    return (Point(left, top), Point(right, top), Point(right, bottom), Point(left, bottom))


def tokens_to_annotations(data: Dict[str, List], width: int, height: int) -> List[Annotation]:
    """
    Turn image_to_data word tokens into annotations.

    A synthetic summary annotation (all words, full-image box) is placed first
    so the result has the same shape as a cloud TEXT_DETECTION response.
    """
    words: List[Annotation] = []
    n = len(data.get("text", []))
    for i in range(n):
        txt = (data["text"][i] or "").strip()
        if not txt:
            continue
        conf = _safe_float(data.get("conf", ["-1"])[i])
        if np.isnan(conf) or conf < 0:
            continue
        words.append(
            Annotation(
                text=txt,
                corners=_box(
                    int(data["left"][i]),
                    int(data["top"][i]),
                    int(data["width"][i]),
                    int(data["height"][i]),
                ),
                kind=WORD,
            )
        )

    if not words:
        return []

    summary = Annotation(
        text="\n".join(w.text for w in words),
        corners=_box(0, 0, width, height),
        kind=SUMMARY,
    )
    return [summary] + words


class TesseractProvider(OcrProvider):
    """Local fallback for development; no cloud credentials needed."""

    name = "tesseract"

    def _run(self, image: bytes) -> List[Annotation]:
        g = load_gray(image)
        try:
            data = pytesseract.image_to_data(g, output_type=Output.DICT, config=_cfg())
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise ProviderError(f"Tesseract failed: {e}") from e
        h, w = g.shape[:2]
        return tokens_to_annotations(data, w, h)

    async def detect_text(self, image: bytes) -> List[Annotation]:
        return await asyncio.to_thread(self._run, image)
