from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import httpx

from ..errors import EmptyResultError, ExportIOError
from ..export import export_annotations
from .engines import OcrProvider
from .schema import Annotation
from .source import load_image_bytes

logger = logging.getLogger("resultbot")


def _write_csv(annotations: Sequence[Annotation], out: Path) -> None:
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportIOError(f"Cannot create output directory {out.parent}: {e}") from e
    export_annotations(annotations, out)


async def run_ocr_export(
    source: str,
    output_path: Union[str, Path],
    *,
    provider: OcrProvider,
    client: Optional[httpx.AsyncClient] = None,
) -> Path:
    """
    Fetch one image, run text detection and write the CSV table.

    Errors are left to the caller: ProviderError (fetch/OCR),
    EmptyResultError (no annotations) and ExportIOError (destination).
    """
    image = await load_image_bytes(source, client)
    annotations = await provider.detect_text(image)
    if not annotations:
        raise EmptyResultError(source)

    out = Path(output_path)
    await asyncio.to_thread(_write_csv, annotations, out)
    logger.info("Text from image %s successfully saved to %s", source, out)
    return out
