from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import IO, List, Optional, Sequence, Union

from ..errors import EmptyResultError, ExportIOError
from ..ocr.schema import Annotation, ExportRow

logger = logging.getLogger("resultbot")

HEADER = ("Text", "X", "Y")

Destination = Union[str, os.PathLike, IO[str]]


def annotation_to_row(annotation: Annotation) -> ExportRow:
    """
    Max X and max Y are taken independently across the corners, starting
    from 0. For a rotated polygon the result is not one of its vertices.
    """
    x = 0
    y = 0
    for corner in annotation.corners:
        if corner.x > x:
            x = corner.x
        if corner.y > y:
            y = corner.y
    return ExportRow(text=annotation.text, x=x, y=y)


def build_rows(annotations: Sequence[Annotation]) -> List[ExportRow]:
    rows: List[ExportRow] = []
    is_first = True
    for annotation in annotations:
        # element 0 is the whole-image summary; it never becomes a row
        if is_first:
            is_first = False
            continue
        rows.append(annotation_to_row(annotation))
    return rows


def _write_table(fh: IO[str], rows: List[ExportRow]) -> None:
    writer = csv.writer(fh)
    writer.writerow(HEADER)
    for row in rows:
        writer.writerow(row.as_csv_fields())
    fh.flush()


def export_annotations(annotations: Sequence[Annotation], destination: Destination) -> Optional[Path]:
    """
    Write annotations as a `Text,X,Y` CSV table.

    `destination` is either a filesystem path (created or truncated) or an
    already-open text stream, which is flushed but left open.
    Returns the written path, or None for streams.

    Raises EmptyResultError for an empty sequence (nothing is created) and
    ExportIOError when the destination cannot be opened, written or flushed.
    """
    if len(annotations) == 0:
        raise EmptyResultError()

    rows = build_rows(annotations)

    if hasattr(destination, "write"):
        try:
            _write_table(destination, rows)  # type: ignore[arg-type]
        except (OSError, csv.Error, ValueError) as e:
            raise ExportIOError(f"Failed to write CSV stream: {e}") from e
        return None

    path = Path(destination)  # type: ignore[arg-type]
    try:
        fh = open(path, "w", newline="", encoding="utf-8")
    except OSError as e:
        raise ExportIOError(f"Cannot open {path} for writing: {e}") from e

    try:
        with fh:
            _write_table(fh, rows)
    except (OSError, csv.Error, ValueError) as e:
        # a half-written table is not usable output
        try:
            path.unlink()
        except OSError:
            logger.warning("Could not remove partial CSV %s", path)
        raise ExportIOError(f"Failed to write {path}: {e}") from e

    logger.info("Wrote %d rows to %s", len(rows), path)
    return path
