from .csv_export import HEADER, annotation_to_row, build_rows, export_annotations

__all__ = [
    "HEADER",
    "annotation_to_row",
    "build_rows",
    "export_annotations",
]
