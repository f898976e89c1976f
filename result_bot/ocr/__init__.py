from .schema import SUMMARY, WORD, Annotation, ExportRow, Point

__all__ = ["Annotation", "ExportRow", "Point", "SUMMARY", "WORD"]
