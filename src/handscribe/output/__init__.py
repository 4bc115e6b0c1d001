"""
Module: handscribe.output

Purpose:
    Export of rendered pages to PNG, JPEG or PDF.
    PDF documents are built with ReportLab.

Key Functions:
    - export_pages(): Rendered pages -> ExportResult
    - write_export(): Write payloads to disk

Dependencies:
    - reportlab: PDF generation
    - PIL: Raster encoding

Used By:
    - handscribe.controller
"""

from .exporter import ExportResult, export_pages, write_export, MIME_TYPES

__all__ = [
    "ExportResult",
    "export_pages",
    "write_export",
    "MIME_TYPES",
]
