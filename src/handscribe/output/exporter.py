"""
Module: handscribe.output.exporter

Purpose:
    Serialize finished page rasters to PNG, JPEG or a multi-page PDF.
    Rasters are already rendered at export scale; nothing is resized
    here.

Key Functions:
    - export_pages(): Rendered pages -> ExportResult
    - write_export(): Write an ExportResult to disk

Key Classes:
    - ExportResult: Format, MIME type and payload bytes

PDF page size:
    Each page is nominal_px * 72 / dpi points in each dimension, with
    the raster drawn full-bleed. Page order and orientation follow the
    input.

Transparency:
    Rasters rendered without a background keep their alpha channel in
    PNG output. JPEG and PDF output are flattened onto white.

Dependencies:
    - reportlab: PDF generation
    - PIL: Raster encoding

Used By:
    - handscribe.controller: export_document, render_to_file
    - handscribe.cli
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence, Tuple

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from handscribe.config import ExportFormat
from handscribe.errors import ExportUnavailable
from handscribe.render.context import encode_raster, flatten

if TYPE_CHECKING:
    from handscribe.controller import RenderedPage

logger = logging.getLogger(__name__)

DEFAULT_DPI = 300

MIME_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
    ExportFormat.PDF: "application/pdf",
}

FILE_EXTENSIONS = {
    ExportFormat.PNG: ".png",
    ExportFormat.JPEG: ".jpg",
    ExportFormat.PDF: ".pdf",
}


@dataclass(frozen=True)
class ExportResult:
    """
    Serialized export output.

    Attributes:
        format: Export format
        mime_type: MIME type of each payload
        payloads: One payload per page for rasters, one for PDF
    """

    format: ExportFormat
    mime_type: str
    payloads: Tuple[bytes, ...]

    @property
    def extension(self) -> str:
        return FILE_EXTENSIONS[self.format]

    @property
    def total_bytes(self) -> int:
        return sum(len(p) for p in self.payloads)


def export_pages(
    pages: Sequence["RenderedPage"],
    fmt: ExportFormat | str,
    *,
    quality: int = 95,
    dpi: float = DEFAULT_DPI,
) -> ExportResult:
    """
    Serialize rendered pages.

    Args:
        pages: Rendered pages in order
        fmt: png, jpeg or pdf
        quality: JPEG quality in [0, 100]
        dpi: Pixels per inch for PDF page sizing

    Returns:
        ExportResult

    Raises:
        ExportUnavailable: If there are no pages or a page has no raster
        ValueError: If the format is unknown

    Example:
        >>> result = export_pages(render_result.pages, "pdf", dpi=300)
        >>> result.mime_type
        'application/pdf'
    """
    fmt = ExportFormat(fmt)

    if not pages:
        raise ExportUnavailable("No rendered pages to export")
    missing = [i for i, page in enumerate(pages) if page.image is None]
    if missing:
        raise ExportUnavailable(f"Pages without a finished raster: {missing}")

    if fmt == ExportFormat.PDF:
        payloads: Tuple[bytes, ...] = (_build_pdf(pages, dpi),)
    else:
        payloads = tuple(encode_raster(page.image, fmt.value, quality=quality) for page in pages)

    result = ExportResult(format=fmt, mime_type=MIME_TYPES[fmt], payloads=payloads)
    logger.info(f"Exported {len(pages)} pages as {fmt.value} ({result.total_bytes} bytes)")
    return result


def _build_pdf(pages: Sequence["RenderedPage"], dpi: float) -> bytes:
    """One PDF page per raster, sized from nominal pixels."""
    buf = io.BytesIO()
    first_w, first_h = pages[0].nominal_size
    c = canvas.Canvas(buf, pagesize=(_px_to_pt(first_w, dpi), _px_to_pt(first_h, dpi)))

    for page in pages:
        width_px, height_px = page.nominal_size
        width_pt = _px_to_pt(width_px, dpi)
        height_pt = _px_to_pt(height_px, dpi)
        c.setPageSize((width_pt, height_pt))
        c.drawImage(_pil_to_reader(page.image), 0, 0, width=width_pt, height=height_pt)
        c.showPage()

    c.save()
    return buf.getvalue()


def write_export(result: ExportResult, path: Path) -> List[Path]:
    """
    Write export payloads to disk.

    A single payload is written to path. Multiple raster payloads are
    written to name-1.ext, name-2.ext, ... beside path.

    Returns:
        Paths written, in page order
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if len(result.payloads) == 1:
        targets = [path]
    else:
        suffix = path.suffix or result.extension
        targets = [path.with_name(f"{path.stem}-{i}{suffix}") for i in range(1, len(result.payloads) + 1)]

    for target, payload in zip(targets, result.payloads):
        target.write_bytes(payload)
        logger.info(f"Wrote {target} ({len(payload)} bytes)")
    return targets


def _pil_to_reader(img: Image.Image) -> ImageReader:
    """
    Convert PIL image to ReportLab ImageReader.

    Transparent rasters are flattened onto white first.

    Args:
        img: PIL Image object

    Returns:
        ImageReader for use with ReportLab
    """
    buf = io.BytesIO()
    flatten(img).save(buf, format="PNG")
    buf.seek(0)
    return ImageReader(buf)


def _px_to_pt(px: float, dpi: float = DEFAULT_DPI) -> float:
    """Convert pixels to PDF points (1/72 inch)."""
    return px * 72.0 / dpi
