"""
Unit tests for PNG/JPEG/PDF export.
"""

import io

import pytest
from PIL import Image
from pypdf import PdfReader

from handscribe.config import ExportFormat
from handscribe.controller import RenderedPage
from handscribe.errors import ExportUnavailable
from handscribe.layout import PageGeometry, PagePlan, Rect
from handscribe.output import export_pages, write_export


def make_page(index, width, height, scale=1.0, with_image=True):
    geometry = PageGeometry(width, height, Rect(10, 10, width - 20, height - 20))
    plan = PagePlan(index=index, lines=(), geometry=geometry)
    image = Image.new("RGB", (int(width * scale), int(height * scale)), "white") if with_image else None
    return RenderedPage(plan=plan, image=image, scale=scale)


class TestRasterExport:
    def test_png_when_two_pages_then_one_payload_each(self):
        result = export_pages([make_page(0, 60, 30), make_page(1, 60, 30)], "png")

        assert result.format == ExportFormat.PNG
        assert result.mime_type == "image/png"
        assert len(result.payloads) == 2
        assert all(p.startswith(b"\x89PNG") for p in result.payloads)

    def test_png_when_scaled_raster_then_encoded_at_raster_size(self):
        result = export_pages([make_page(0, 60, 30, scale=2)], ExportFormat.PNG)

        assert Image.open(io.BytesIO(result.payloads[0])).size == (120, 60)

    def test_jpeg_when_jpg_alias_then_jpeg_payload(self):
        result = export_pages([make_page(0, 60, 30)], "JPG", quality=40)

        assert result.format == ExportFormat.JPEG
        assert result.payloads[0].startswith(b"\xff\xd8")


class TestPdfExport:
    def test_pdf_when_two_pages_then_single_document_in_order(self):
        # Arrange
        pages = [make_page(0, 600, 300), make_page(1, 300, 600)]

        # Act
        result = export_pages(pages, "pdf", dpi=300)

        # Assert
        assert result.mime_type == "application/pdf"
        assert len(result.payloads) == 1
        reader = PdfReader(io.BytesIO(result.payloads[0]))
        assert len(reader.pages) == 2
        first, second = reader.pages
        assert float(first.mediabox.width) == pytest.approx(144)
        assert float(first.mediabox.height) == pytest.approx(72)
        assert float(second.mediabox.width) == pytest.approx(72)
        assert float(second.mediabox.height) == pytest.approx(144)

    def test_pdf_when_scaled_raster_then_page_size_from_nominal_pixels(self):
        result = export_pages([make_page(0, 600, 300, scale=2)], "pdf", dpi=300)

        page = PdfReader(io.BytesIO(result.payloads[0])).pages[0]
        assert float(page.mediabox.width) == pytest.approx(144)

    def test_pdf_when_fractional_dpi_then_page_size_follows(self):
        result = export_pages([make_page(0, 600, 300)], "pdf", dpi=187.5)

        page = PdfReader(io.BytesIO(result.payloads[0])).pages[0]
        assert float(page.mediabox.width) == pytest.approx(230.4)
        assert float(page.mediabox.height) == pytest.approx(115.2)


class TestExportUnavailable:
    def test_export_when_no_pages_then_raises(self):
        with pytest.raises(ExportUnavailable):
            export_pages([], "png")

    def test_export_when_page_unfinished_then_raises(self):
        with pytest.raises(ExportUnavailable):
            export_pages([make_page(0, 60, 30, with_image=False)], "pdf")


class TestWriteExport:
    def test_write_when_single_payload_then_written_to_path(self, tmp_path):
        result = export_pages([make_page(0, 60, 30)], "png")

        written = write_export(result, tmp_path / "page.png")

        assert written == [tmp_path / "page.png"]
        assert (tmp_path / "page.png").read_bytes() == result.payloads[0]

    def test_write_when_multiple_payloads_then_numbered_files(self, tmp_path):
        result = export_pages([make_page(0, 60, 30), make_page(1, 60, 30)], "png")

        written = write_export(result, tmp_path / "out" / "notes.png")

        assert [p.name for p in written] == ["notes-1.png", "notes-2.png"]
        assert all(p.exists() for p in written)


class TestTransparentExport:
    def transparent_page(self):
        page = make_page(0, 60, 30, with_image=False)
        image = Image.new("RGBA", (60, 30), (0, 0, 0, 0))
        image.paste((0, 0, 255, 255), (0, 0, 10, 10))
        return RenderedPage(plan=page.plan, image=image, scale=1.0)

    def test_png_when_rendered_without_background_then_alpha_kept(self):
        result = export_pages([self.transparent_page()], "png")

        decoded = Image.open(io.BytesIO(result.payloads[0]))
        assert decoded.mode == "RGBA"
        assert decoded.getpixel((30, 20)) == (0, 0, 0, 0)
        assert decoded.getpixel((5, 5)) == (0, 0, 255, 255)

    def test_jpeg_when_rendered_without_background_then_flattened_onto_white(self):
        result = export_pages([self.transparent_page()], "jpeg", quality=100)

        decoded = Image.open(io.BytesIO(result.payloads[0]))
        assert decoded.mode == "RGB"
        assert all(channel >= 250 for channel in decoded.getpixel((40, 20)))

    def test_pdf_when_rendered_without_background_then_single_page(self):
        result = export_pages([self.transparent_page()], "pdf")

        assert len(PdfReader(io.BytesIO(result.payloads[0])).pages) == 1
