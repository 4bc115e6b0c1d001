"""
Tests for the render pipeline and the background render scheduler.
"""

import io
import threading

import pytest
from PIL import Image
from pypdf import PdfReader

from handscribe.config import LayoutMode, Settings
from handscribe.controller import (
    Document,
    RenderScheduler,
    export_document,
    render_document,
    render_to_file,
)
from handscribe.errors import ExportUnavailable, InvalidGeometry
from handscribe.render import ImageOverlay

LINE = (211, 211, 211)


class TestRenderDocument:
    def test_render_when_text_empty_then_one_page_with_full_ruling(self, small_settings, font_provider):
        # Act
        result = render_document(Document("", small_settings), font_provider=font_provider)

        # Assert
        assert result.page_count == 1
        page = result.pages[0]
        assert [line.text for line in page.plan.lines] == [""]
        # Second ruling row: content top 20 + spacing 24
        assert page.image.getpixel((300, 44)) == LINE
        assert page.image.getpixel((300, 260)) == LINE

    def test_render_when_export_scale_two_then_pixel_dimensions_double(self, small_settings, font_provider):
        settings = small_settings.replace(export_scale=2)

        result = render_document(Document("Hello", settings), font_provider=font_provider)

        assert result.pages[0].image.size == (800, 600)
        assert result.pages[0].nominal_size == (400, 300)

    def test_render_when_jitter_zero_then_byte_identical(self, small_settings, font_provider):
        doc = Document("The quick brown fox jumps over the lazy dog", small_settings)

        first = render_document(doc, font_provider=font_provider)
        second = render_document(doc, font_provider=font_provider)

        assert first.pages[0].image.tobytes() == second.pages[0].image.tobytes()

    def test_render_when_seeded_jitter_then_reproducible(self, small_settings, font_provider):
        doc = Document("Dear diary, today was fine.", small_settings.replace(jitter=1.2, seed=42))

        first = render_document(doc, font_provider=font_provider)
        second = render_document(doc, font_provider=font_provider)

        assert first.pages[0].image.tobytes() == second.pages[0].image.tobytes()

    def test_render_when_overflowing_then_paginated_in_order(self, small_settings, font_provider):
        # 260px text height / 24px lines -> 10 lines per page
        lines = [f"line {i}" for i in range(25)]
        settings = small_settings.replace(layout_mode=LayoutMode.EXPLICIT)

        result = render_document(Document("\n".join(lines), settings), font_provider=font_provider)

        assert [page.plan.line_count for page in result.pages] == [10, 10, 5]
        assert [line.text for line in result.layout.all_lines()] == lines

    def test_render_when_font_missing_then_fallback_recorded(self, small_settings, font_provider):
        result = render_document(Document("hi", small_settings), font_provider=font_provider)

        assert any("Caveat" in warning for warning in result.warnings)

    def test_render_when_overlay_undecodable_then_warning_and_page_rendered(
        self, small_settings, font_provider, png_bytes
    ):
        overlays = (ImageOverlay(b"garbage"), ImageOverlay(png_bytes, align="top-left"))

        result = render_document(Document("hi", small_settings, overlays), font_provider=font_provider)

        assert any("overlay 0" in warning for warning in result.warnings)
        assert result.pages[0].image.getpixel((25, 25)) == (255, 0, 0)

    def test_render_when_paper_given_as_string_then_rendered(self, small_settings, font_provider):
        settings = Settings(**{**small_settings.to_dict(), "paper": "grid"})

        result = render_document(Document("hi", settings), font_provider=font_provider)

        # Grid verticals start at the content left edge
        assert result.pages[0].image.getpixel((20, 150)) == LINE

    def test_render_when_background_excluded_then_transparent_png(self, small_settings, font_provider):
        settings = small_settings.replace(include_background=False, texture="medium")
        result = render_document(Document("hi", settings), font_provider=font_provider)

        exported = export_document(result, "png")

        decoded = Image.open(io.BytesIO(exported.payloads[0]))
        assert decoded.mode == "RGBA"
        assert decoded.getpixel((300, 30)) == (0, 0, 0, 0)
        assert decoded.getpixel((300, 44)) == LINE + (255,)

    def test_render_when_margins_exceed_page_then_raises(self, small_settings, font_provider):
        settings = small_settings.replace(margin_left=250, margin_right=250)

        with pytest.raises(InvalidGeometry):
            render_document(Document("hi", settings), font_provider=font_provider)


class TestExport:
    def test_export_document_when_pdf_then_page_per_rendered_page(self, small_settings, font_provider):
        settings = small_settings.replace(layout_mode=LayoutMode.EXPLICIT)
        result = render_document(Document("\n".join("x" * 15), settings), font_provider=font_provider)

        exported = export_document(result, "pdf")

        reader = PdfReader(io.BytesIO(exported.payloads[0]))
        assert len(reader.pages) == result.page_count == 2

    def test_render_to_file_when_png_multi_page_then_numbered_files(self, small_settings, font_provider, tmp_path):
        settings = small_settings.replace(layout_mode=LayoutMode.EXPLICIT)
        doc = Document("\n".join("y" * 15), settings)

        written = render_to_file(doc, tmp_path / "page.png", "png", font_provider=font_provider)

        assert [p.name for p in written] == ["page-1.png", "page-2.png"]


class TestRenderScheduler:
    def test_request_when_render_in_progress_then_coalesced_to_latest(self):
        # Arrange
        started = threading.Event()
        release = threading.Event()
        calls = []
        published = []

        def renderer(document):
            calls.append(document.text)
            if document.text == "one":
                started.set()
                release.wait(timeout=5)
            return f"result:{document.text}"

        with RenderScheduler(renderer, on_complete=published.append) as scheduler:
            # Act
            scheduler.request(Document("one"))
            assert started.wait(timeout=5)
            scheduler.request(Document("two"))
            scheduler.request(Document("three"))
            release.set()
            assert scheduler.wait(timeout=5)

            # Assert
            assert calls == ["one", "three"]
            assert published == ["result:three"]
            assert scheduler.latest() == "result:three"
            assert scheduler.generation == 3

    def test_request_when_superseded_then_output_discarded(self):
        started = threading.Event()
        release = threading.Event()

        def renderer(document):
            if document.text == "old":
                started.set()
                release.wait(timeout=5)
            return document.text

        with RenderScheduler(renderer) as scheduler:
            scheduler.request(Document("old"))
            assert started.wait(timeout=5)
            scheduler.request(Document("new"))
            release.set()
            assert scheduler.wait(timeout=5)

            assert scheduler.latest() == "new"

    def test_export_latest_when_nothing_published_then_raises(self):
        with RenderScheduler(lambda document: None) as scheduler:
            with pytest.raises(ExportUnavailable):
                scheduler.export_latest()

    def test_request_when_render_fails_then_error_kept_and_worker_idle(self):
        def renderer(document):
            raise InvalidGeometry("no room")

        with RenderScheduler(renderer) as scheduler:
            scheduler.request(Document("x"))

            assert scheduler.wait(timeout=5)
            assert scheduler.latest() is None
            assert isinstance(scheduler.last_error, InvalidGeometry)
            assert not scheduler.rendering

    def test_request_when_real_renderer_then_result_exportable(self, small_settings, font_provider):
        def renderer(document):
            return render_document(document, font_provider=font_provider)

        with RenderScheduler(renderer) as scheduler:
            scheduler.request(Document("hello", small_settings))
            assert scheduler.wait(timeout=30)

            exported = scheduler.export_latest("png")

        assert exported.payloads[0].startswith(b"\x89PNG")
