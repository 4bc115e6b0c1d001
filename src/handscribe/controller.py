"""
Module: handscribe.controller

Purpose:
    Orchestrate the complete rendering pipeline.
    Geometry → Font → Layout → Paginate → Paper → Glyphs → Overlays → Export

Key Functions:
    - render_document(): Render a Document to page rasters
    - export_document(): Serialize a RenderResult
    - render_to_file(): Render and write in one call

Key Classes:
    - Document: Text, settings and overlays to render
    - RenderedPage: Page plan plus finished raster
    - RenderResult: Complete render result
    - RenderScheduler: Coalescing, generation-checked background renders

Dependencies:
    - handscribe.layout: Geometry, line layout, pagination
    - handscribe.fonts: Font acquisition and metrics
    - handscribe.render: Paper, glyphs, overlays
    - handscribe.output: Export

Used By:
    - handscribe.cli
"""

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PIL import Image

from .config import ExportFormat, Settings
from .errors import ExportUnavailable, HandscribeError
from .fonts import FontProvider, SystemFontProvider, resolve_font
from .images import ImageDecoder, PillowImageDecoder
from .layout import LayoutResult, PagePlan, compute_geometry, layout_text, paginate
from .output import ExportResult, export_pages, write_export
from .render import GlyphJitterRenderer, ImageOverlay, RenderContext, composite_overlays, render_paper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """
    Input to a render (immutable).

    Attributes:
        text: Text to write
        settings: Rendering configuration
        overlays: Images composited after the text, in order

    Example:
        >>> doc = Document("Dear diary,", Settings(paper=PaperStyle.CURSIVE))
    """
    text: str
    settings: Settings = field(default_factory=Settings)
    overlays: Tuple[ImageOverlay, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.overlays, tuple):
            object.__setattr__(self, "overlays", tuple(self.overlays))


@dataclass(frozen=True)
class RenderedPage:
    """
    A finished page.

    Attributes:
        plan: Page layout plan
        image: RGB raster at nominal size * scale, RGBA when rendered
            without a background (None until finished)
        scale: Render scale the raster was drawn at
    """
    plan: PagePlan
    image: Optional[Image.Image]
    scale: float = 1.0

    @property
    def nominal_size(self) -> Tuple[int, int]:
        return self.plan.geometry.pixel_width, self.plan.geometry.pixel_height


@dataclass(frozen=True)
class RenderResult:
    """
    Complete render result (immutable).

    Attributes:
        pages: Rendered pages in order
        layout: Layout that produced them
        settings: Settings used
        warnings: Recovered problems (font fallbacks, skipped overlays, ...)

    Example:
        >>> result = render_document(Document("hello"))
        >>> result.page_count
        1
    """
    pages: Tuple[RenderedPage, ...]
    layout: LayoutResult
    settings: Settings
    warnings: Tuple[str, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)


def render_document(
    document: Document,
    *,
    font_provider: Optional[FontProvider] = None,
    image_decoder: Optional[ImageDecoder] = None,
    rng: Optional[random.Random] = None,
) -> RenderResult:
    """
    Render a document to page rasters.

    Pipeline:
    1. Compute page geometry
    2. Acquire font (with fallbacks)
    3. Break text into lines
    4. Paginate lines onto pages
    5. Per page: paper, glyphs, overlays, then seal the raster

    Args:
        document: Text, settings and overlays
        font_provider: Font source (defaults to SystemFontProvider)
        image_decoder: Overlay decoder (defaults to PillowImageDecoder)
        rng: Jitter random source (defaults to Random(settings.seed))

    Returns:
        RenderResult with one RenderedPage per page

    Raises:
        InvalidGeometry: If margins leave no drawable area
    """
    settings = document.settings
    warnings: List[str] = []
    start_time = time.perf_counter()

    geometry = compute_geometry(settings)
    text_area = geometry.text_rect(settings.show_margin_guide)

    face, font_warnings = resolve_font(
        font_provider or SystemFontProvider(),
        settings.font_family,
        settings.font_weight,
        fallback_family=settings.fallback_font_family,
        font_path=settings.font_path,
    )
    warnings.extend(font_warnings)
    metrics = face.metrics(
        settings.font_size,
        letter_spacing=settings.letter_spacing,
        word_spacing=settings.word_spacing,
    )
    logger.debug(f"Using font {face.family!r} at {metrics.size}px ({face.path or 'bundled'})")

    lines = layout_text(document.text, settings.layout_mode, text_area.width, metrics.measure)
    layout = paginate(lines, geometry, settings, metrics.measure)
    warnings.extend(layout.warnings)

    glyphs = GlyphJitterRenderer(metrics, settings, rng)
    decoder = image_decoder or PillowImageDecoder()

    pages: List[RenderedPage] = []
    for plan in layout.pages:
        ctx = RenderContext(
            geometry.pixel_width,
            geometry.pixel_height,
            scale=settings.export_scale,
            background=settings.background_color,
            transparent=not settings.include_background,
        )
        render_paper(ctx, geometry, settings)
        for line in plan.lines:
            glyphs.draw_line(ctx, line)
        if document.overlays:
            warnings.extend(
                composite_overlays(
                    ctx, document.overlays, geometry.content_rect,
                    page_index=plan.index, decoder=decoder,
                )
            )
        pages.append(RenderedPage(plan=plan, image=ctx.seal(), scale=settings.export_scale))

    elapsed = time.perf_counter() - start_time
    logger.info(f"Rendered {len(pages)} pages ({layout.line_count} lines) in {elapsed:.2f}s")

    return RenderResult(
        pages=tuple(pages),
        layout=layout,
        settings=settings,
        warnings=tuple(warnings),
    )


def export_document(result: RenderResult, fmt: Optional[ExportFormat | str] = None) -> ExportResult:
    """
    Serialize a render result.

    Args:
        result: Finished render
        fmt: Export format (defaults to settings.export_format)

    Raises:
        ExportUnavailable: If the result has no finished pages
    """
    settings = result.settings
    return export_pages(
        result.pages,
        fmt or settings.export_format,
        quality=settings.export_quality,
        dpi=settings.export_dpi,
    )


def render_to_file(
    document: Document,
    path: Path,
    fmt: Optional[ExportFormat | str] = None,
    *,
    font_provider: Optional[FontProvider] = None,
    image_decoder: Optional[ImageDecoder] = None,
) -> List[Path]:
    """
    Render a document and write it to disk.

    Multi-page raster exports are written as name-1.ext, name-2.ext, ...

    Returns:
        Paths written

    Example:
        >>> render_to_file(Document(text), Path("out/page.pdf"), "pdf")
        [PosixPath('out/page.pdf')]
    """
    result = render_document(document, font_provider=font_provider, image_decoder=image_decoder)
    return write_export(export_document(result, fmt), Path(path))


Renderer = Callable[[Document], RenderResult]


class RenderScheduler:
    """
    Runs renders on a background worker, one at a time.

    Requests arriving while a render is in progress are coalesced: only
    the latest pending document is rendered next. Every request bumps a
    generation counter; a render whose generation has been superseded by
    the time it finishes is discarded rather than published.

    Args:
        renderer: Render function (defaults to render_document)
        on_complete: Called with each published RenderResult
            (on the worker thread)

    Example:
        >>> with RenderScheduler() as scheduler:
        ...     scheduler.request(Document("draft"))
        ...     scheduler.request(Document("final"))
        ...     scheduler.wait()
        ...     result = scheduler.latest()
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        *,
        on_complete: Optional[Callable[[RenderResult], None]] = None,
    ) -> None:
        self._renderer = renderer or render_document
        self._on_complete = on_complete
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="handscribe-render")
        self._rendering = False
        self._generation = 0
        self._pending: Optional[Tuple[int, Document]] = None
        self._latest: Optional[RenderResult] = None
        self.last_error: Optional[HandscribeError] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def rendering(self) -> bool:
        return self._rendering

    def request(self, document: Document) -> int:
        """
        Request a render of document.

        Returns:
            Generation number of this request
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = (generation, document)
            if self._rendering:
                logger.debug(f"Render in progress, coalescing request {generation}")
                return generation
            self._rendering = True
        self._executor.submit(self._drain)
        return generation

    def latest(self) -> Optional[RenderResult]:
        """Last published result, or None."""
        with self._lock:
            return self._latest

    def export_latest(self, fmt: Optional[ExportFormat | str] = None) -> ExportResult:
        """
        Export the last published result.

        Raises:
            ExportUnavailable: If no render has been published yet
        """
        result = self.latest()
        if result is None:
            raise ExportUnavailable("No finished render to export yet")
        return export_document(result, fmt)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until no render is running or pending. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._rendering, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "RenderScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _drain(self) -> None:
        try:
            self._render_pending()
        except Exception:
            logger.exception("Render worker stopped unexpectedly")
            with self._lock:
                self._rendering = False
                self._idle.notify_all()
            raise

    def _render_pending(self) -> None:
        """Render pending documents until none remain."""
        while True:
            with self._lock:
                if self._pending is None:
                    self._rendering = False
                    self._idle.notify_all()
                    return
                generation, document = self._pending
                self._pending = None

            try:
                result = self._renderer(document)
            except HandscribeError as e:
                logger.error(f"Render {generation} failed: {e}")
                with self._lock:
                    self.last_error = e
                continue

            with self._lock:
                superseded = generation != self._generation
                if not superseded:
                    self._latest = result
                    self.last_error = None

            if superseded:
                logger.debug(f"Discarding render {generation}; superseded by {self._generation}")
                continue

            logger.debug(f"Published render {generation}")
            if self._on_complete is not None:
                self._on_complete(result)
