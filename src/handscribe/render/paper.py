"""
Module: handscribe.render.paper

Purpose:
    Paint the page background: background colour, ruling, margin guide,
    optional line numbers and optional paper grain.

Key Functions:
    - render_paper(): Paint the full background onto a RenderContext
    - ruling_rows(): Y positions of ruling rows within the content rect
    - apply_texture(): Additive luminance noise (paper grain)

Ruling styles:
    - ruled: one solid line per row
    - grid: rows plus vertical lines at the same step (square cells)
    - dotted: a dot at every row/column intersection
    - cursive: per row a dashed top line, a solid writing baseline at
      spacing/2 and a solid bottom line at spacing; rows whose bottom
      line would leave the content rect are skipped
    - blank: nothing

Dependencies:
    - numpy: Texture noise
    - PIL: Raster access

Used By:
    - handscribe.controller: Render pipeline
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np
from PIL import Image, ImageFont

from handscribe.config import PaperStyle, Settings, Texture
from handscribe.fonts.provider import DEFAULT_FAMILY, FontFace
from handscribe.layout.models import PageGeometry, Rect

from .context import RenderContext

logger = logging.getLogger(__name__)

# Noise amplitude as a fraction of full scale
TEXTURE_INTENSITY: Dict[Texture, float] = {
    Texture.LIGHT: 0.02,
    Texture.MEDIUM: 0.05,
    Texture.HEAVY: 0.1,
}

DOT_RADIUS = 2
CURSIVE_DASH = (5, 5)
LINE_NUMBER_FONT_SIZE = 12
LINE_NUMBER_GAP = 10  # Between the number's right edge and the margin guide

# Rows of noise generated per step, bounding float working memory
TEXTURE_BAND_ROWS = 256


def ruling_rows(content: Rect, spacing: float) -> List[float]:
    """
    Y positions from content top to content bottom (inclusive) in steps of spacing.

    Example:
        >>> ruling_rows(Rect(0, 100, 500, 100), 40)
        [100, 140, 180]
    """
    if spacing <= 0:
        return []
    rows: List[float] = []
    y = content.y
    while y <= content.bottom + 1e-6:
        rows.append(y)
        y += spacing
    return rows


def ruling_columns(content: Rect, spacing: float) -> List[float]:
    """X positions from content left to content right (inclusive) in steps of spacing."""
    if spacing <= 0:
        return []
    cols: List[float] = []
    x = content.x
    while x <= content.right + 1e-6:
        cols.append(x)
        x += spacing
    return cols


def writing_baselines(content: Rect, settings: Settings) -> List[float]:
    """Baseline of each ruling row (the spacing/2 line for cursive paper)."""
    spacing = settings.line_spacing
    if settings.paper == PaperStyle.CURSIVE:
        return [y + spacing / 2 for y in ruling_rows(content, spacing) if y + spacing <= content.bottom + 1e-6]
    return ruling_rows(content, spacing)


def render_paper(
    ctx: RenderContext,
    geometry: PageGeometry,
    settings: Settings,
    *,
    number_font: Optional[ImageFont.FreeTypeFont] = None,
) -> None:
    """
    Paint background, ruling, margin guide, line numbers and texture.

    With include_background off the page colour and grain are skipped,
    leaving ruling on a transparent surface.

    Args:
        ctx: Page drawing target
        geometry: Page geometry (ruling fills content_rect)
        settings: Paper style, colours, spacing and visibility flags
        number_font: Font for line numbers, sized for the surface
            (defaults to Pillow's bundled font)
    """
    if settings.include_background:
        ctx.fill_rect(Rect(0, 0, geometry.pixel_width, geometry.pixel_height), settings.background_color)

    content = geometry.content_rect
    _draw_ruling(ctx, content, settings)

    if settings.show_margin_guide:
        x = geometry.margin_guide_x
        ctx.stroke_line(
            x, content.y, x, content.bottom,
            settings.margin_guide_color,
            settings.line_thickness + 1,
        )

    if settings.show_line_numbers:
        _draw_line_numbers(ctx, geometry, settings, number_font)

    if settings.texture != Texture.NONE and settings.include_background:
        apply_texture(ctx, settings.texture, seed=settings.seed)


def _draw_ruling(ctx: RenderContext, content: Rect, settings: Settings) -> None:
    style = settings.paper
    spacing = settings.line_spacing
    color = settings.line_color
    thickness = settings.line_thickness

    if style == PaperStyle.BLANK:
        return
    if spacing <= 0:
        logger.debug("line_spacing is 0, skipping ruling")
        return

    rows = ruling_rows(content, spacing)

    if style in (PaperStyle.RULED, PaperStyle.GRID):
        for y in rows:
            ctx.stroke_line(content.x, y, content.right, y, color, thickness)
        if style == PaperStyle.GRID:
            for x in ruling_columns(content, spacing):
                ctx.stroke_line(x, content.y, x, content.bottom, color, thickness)

    elif style == PaperStyle.DOTTED:
        cols = ruling_columns(content, spacing)
        for y in rows:
            for x in cols:
                ctx.fill_circle(x, y, DOT_RADIUS, color)

    elif style == PaperStyle.CURSIVE:
        for y in rows:
            if y + spacing > content.bottom + 1e-6:
                break
            ctx.stroke_dashed_line(content.x, y, content.right, y, color, thickness, CURSIVE_DASH)
            ctx.stroke_line(content.x, y + spacing / 2, content.right, y + spacing / 2, color, thickness)
            ctx.stroke_line(content.x, y + spacing, content.right, y + spacing, color, thickness)

    logger.debug(f"Drew {style.value} ruling with {len(rows)} rows")


def _draw_line_numbers(
    ctx: RenderContext,
    geometry: PageGeometry,
    settings: Settings,
    font: Optional[ImageFont.FreeTypeFont],
) -> None:
    """Right-aligned 1-based row numbers just left of the margin guide."""
    if font is None:
        font = FontFace(DEFAULT_FAMILY, 400, None).metrics(LINE_NUMBER_FONT_SIZE * ctx.scale).font
    x = geometry.margin_guide_x - LINE_NUMBER_GAP
    for number, baseline in enumerate(writing_baselines(geometry.content_rect, settings), start=1):
        ctx.draw_text(x, baseline, str(number), font, settings.line_color, anchor="rs")


def apply_texture(ctx: RenderContext, tier: Texture, *, seed: Optional[int] = None) -> None:
    """
    Add per-pixel luminance noise to the whole surface.

    The same noise value is added to R, G and B so hue is unchanged.
    Called before ink is drawn, so ink colours are never altered.
    An unseeded call uses seed 0 to keep renders reproducible.
    """
    intensity = TEXTURE_INTENSITY.get(Texture(tier))
    if not intensity:
        return

    pixels = np.array(ctx.snapshot(), dtype=np.uint8)
    rng = np.random.default_rng(0 if seed is None else seed)
    amplitude = intensity * 255
    for top in range(0, pixels.shape[0], TEXTURE_BAND_ROWS):
        band = pixels[top:top + TEXTURE_BAND_ROWS]
        noise = (rng.random(band.shape[:2], dtype=np.float32) - 0.5) * amplitude
        band[...] = np.clip(band + noise[..., np.newaxis], 0, 255).astype(np.uint8)
    ctx.apply_pixels(Image.fromarray(pixels))
    logger.debug(f"Applied {Texture(tier).value} paper texture")
