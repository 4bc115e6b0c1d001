"""
Module: handscribe.render.glyphs

Purpose:
    Draw a line of text so that it reads as handwritten: every glyph
    gets its own small random offset, rotation and kerning.

Key Classes:
    - GlyphJitter: Perturbation applied to one glyph
    - GlyphJitterRenderer: Draws Lines onto a RenderContext

Key Functions:
    - sample_jitter(): Draw one GlyphJitter from a random source

Algorithm (per character, cursor starting at line.x):
    s = strength * font_size / REFERENCE_FONT_SIZE
    1. dx = (r - 0.5) * 2 * s, dy = (r - 0.5) * 4 * s,
       rotation = (r - 0.5) * 0.1 * strength  (radians)
    2. Draw the glyph at (cursor + dx, baseline + dy) rotated about
       its own origin on a private tile
    3. Non-cursive style strokes the outline in a darker ink shade
    4. Advance cursor by advance width + letter spacing
       (+ word spacing for spaces) + (r - 0.5) * 0.4 * s

    With strength 0 no random numbers are drawn and output is
    byte-identical between renders.

Dependencies:
    - random (std): Injectable random source
    - PIL: Glyph rasterization (via RenderContext)

Used By:
    - handscribe.controller: Render pipeline
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from handscribe.config import Settings
from handscribe.fonts.provider import FontMetrics
from handscribe.layout.models import Line

from .colors import darken, parse_hex
from .context import RenderContext

logger = logging.getLogger(__name__)

# Font size at which strength maps 1:1 to pixels of positional jitter
REFERENCE_FONT_SIZE = 30

# Pen-pressure outline shade for non-cursive style
PEN_DARKEN = 0.15


@dataclass(frozen=True)
class GlyphJitter:
    """Perturbation for one glyph (nominal pixels / radians)."""

    dx: float = 0.0
    dy: float = 0.0
    rotation: float = 0.0
    kerning: float = 0.0


NO_JITTER = GlyphJitter()


def sample_jitter(rng: random.Random, strength: float, font_size: float) -> GlyphJitter:
    """
    Sample the perturbation for one glyph.

    Positional terms scale with font size so jitter looks the same at
    every size. Returns NO_JITTER without touching rng when strength is 0.

    Example:
        >>> sample_jitter(random.Random(1), 0, 24)
        GlyphJitter(dx=0.0, dy=0.0, rotation=0.0, kerning=0.0)
    """
    if strength == 0:
        return NO_JITTER
    s = strength * font_size / REFERENCE_FONT_SIZE
    return GlyphJitter(
        dx=(rng.random() - 0.5) * 2 * s,
        dy=(rng.random() - 0.5) * 4 * s,
        rotation=(rng.random() - 0.5) * 0.1 * strength,
        kerning=(rng.random() - 0.5) * 0.4 * s,
    )


class GlyphJitterRenderer:
    """
    Draws lines of text with handwriting jitter.

    Args:
        metrics: Font metrics at the nominal font size
        settings: Jitter strength, ink colour/opacity, cursive flag
        rng: Random source; defaults to random.Random(settings.seed)

    Example:
        >>> renderer = GlyphJitterRenderer(metrics, settings, rng=random.Random(7))
        >>> renderer.draw_line(ctx, line)
    """

    def __init__(
        self,
        metrics: FontMetrics,
        settings: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.metrics = metrics
        self.strength = settings.jitter
        self.font_size = settings.font_size
        self.ink = parse_hex(settings.ink_color)
        self.opacity = settings.ink_opacity
        self.pen_outline = not settings.cursive
        self.rng = rng if rng is not None else random.Random(settings.seed)
        self._surface_metrics: dict[float, FontMetrics] = {}

    def draw_line(self, ctx: RenderContext, line: Line) -> float:
        """
        Draw one line onto ctx.

        The line is drawn into a transparent ink layer which is then
        composited once with the ink opacity.

        Returns:
            Final cursor x (nominal pixels)
        """
        if not line.text:
            return line.x

        surface_font = self._metrics_for(ctx.scale).font
        bound = 4 * self.strength * self.font_size / REFERENCE_FONT_SIZE
        layer = ctx.new_ink_layer(
            line.baseline - 2 * self.font_size - bound,
            3 * self.font_size + 2 * bound,
        )

        stroke_width = 0
        stroke_fill = None
        if self.pen_outline:
            stroke_width = max(1, int(round(ctx.px(self.font_size) / 40)))
            stroke_fill = darken(self._ink_hex(), PEN_DARKEN)

        cursor = line.x
        for ch in line.text:
            advance = self.metrics.advance(ch)
            if not ch.isprintable():
                continue
            jitter = sample_jitter(self.rng, self.strength, self.font_size)
            if not ch.isspace():
                layer.draw_glyph(
                    ctx.px(cursor + jitter.dx),
                    ctx.px(line.baseline + jitter.dy),
                    ch,
                    surface_font,
                    self.ink,
                    rotation=jitter.rotation,
                    stroke_width=stroke_width,
                    stroke_fill=stroke_fill,
                )
            cursor += advance + jitter.kerning

        ctx.composite_layer(layer, self.opacity)
        return cursor

    def _metrics_for(self, scale: float) -> FontMetrics:
        """Font metrics sized for a surface at the given scale."""
        if scale == 1:
            return self.metrics
        if scale not in self._surface_metrics:
            self._surface_metrics[scale] = self.metrics.scaled(scale)
        return self._surface_metrics[scale]

    def _ink_hex(self) -> str:
        r, g, b, a = self.ink
        return f"#{r:02x}{g:02x}{b:02x}{a:02x}"
