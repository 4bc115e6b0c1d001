"""
Module: handscribe.render

Purpose:
    Raster drawing for one page: paper, handwriting glyphs and image
    overlays on an explicit RenderContext.

Key Classes:
    - RenderContext: Drawing target for one page render
    - GlyphJitterRenderer: Handwriting-style line drawing
    - ImageOverlay: Image placed on the page

Key Functions:
    - render_paper(): Background, ruling, guide, numbers, texture
    - composite_overlays(): Draw overlays in list order
    - encode_raster(): PNG/JPEG encoding
"""

from .colors import parse_hex, darken
from .context import RenderContext, RenderSealedError, InkLayer, encode_raster, flatten
from .paper import render_paper, apply_texture, ruling_rows, writing_baselines
from .glyphs import GlyphJitter, GlyphJitterRenderer, sample_jitter
from .overlay import ImageOverlay, composite_overlays, overlay_rect, parse_alignment

__all__ = [
    # Colours
    "parse_hex",
    "darken",
    # Context
    "RenderContext",
    "RenderSealedError",
    "InkLayer",
    "encode_raster",
    "flatten",
    # Paper
    "render_paper",
    "apply_texture",
    "ruling_rows",
    "writing_baselines",
    # Glyphs
    "GlyphJitter",
    "GlyphJitterRenderer",
    "sample_jitter",
    # Overlays
    "ImageOverlay",
    "composite_overlays",
    "overlay_rect",
    "parse_alignment",
]
