"""
Module: handscribe.fonts

Purpose:
    Font acquisition and glyph measurement.

Key Classes:
    - FontProvider: Abstract font acquisition interface
    - SystemFontProvider: Searches font directories
    - FontFace: Acquired font (size independent)
    - FontMetrics: Font at a pixel size, with spacing

Key Functions:
    - resolve_font(): Acquire with fallbacks, never fails
"""

from .provider import (
    FontProvider,
    SystemFontProvider,
    FontFace,
    FontMetrics,
    resolve_font,
    acquire_cached,
    clear_font_cache,
    FONT_PATH_ENV,
)

__all__ = [
    "FontProvider",
    "SystemFontProvider",
    "FontFace",
    "FontMetrics",
    "resolve_font",
    "acquire_cached",
    "clear_font_cache",
    "FONT_PATH_ENV",
]
