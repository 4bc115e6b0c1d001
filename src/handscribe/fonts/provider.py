"""
Module: handscribe.fonts.provider

Purpose:
    Acquire fonts by family name and weight and expose synchronous
    glyph-width measurement. Acquired faces are kept in a process-wide,
    append-only cache keyed by (family, weight).

Key Classes:
    - FontProvider: Abstract font acquisition interface
    - SystemFontProvider: Searches font directories on disk
    - FontFace: An acquired font file (size independent)
    - FontMetrics: A face at a pixel size plus letter/word spacing

Key Functions:
    - resolve_font(): Acquire the configured font with fallbacks
    - clear_font_cache(): Reset the process-wide cache (tests)

Fallback order:
    1. Settings.font_path, when given
    2. Settings.font_family via the provider
    3. Settings.fallback_font_family via the provider
    4. Pillow's bundled default font

Dependencies:
    - PIL.ImageFont: FreeType font loading and measurement

Used By:
    - handscribe.controller: Render pipeline
    - handscribe.render.glyphs: Glyph drawing
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import ImageFont

from handscribe.errors import FontUnavailable

logger = logging.getLogger(__name__)

FONT_PATH_ENV = "HANDSCRIBE_FONT_PATH"
FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
DEFAULT_FAMILY = "<default>"

# Weight at and above which bold variants are preferred
BOLD_WEIGHT = 600


@lru_cache(maxsize=64)
def _load_font(path: Optional[str], size: int) -> ImageFont.FreeTypeFont:
    """Load a font file at a pixel size (None = Pillow's bundled default)."""
    if path is None:
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(path, size)


@dataclass(frozen=True)
class FontFace:
    """
    An acquired font, independent of size.

    Attributes:
        family: Family name the face was acquired for
        weight: Requested weight (100..900)
        path: Font file path, or None for Pillow's bundled default
    """

    family: str
    weight: int
    path: Optional[str]

    @property
    def is_default(self) -> bool:
        return self.path is None

    def metrics(
        self,
        size: float,
        *,
        letter_spacing: float = 0.0,
        word_spacing: float = 0.0,
    ) -> "FontMetrics":
        """Metrics for this face at a pixel size."""
        pixel_size = max(1, int(round(size)))
        return FontMetrics(
            face=self,
            font=_load_font(self.path, pixel_size),
            size=pixel_size,
            letter_spacing=letter_spacing,
            word_spacing=word_spacing,
        )


@dataclass(frozen=True)
class FontMetrics:
    """
    A font at a concrete pixel size with spacing applied.

    measure() is the sum of advance() over the string, so widths used
    for wrapping match the cursor advance used when drawing.

    Example:
        >>> metrics = face.metrics(24, letter_spacing=1)
        >>> metrics.measure("ab") == metrics.advance("a") + metrics.advance("b")
        True
    """

    face: FontFace
    font: ImageFont.FreeTypeFont
    size: int
    letter_spacing: float = 0.0
    word_spacing: float = 0.0

    def glyph_width(self, ch: str) -> float:
        """Raw advance width of a single glyph."""
        return float(self.font.getlength(ch))

    def advance(self, ch: str) -> float:
        """Cursor advance for one character including spacing."""
        if not ch.isprintable():
            return 0.0
        width = self.glyph_width(ch) + self.letter_spacing
        if ch == " ":
            width += self.word_spacing
        return width

    def measure(self, text: str) -> float:
        """Width of a string as drawn by the glyph renderer."""
        return sum(self.advance(ch) for ch in text)

    def scaled(self, factor: float) -> "FontMetrics":
        """Same font and spacing at factor times the size."""
        return self.face.metrics(
            self.size * factor,
            letter_spacing=self.letter_spacing * factor,
            word_spacing=self.word_spacing * factor,
        )


class FontProvider(ABC):
    """Abstract interface for acquiring fonts."""

    @abstractmethod
    def acquire(self, family: str, weight: int = 400) -> FontFace:
        """
        Acquire a font family at a weight.

        Raises:
            FontUnavailable: If the family cannot be found
        """


class SystemFontProvider(FontProvider):
    """
    Finds font files by family name in font directories.

    Directories searched, in order: explicit search_dirs, the
    HANDSCRIBE_FONT_PATH environment variable (os.pathsep separated),
    then the platform's usual font directories. File names are matched
    case-insensitively ignoring spaces, dashes and underscores, so
    "Indie Flower" matches IndieFlower-Regular.ttf.

    Example:
        >>> provider = SystemFontProvider([Path("fonts")])
        >>> provider.acquire("Caveat", 700).path
        'fonts/Caveat-Bold.ttf'
    """

    def __init__(self, search_dirs: Optional[Iterable[Path]] = None) -> None:
        self._search_dirs = [Path(d) for d in (search_dirs or [])]
        self._index: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def acquire(self, family: str, weight: int = 400) -> FontFace:
        if not family:
            raise FontUnavailable(family, weight, "empty family name")

        direct = Path(family)
        if direct.suffix.lower() in FONT_EXTENSIONS and direct.is_file():
            return FontFace(family=family, weight=weight, path=str(direct))

        index = self._get_index()
        for key in _candidate_keys(family, weight):
            path = index.get(key)
            if path:
                logger.debug(f"Resolved font {family!r} ({weight}) -> {path}")
                return FontFace(family=family, weight=weight, path=path)

        raise FontUnavailable(family, weight, "no matching font file")

    def search_dirs(self) -> List[Path]:
        """Directories searched for font files, in priority order."""
        dirs = list(self._search_dirs)
        env_paths = os.environ.get(FONT_PATH_ENV, "")
        dirs.extend(Path(p) for p in env_paths.split(os.pathsep) if p.strip())
        dirs.extend(_platform_font_dirs())
        return dirs

    def _get_index(self) -> Dict[str, str]:
        """Lazily scan search directories into {normalised stem: path}."""
        with self._lock:
            if self._index is None:
                index: Dict[str, str] = {}
                for directory in self.search_dirs():
                    if not directory.is_dir():
                        continue
                    for root, _, files in os.walk(directory):
                        for fname in sorted(files):
                            if not fname.lower().endswith(FONT_EXTENSIONS):
                                continue
                            key = _normalise(os.path.splitext(fname)[0])
                            # Earlier directories win
                            index.setdefault(key, os.path.join(root, fname))
                logger.debug(f"Indexed {len(index)} font files")
                self._index = index
            return self._index


def _normalise(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch.isalnum())


def _candidate_keys(family: str, weight: int) -> List[str]:
    """Normalised file stems to try for a family/weight, best first."""
    base = _normalise(family)
    if weight >= BOLD_WEIGHT:
        return [f"{base}bold", f"{base}{weight}", f"{base}semibold", base, f"{base}regular"]
    return [base, f"{base}regular", f"{base}{weight}", f"{base}book"]


def _platform_font_dirs() -> List[Path]:
    dirs: List[Path] = []
    if sys.platform.startswith("win"):
        windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
        if windir:
            dirs.append(Path(windir) / "Fonts")
    elif sys.platform == "darwin":
        dirs.extend([Path("/Library/Fonts"), Path("/System/Library/Fonts"),
                     Path.home() / "Library" / "Fonts"])
    else:
        dirs.extend([Path("/usr/share/fonts"), Path("/usr/local/share/fonts"),
                     Path.home() / ".fonts", Path.home() / ".local" / "share" / "fonts"])
    return dirs


# Process-wide cache of acquired faces, keyed by (family, weight).
# Append-only: entries are never replaced or removed outside tests.
_FACE_CACHE: Dict[Tuple[str, int], FontFace] = {}
_FACE_CACHE_LOCK = threading.Lock()


def acquire_cached(provider: FontProvider, family: str, weight: int) -> FontFace:
    """Acquire through the process-wide cache."""
    key = (family, weight)
    face = _FACE_CACHE.get(key)
    if face is not None:
        return face
    face = provider.acquire(family, weight)
    with _FACE_CACHE_LOCK:
        return _FACE_CACHE.setdefault(key, face)


def clear_font_cache() -> None:
    """Empty the process-wide face cache."""
    with _FACE_CACHE_LOCK:
        _FACE_CACHE.clear()
    _load_font.cache_clear()


def resolve_font(
    provider: FontProvider,
    family: str,
    weight: int = 400,
    *,
    fallback_family: Optional[str] = None,
    font_path: Optional[str] = None,
) -> Tuple[FontFace, List[str]]:
    """
    Acquire a font, falling back instead of failing.

    Args:
        provider: Font provider to query
        family: Preferred family
        weight: Preferred weight
        fallback_family: Family to try when the preferred one is missing
        font_path: Explicit font file, tried first

    Returns:
        (face, warnings) where warnings lists every fallback taken.
        Never raises FontUnavailable.
    """
    warnings: List[str] = []

    if font_path:
        path = Path(font_path)
        if path.is_file():
            return FontFace(family=family, weight=weight, path=str(path)), warnings
        message = f"Font file not found: {font_path}"
        logger.warning(message)
        warnings.append(message)

    for candidate in (family, fallback_family):
        if not candidate:
            continue
        try:
            return acquire_cached(provider, candidate, weight), warnings
        except FontUnavailable as e:
            logger.warning(f"{e}; trying fallback")
            warnings.append(str(e))

    logger.warning("Using Pillow's bundled default font")
    return FontFace(family=DEFAULT_FAMILY, weight=weight, path=None), warnings
