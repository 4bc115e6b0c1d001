"""
Module: handscribe.render.overlay

Purpose:
    Place user-supplied images onto a page at positions derived from an
    alignment keyword, scaled and with opacity applied as compositing
    alpha. Overlays are drawn in list order (later ones on top).

Key Classes:
    - ImageOverlay: One image to place (immutable)

Key Functions:
    - composite_overlays(): Draw all overlays for a page
    - overlay_rect(): Destination rectangle for an overlay
    - parse_alignment(): Keyword -> (vertical, horizontal)

Alignment keywords:
    top-left, top-right, bottom-left, bottom-right, center, top,
    bottom, left, right, and combinations such as top-center or
    center-right. Positions are relative to the page content rect.

Dependencies:
    - handscribe.images: Decoding
    - handscribe.render.context: Compositing

Used By:
    - handscribe.controller: Render pipeline
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from handscribe.errors import DecodeFailed
from handscribe.images.decoder import ImageDecoder, ImageSource, PillowImageDecoder
from handscribe.layout.models import Rect

from .context import RenderContext

logger = logging.getLogger(__name__)

_VERTICAL = {"top": "start", "bottom": "end"}
_HORIZONTAL = {"left": "start", "right": "end"}


def parse_alignment(keyword: str) -> Tuple[str, str]:
    """
    Parse an alignment keyword into (vertical, horizontal) anchors.

    Each anchor is "start", "center" or "end". Missing axes default to
    center.

    Raises:
        ValueError: If the keyword contains an unknown or conflicting token

    Example:
        >>> parse_alignment("top-right")
        ('start', 'end')
        >>> parse_alignment("left")
        ('center', 'start')
    """
    tokens = [t for t in keyword.strip().lower().replace("_", "-").replace(" ", "-").split("-") if t]
    if not tokens:
        raise ValueError("Empty alignment keyword")

    vertical: Optional[str] = None
    horizontal: Optional[str] = None
    for token in tokens:
        if token in ("top", "bottom"):
            if vertical is not None:
                raise ValueError(f"Conflicting vertical alignment in {keyword!r}")
            vertical = _VERTICAL[token]
        elif token in ("left", "right"):
            if horizontal is not None:
                raise ValueError(f"Conflicting horizontal alignment in {keyword!r}")
            horizontal = _HORIZONTAL[token]
        elif token in ("center", "middle"):
            # Fills whichever axis is left open
            continue
        else:
            raise ValueError(f"Unknown alignment token {token!r} in {keyword!r}")

    return vertical or "center", horizontal or "center"


@dataclass(frozen=True)
class ImageOverlay:
    """
    An image to composite onto the page (immutable).

    Attributes:
        source: Decoded PIL image, encoded bytes or a file path
        align: Alignment keyword (see parse_alignment)
        scale: Size multiplier applied to the image's pixel size
        opacity: Compositing alpha in [0, 1]
        page_index: Page to draw on (0-indexed); None draws on every page

    Example:
        >>> ImageOverlay(png_bytes, align="bottom-right", scale=0.5, opacity=0.8)
    """

    source: ImageSource
    align: str = "top-left"
    scale: float = 1.0
    opacity: float = 1.0
    page_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.scale <= 0:
            raise ValueError(f"Overlay scale must be positive: {self.scale}")
        if not 0 <= self.opacity <= 1:
            raise ValueError(f"Overlay opacity must be in [0, 1]: {self.opacity}")
        parse_alignment(self.align)

    def applies_to(self, page_index: int) -> bool:
        return self.page_index is None or self.page_index == page_index


def overlay_rect(image_size: Tuple[int, int], overlay: ImageOverlay, area: Rect) -> Rect:
    """Destination rectangle (nominal pixels) for an overlay within area."""
    width = image_size[0] * overlay.scale
    height = image_size[1] * overlay.scale
    vertical, horizontal = parse_alignment(overlay.align)
    return Rect(
        x=_anchor(area.x, area.width, width, horizontal),
        y=_anchor(area.y, area.height, height, vertical),
        width=width,
        height=height,
    )


def _anchor(start: float, span: float, size: float, anchor: str) -> float:
    if anchor == "start":
        return start
    if anchor == "end":
        return start + span - size
    return start + (span - size) / 2


def composite_overlays(
    ctx: RenderContext,
    overlays: Sequence[ImageOverlay],
    area: Rect,
    *,
    page_index: int = 0,
    decoder: Optional[ImageDecoder] = None,
) -> List[str]:
    """
    Draw overlays onto a page in list order.

    Overlays that fail to decode are skipped; the page render continues.

    Args:
        ctx: Page drawing target
        overlays: Overlays to draw
        area: Rectangle positions are relative to (the content rect)
        page_index: Index of the page being drawn
        decoder: Image decoder (defaults to PillowImageDecoder)

    Returns:
        Warning messages for skipped overlays
    """
    decoder = decoder or PillowImageDecoder()
    warnings: List[str] = []

    for position, overlay in enumerate(overlays):
        if not overlay.applies_to(page_index):
            continue
        try:
            image = decoder.load(overlay.source)
        except DecodeFailed as e:
            message = f"Skipping overlay {position} on page {page_index}: {e}"
            logger.warning(message)
            warnings.append(message)
            continue

        dest = overlay_rect(image.size, overlay, area)
        ctx.draw_image(image, dest, overlay.opacity)
        logger.debug(
            f"Placed overlay {position} ({overlay.align}) at "
            f"({dest.x:.0f}, {dest.y:.0f}) size {dest.width:.0f}x{dest.height:.0f}"
        )

    return warnings
