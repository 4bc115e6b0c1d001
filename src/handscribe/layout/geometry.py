"""
Module: handscribe.layout.geometry

Purpose:
    Resolve a named or custom page size, orientation and margins into
    pixel dimensions and a drawable content rectangle.

Key Functions:
    - compute_geometry(): PageGeometry from Settings
    - page_geometry(): PageGeometry from explicit values

Dependencies:
    - handscribe.config: PageSize, Orientation

Used By:
    - handscribe.controller: Render pipeline
    - handscribe.layout.paginator: Page capacity
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from handscribe.config import Orientation, PageSize, Settings
from handscribe.errors import InvalidGeometry

from .models import MARGIN_GUIDE_INSET, PageGeometry, Rect

logger = logging.getLogger(__name__)

# Portrait page sizes in pixels at 300 DPI
PAGE_SIZES_PX: Dict[PageSize, Tuple[int, int]] = {
    PageSize.A4: (2480, 3508),
    PageSize.LETTER: (2550, 3300),
    PageSize.LEGAL: (2550, 4200),
    PageSize.A5: (1748, 2480),
}


def page_geometry(
    page_size: PageSize,
    orientation: Orientation = Orientation.PORTRAIT,
    margins: Tuple[float, float, float, float] = (0, 0, 0, 0),
    *,
    custom_size: Optional[Tuple[int, int]] = None,
    margin_guide_inset: float = MARGIN_GUIDE_INSET,
) -> PageGeometry:
    """
    Compute page geometry.

    Landscape swaps the base width and height before margins are applied.

    Args:
        page_size: Named size, or PageSize.CUSTOM
        orientation: Portrait or landscape
        margins: (top, right, bottom, left) in pixels
        custom_size: (width, height) in pixels, required for CUSTOM
        margin_guide_inset: Margin guide offset from the left margin

    Returns:
        PageGeometry with content_rect = page minus margins

    Raises:
        InvalidGeometry: If margins leave no positive content area

    Example:
        >>> g = page_geometry(PageSize.A4, margins=(40, 40, 60, 40))
        >>> (g.pixel_width, g.content_rect.width, g.content_rect.height)
        (2480, 2400, 3408)
    """
    if page_size == PageSize.CUSTOM:
        if custom_size is None:
            raise InvalidGeometry("Custom page size requires explicit width and height")
        width, height = custom_size
    else:
        width, height = PAGE_SIZES_PX[PageSize(page_size)]

    if orientation == Orientation.LANDSCAPE:
        width, height = height, width

    top, right, bottom, left = margins
    if min(margins) < 0:
        raise InvalidGeometry(f"Margins must be non-negative: {margins}")

    content = Rect(
        x=left,
        y=top,
        width=width - left - right,
        height=height - top - bottom,
    )
    if content.width <= 0:
        raise InvalidGeometry(f"Margins exceed page width: {left}+{right} >= {width}px")
    if content.height <= 0:
        raise InvalidGeometry(f"Margins exceed page height: {top}+{bottom} >= {height}px")

    return PageGeometry(
        pixel_width=int(width),
        pixel_height=int(height),
        content_rect=content,
        margin_guide_inset=margin_guide_inset,
    )


def compute_geometry(settings: Settings) -> PageGeometry:
    """PageGeometry for the page size, orientation and margins in settings."""
    custom = None
    if settings.page_size == PageSize.CUSTOM:
        custom = (settings.page_width, settings.page_height)
    geometry = page_geometry(
        settings.page_size,
        settings.orientation,
        (settings.margin_top, settings.margin_right, settings.margin_bottom, settings.margin_left),
        custom_size=custom,
        margin_guide_inset=settings.margin_guide_inset,
    )
    logger.debug(
        f"Page {geometry.pixel_width}x{geometry.pixel_height}px, "
        f"content {geometry.content_rect.width}x{geometry.content_rect.height}px"
    )
    return geometry
