"""
Module: handscribe.layout.paginator

Purpose:
    Assign laid-out text lines to pages so that no page's cumulative
    line extent (line_count * line_height) exceeds its content height.

Key Functions:
    - paginate(): Main pagination function
    - page_capacity(): Lines that fit on one page

Algorithm:
    1. capacity = floor(content_height / line_height), at least 1
    2. Fill the current page in order until it holds `capacity` lines
    3. Start a new page when the next line would overflow
    4. Position each line: baseline from its row, x from the alignment

Guarantees:
    - Every input line appears on exactly one page, in order
    - Page count is the minimum satisfying the height constraint
    - Zero input lines still produce one (empty) page

Dependencies:
    - handscribe.layout.models: Line, PagePlan, LayoutResult

Used By:
    - handscribe.controller: Render pipeline
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Sequence

from handscribe.config import LayoutMode, Settings, TextAlign

from .models import Line, LayoutResult, PageGeometry, PagePlan, Rect

logger = logging.getLogger(__name__)

# Layout modes whose lines are centred vertically on the page
_CAPTION_MODES = (LayoutMode.SINGLE_LINE, LayoutMode.TWO_LINE)


def page_capacity(content_height: float, line_height: float) -> int:
    """
    Number of lines that fit in content_height.

    Returns 0 when a single line is taller than the content area;
    paginate() still places one line per page in that case.
    """
    if line_height <= 0:
        raise ValueError(f"line_height must be positive: {line_height}")
    # Tolerate float error so that e.g. 3 * 0.1 fits in 0.3
    return int(math.floor(content_height / line_height + 1e-9))


def paginate(
    lines: Sequence[str],
    geometry: PageGeometry,
    settings: Settings,
    measure: Callable[[str], float],
) -> LayoutResult:
    """
    Arrange lines onto pages.

    Args:
        lines: Line strings from layout_text(), in order
        geometry: Page geometry
        settings: Supplies line height, alignment and layout mode
        measure: Returns the rendered width of a string

    Returns:
        LayoutResult with at least one PagePlan

    Example:
        >>> result = paginate(["a", "b", "c"], geometry, settings, font.measure)
        >>> [p.line_count for p in result.pages]
        [3]
    """
    warnings: List[str] = []
    line_height = settings.line_pixels
    text_area = geometry.text_rect(settings.show_margin_guide)

    capacity = page_capacity(text_area.height, line_height)
    if capacity == 0:
        message = (
            f"Line height {line_height:.1f}px exceeds content height "
            f"{text_area.height:.1f}px; placing one line per page"
        )
        logger.warning(message)
        warnings.append(message)
        capacity = 1

    chunks: List[Sequence[str]] = [
        lines[start:start + capacity] for start in range(0, len(lines), capacity)
    ] or [[]]

    align = settings.resolved_align
    pages: List[PagePlan] = []
    for index, chunk in enumerate(chunks):
        top = text_area.y
        if settings.layout_mode in _CAPTION_MODES and len(chunks) == 1:
            top += max(0.0, (text_area.height - len(chunk) * line_height) / 2)

        placed = tuple(
            _place_line(text, top + (row + 1) * line_height, text_area, align, measure)
            for row, text in enumerate(chunk)
        )
        pages.append(PagePlan(index=index, lines=placed, geometry=geometry))

    logger.info(f"Paginated {len(lines)} lines onto {len(pages)} pages")

    return LayoutResult(pages=tuple(pages), warnings=warnings, line_height=line_height)


def _place_line(
    text: str,
    baseline: float,
    area: Rect,
    align: TextAlign,
    measure: Callable[[str], float],
) -> Line:
    """Position one line horizontally within the text area."""
    width = measure(text) if text else 0.0
    if align == TextAlign.RIGHT:
        x = area.right - width
    elif align == TextAlign.CENTER:
        x = area.x + (area.width - width) / 2
    else:
        x = area.x
    # Over-wide lines start at the left edge whatever the alignment
    x = max(area.x, x)
    return Line(text=text, baseline=baseline, x=x, width=width)
