"""
Module: handscribe.layout.models

Purpose:
    Data models for page layout.
    Immutable dataclasses representing rectangles, placed text lines,
    page plans and the final layout result.

Key Classes:
    - Rect: Axis-aligned rectangle in nominal pixels
    - PageGeometry: Page pixel size and drawable content rectangle
    - Line: Text line positioned on a page
    - PagePlan: Lines assigned to a single page
    - LayoutResult: Final layout output

Dependencies:
    - dataclasses (std)

Used By:
    - handscribe.layout.geometry: Creates PageGeometry
    - handscribe.layout.paginator: Creates PagePlans
    - handscribe.render: Draws PagePlans
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from handscribe.errors import InvalidGeometry

# Default margin guide offset from the left margin
MARGIN_GUIDE_INSET = 40

# Clearance between text and the margin guide / right edge
TEXT_GUTTER = 20


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle (top-left origin).

    Example:
        >>> Rect(40, 40, 100, 50).bottom
        90
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PageGeometry:
    """
    Resolved page dimensions.

    Attributes:
        pixel_width: Page width in nominal pixels
        pixel_height: Page height in nominal pixels
        content_rect: Page minus the four margins
        margin_guide_inset: Guide offset from the left margin, independent
            of font size

    Example:
        >>> geometry = PageGeometry(1000, 2000, Rect(50, 50, 900, 1900))
        >>> geometry.content_rect.right
        950
    """

    pixel_width: int
    pixel_height: int
    content_rect: Rect
    margin_guide_inset: float = MARGIN_GUIDE_INSET

    @property
    def margin_guide_x(self) -> float:
        """X position of the vertical margin guide."""
        return self.content_rect.x + self.margin_guide_inset

    def text_rect(self, show_margin_guide: bool = True) -> Rect:
        """
        Area available to text.

        Text starts past the margin guide (when visible) plus a gutter,
        and stops one gutter short of the right margin.

        Raises:
            InvalidGeometry: If no horizontal room is left for text
        """
        content = self.content_rect
        left_inset = TEXT_GUTTER + (self.margin_guide_inset if show_margin_guide else 0)
        width = content.width - left_inset - TEXT_GUTTER
        if width <= 0:
            raise InvalidGeometry(
                f"No room for text: content width {content.width}px, "
                f"insets {left_inset + TEXT_GUTTER}px"
            )
        return Rect(content.x + left_inset, content.y, width, content.height)


@dataclass(frozen=True)
class Line:
    """
    A line of text positioned on a page.

    Attributes:
        text: Line content
        baseline: Baseline Y offset from page top (nominal pixels)
        x: Horizontal start of the line (after alignment)
        width: Measured width of the line
    """

    text: str
    baseline: float
    x: float
    width: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class PagePlan:
    """
    Layout plan for a single page.

    Attributes:
        index: Page number (0-indexed)
        lines: Lines assigned to this page, in order
        geometry: Page geometry the lines were placed against
    """

    index: int
    lines: Tuple[Line, ...]
    geometry: PageGeometry

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        """True if the page has no non-empty lines."""
        return all(line.is_empty for line in self.lines)


@dataclass(frozen=True)
class LayoutResult:
    """
    Final layout output with diagnostics.

    Attributes:
        pages: Tuple of PagePlans (never empty)
        warnings: Recovered problems noticed during layout
        line_height: Vertical extent of one line used for placement

    Example:
        >>> result.page_count
        2
        >>> [line.text for line in result.all_lines()]
        ['first', 'second', 'third']
    """

    pages: Tuple[PagePlan, ...]
    warnings: list[str] = field(default_factory=list)
    line_height: float = 0.0

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def line_count(self) -> int:
        return sum(p.line_count for p in self.pages)

    def all_lines(self) -> Tuple[Line, ...]:
        """Lines of every page, concatenated in page order."""
        return tuple(line for page in self.pages for line in page.lines)
