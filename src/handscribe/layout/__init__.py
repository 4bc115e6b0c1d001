"""
Module: handscribe.layout

Purpose:
    Page geometry, text line layout and pagination.
    Converts raw text plus Settings into positioned page plans.

Key Functions:
    - compute_geometry(): Page size and content rectangle
    - layout_text(): Break text into lines
    - paginate(): Arrange lines onto pages

Key Classes:
    - PageGeometry: Page dimensions and content rectangle
    - Line: Positioned text line
    - PagePlan: Single page layout plan
    - LayoutResult: Final layout output

Used By:
    - handscribe.controller: Render pipeline
"""

from .models import Rect, PageGeometry, Line, PagePlan, LayoutResult
from .geometry import compute_geometry, page_geometry, PAGE_SIZES_PX
from .text import layout_text, wrap_words, split_two_lines
from .paginator import paginate, page_capacity

__all__ = [
    # Models
    "Rect",
    "PageGeometry",
    "Line",
    "PagePlan",
    "LayoutResult",
    # Geometry
    "compute_geometry",
    "page_geometry",
    "PAGE_SIZES_PX",
    # Text
    "layout_text",
    "wrap_words",
    "split_two_lines",
    # Pagination
    "paginate",
    "page_capacity",
]
