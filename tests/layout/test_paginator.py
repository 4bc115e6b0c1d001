"""
Unit tests for pagination and line placement.
"""

import pytest

from handscribe.config import LayoutMode, Settings, TextAlign
from handscribe.layout import PageGeometry, Rect, page_capacity, paginate


def char_width(text):
    return 10.0 * len(text)


@pytest.fixture
def geometry():
    # Text area with the margin guide: x=80, width=280, height=260
    return PageGeometry(400, 300, Rect(20, 20, 360, 260))


@pytest.fixture
def settings():
    # 20px per line -> 13 lines per page
    return Settings(font_size=10, line_height=2)


class TestPageCapacity:
    def test_capacity_when_exact_multiple_then_floor(self):
        assert page_capacity(100, 25) == 4
        assert page_capacity(260, 20) == 13

    def test_capacity_when_line_taller_than_page_then_zero(self):
        assert page_capacity(100, 150) == 0

    def test_capacity_when_line_height_not_positive_then_raises(self):
        with pytest.raises(ValueError):
            page_capacity(100, 0)


class TestPaginate:
    def test_paginate_when_overflowing_then_minimal_pages_in_order(self, geometry, settings):
        # Arrange
        lines = [f"line {i}" for i in range(30)]

        # Act
        result = paginate(lines, geometry, settings, char_width)

        # Assert
        assert [page.line_count for page in result.pages] == [13, 13, 4]
        assert [line.text for line in result.all_lines()] == lines
        assert [page.index for page in result.pages] == [0, 1, 2]

    def test_paginate_when_no_lines_then_one_empty_page(self, geometry, settings):
        result = paginate([], geometry, settings, char_width)

        assert result.page_count == 1
        assert result.pages[0].is_empty

    def test_paginate_when_placed_then_baselines_step_by_line_height(self, geometry, settings):
        result = paginate(["a", "b", "c"], geometry, settings, char_width)

        assert [line.baseline for line in result.pages[0].lines] == [40, 60, 80]

    def test_paginate_when_line_taller_than_page_then_one_per_page_with_warning(self, geometry):
        settings = Settings(font_size=200, line_height=2)

        result = paginate(["a", "b", "c"], geometry, settings, char_width)

        assert result.page_count == 3
        assert result.warnings

    def test_paginate_when_caption_mode_then_vertically_centred(self, geometry):
        settings = Settings(font_size=10, line_height=2, layout_mode=LayoutMode.SINGLE_LINE)

        result = paginate(["caption"], geometry, settings, char_width)

        # top 20 + (260 - 20) / 2 offset + one line
        assert result.pages[0].lines[0].baseline == 160


class TestLinePlacement:
    @pytest.mark.parametrize("align,expected_x", [
        (TextAlign.LEFT, 80),
        (TextAlign.RIGHT, 330),
        (TextAlign.CENTER, 205),
    ])
    def test_place_when_aligned_then_x_from_alignment(self, geometry, align, expected_x):
        settings = Settings(font_size=10, line_height=2, text_align=align)

        line = paginate(["abc"], geometry, settings, char_width).pages[0].lines[0]

        assert line.x == expected_x
        assert line.width == 30

    def test_place_when_line_wider_than_area_then_starts_at_left_edge(self, geometry):
        settings = Settings(font_size=10, line_height=2, text_align=TextAlign.RIGHT)

        line = paginate(["x" * 40], geometry, settings, char_width).pages[0].lines[0]

        assert line.x == 80
