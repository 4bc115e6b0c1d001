"""
Unit tests for Settings validation, option parsing and SettingsStore.
"""

import pytest

from handscribe.config import (
    ExportFormat,
    LayoutMode,
    PageSize,
    PaperStyle,
    Settings,
    SettingsStore,
    TextAlign,
    Direction,
    settings_from_json,
    settings_from_mapping,
    split_known_options,
)
from handscribe.errors import ConfigParseError


class TestSettingsValidation:
    def test_settings_when_defaults_then_valid(self):
        settings = Settings()

        assert settings.page_size == PageSize.A4
        assert settings.paper == PaperStyle.RULED
        assert settings.layout_mode == LayoutMode.PARAGRAPH

    @pytest.mark.parametrize("changes", [
        {"font_size": 0},
        {"line_height": -1},
        {"margin_left": -5},
        {"line_spacing": -1},
        {"jitter": 3.5},
        {"ink_opacity": 1.5},
        {"export_quality": 101},
        {"export_scale": 0},
        {"font_weight": 50},
        {"ink_color": "black"},
    ])
    def test_settings_when_value_out_of_range_then_raises(self, changes):
        with pytest.raises(ConfigParseError):
            Settings(**changes)

    def test_settings_when_custom_size_missing_then_raises(self):
        with pytest.raises(ConfigParseError):
            Settings(page_size=PageSize.CUSTOM)

    def test_settings_when_enum_given_as_string_then_coerced(self):
        settings = Settings(paper="grid", layout_mode="Explicit", export_format="jpg")

        assert settings.paper is PaperStyle.GRID
        assert settings.layout_mode is LayoutMode.EXPLICIT
        assert settings.export_format is ExportFormat.JPEG

    @pytest.mark.parametrize("changes", [
        {"paper": "bogus"},
        {"layout_mode": "zigzag"},
        {"text_align": "justify"},
        {"orientation": 90},
    ])
    def test_settings_when_enum_value_unknown_then_raises(self, changes):
        with pytest.raises(ConfigParseError):
            Settings(**changes)

    @pytest.mark.parametrize("changes", [
        {"jitter": "lots"},
        {"font_size": None},
        {"line_spacing": True},
        {"ink_color": 0},
    ])
    def test_settings_when_value_wrong_type_then_raises(self, changes):
        with pytest.raises(ConfigParseError):
            Settings(**changes)

    def test_settings_when_numeric_strings_then_coerced(self):
        settings = Settings(jitter="1", font_weight="700", cursive="no")

        assert settings.jitter == 1.0
        assert settings.font_weight == 700
        assert settings.cursive is False

    def test_settings_when_margin_guide_inset_negative_then_raises(self):
        with pytest.raises(ConfigParseError):
            Settings(margin_guide_inset=-1)

    def test_line_pixels_when_font_and_multiplier_then_product(self):
        assert Settings(font_size=30, line_height=2).line_pixels == 60

    @pytest.mark.parametrize("align,direction,expected", [
        (TextAlign.START, Direction.LTR, TextAlign.LEFT),
        (TextAlign.START, Direction.RTL, TextAlign.RIGHT),
        (TextAlign.END, Direction.LTR, TextAlign.RIGHT),
        (TextAlign.END, Direction.RTL, TextAlign.LEFT),
        (TextAlign.CENTER, Direction.RTL, TextAlign.CENTER),
    ])
    def test_resolved_align_when_direction_given_then_start_end_resolved(self, align, direction, expected):
        settings = Settings(text_align=align, direction=direction)

        assert settings.resolved_align == expected


class TestSettingsFromMapping:
    def test_mapping_when_camel_case_keys_then_coerced(self):
        # Arrange
        options = {"fontSize": "30", "pageType": "grid", "showMarginLine": "false"}

        # Act
        settings = settings_from_mapping(options)

        # Assert
        assert settings.font_size == 30
        assert settings.paper == PaperStyle.GRID
        assert settings.show_margin_guide is False

    def test_mapping_when_acronym_camel_keys_then_recognised(self):
        settings = settings_from_mapping({"exportDPI": 150, "marginLinePosition": 60, "includeBackground": False})

        assert settings.export_dpi == 150
        assert settings.margin_guide_inset == 60
        assert settings.include_background is False

    def test_mapping_when_unknown_keys_then_ignored(self):
        settings = settings_from_mapping({"fooBar": 1, "font_size": 20, "theme": "dark"})

        assert settings.font_size == 20

    def test_mapping_when_jpg_format_then_jpeg(self):
        settings = settings_from_mapping({"exportFormat": "JPG"})

        assert settings.export_format == ExportFormat.JPEG

    def test_mapping_when_bad_enum_then_raises(self):
        with pytest.raises(ConfigParseError, match="paper"):
            settings_from_mapping({"paper": "papyrus"})

    def test_mapping_when_base_given_then_overlaid(self):
        base = Settings(font_size=40)

        settings = settings_from_mapping({"lineSpacing": 30}, base=base)

        assert settings.font_size == 40
        assert settings.line_spacing == 30

    def test_json_when_not_object_then_raises(self):
        with pytest.raises(ConfigParseError):
            settings_from_json("[1, 2, 3]")

    def test_replace_when_invalid_then_raises(self):
        with pytest.raises(ConfigParseError):
            Settings().replace(font_size=-2)

    def test_split_known_options_when_mixed_then_partitioned(self):
        honored, ignored = split_known_options({"fontSize": 20, "colorScheme": "dark"})

        assert honored == {"font_size": 20}
        assert ignored == {"colorScheme": "dark"}


class TestSettingsStore:
    def test_apply_json_when_malformed_then_previous_settings_kept(self):
        # Arrange
        store = SettingsStore()
        assert store.apply_json('{"fontSize": 30}')

        # Act
        applied = store.apply_json("{not json")

        # Assert
        assert applied is False
        assert store.settings.font_size == 30
        assert store.last_error is not None

    def test_apply_when_invalid_value_then_previous_settings_kept(self):
        store = SettingsStore(settings=Settings(font_size=18))

        assert store.apply({"fontSize": -1}) is False
        assert store.settings.font_size == 18

    def test_apply_when_valid_then_error_cleared(self):
        store = SettingsStore()
        store.apply({"fontSize": -1})

        assert store.apply({"fontSize": 20}) is True
        assert store.last_error is None

    def test_save_when_reloaded_then_settings_equal(self, tmp_path):
        # Arrange
        path = tmp_path / "settings.json"
        store = SettingsStore(path, Settings(font_size=28, paper=PaperStyle.DOTTED, seed=5))

        # Act
        store.save()
        reloaded = SettingsStore(path)

        # Assert
        assert reloaded.settings == store.settings

    def test_load_when_file_corrupt_then_defaults_kept(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding="utf-8")

        store = SettingsStore(path)

        assert store.settings == Settings()
        assert store.last_error is not None
