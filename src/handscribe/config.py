"""
Module: handscribe.config

Purpose:
    Settings schema for the rendering engine. Immutable configuration
    with validation on construction, plus helpers that build Settings
    from flat option mappings (JSON, CLI, GUI forms) and a JSON-backed
    store that keeps the last valid settings when new input is malformed.

Key Classes:
    - Settings: Immutable per-render configuration
    - SettingsStore: JSON-file-backed store retaining prior valid settings
    - LayoutMode, PaperStyle, PageSize, Orientation, TextAlign,
      Direction, Texture, ExportFormat: option enumerations

Key Functions:
    - settings_from_mapping(): Validated construction from a flat mapping
    - settings_from_json(): Same, from a JSON document

Dependencies:
    - dataclasses (std)
    - json (std)

Used By:
    - handscribe.controller: Render pipeline
    - handscribe.cli: Command line options
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigParseError

logger = logging.getLogger(__name__)


class LayoutMode(str, Enum):
    """How raw text is broken into lines."""

    SINGLE_LINE = "single-line"  # Whole text on one line (captions)
    TWO_LINE = "two-line"        # Split once near the middle
    PARAGRAPH = "paragraph"      # Greedy word wrap
    EXPLICIT = "explicit"        # Split on literal line breaks only


class PaperStyle(str, Enum):
    """Background ruling drawn on the page."""

    RULED = "ruled"
    GRID = "grid"
    DOTTED = "dotted"
    CURSIVE = "cursive"
    BLANK = "blank"


class PageSize(str, Enum):
    A4 = "a4"
    LETTER = "letter"
    LEGAL = "legal"
    A5 = "a5"
    CUSTOM = "custom"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class TextAlign(str, Enum):
    """
    Horizontal alignment of each line.

    START and END resolve to LEFT/RIGHT according to the writing direction.
    """

    START = "start"
    END = "end"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Direction(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


class Texture(str, Enum):
    """Paper grain intensity tier."""

    NONE = "none"
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class ExportFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    PDF = "pdf"

    @classmethod
    def _missing_(cls, value):
        # Accept "jpg" and any letter case
        if isinstance(value, str):
            key = value.strip().lower()
            if key == "jpg":
                return cls.JPEG
            for member in cls:
                if member.value == key:
                    return member
        return None


# Upper bound for handwriting jitter strength
MAX_JITTER = 3.0

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

# Fields that must be >= 0
_NON_NEGATIVE_FIELDS = (
    "letter_spacing",
    "word_spacing",
    "margin_top",
    "margin_right",
    "margin_bottom",
    "margin_left",
    "line_spacing",
    "line_thickness",
    "margin_guide_inset",
    "jitter",
)

_COLOR_FIELDS = ("line_color", "ink_color", "background_color", "margin_guide_color")


@dataclass(frozen=True)
class Settings:
    """
    Rendering configuration (immutable).

    Grouped as typography, page geometry, ruling, jitter, colours and
    export. All lengths are nominal pixels (before export scaling).

    Invariants:
        - font_size > 0, line_height > 0
        - spacing and margin fields >= 0
        - 0 <= jitter <= MAX_JITTER
        - 0 <= ink_opacity <= 1
        - 0 <= export_quality <= 100
        - export_scale > 0, export_dpi > 0
        - custom page size requires page_width and page_height
        - enum fields accept members or their string values; other
          fields are coerced to their declared type

    Example:
        >>> settings = Settings(font_size=30, line_height=2, paper=PaperStyle.GRID)
        >>> settings.line_pixels
        60
    """

    # Typography
    font_family: str = "Caveat"
    font_path: Optional[str] = None
    fallback_font_family: str = "DejaVu Sans"
    font_size: float = 24
    font_weight: int = 400
    line_height: float = 1.8
    letter_spacing: float = 0.5
    word_spacing: float = 0.0
    text_align: TextAlign = TextAlign.START
    direction: Direction = Direction.LTR
    layout_mode: LayoutMode = LayoutMode.PARAGRAPH

    # Page geometry
    page_size: PageSize = PageSize.A4
    page_width: Optional[int] = None
    page_height: Optional[int] = None
    orientation: Orientation = Orientation.PORTRAIT
    margin_top: float = 80
    margin_right: float = 80
    margin_bottom: float = 80
    margin_left: float = 80

    # Ruling
    paper: PaperStyle = PaperStyle.RULED
    line_spacing: float = 40
    line_color: str = "#d3d3d3"
    line_thickness: float = 1
    show_margin_guide: bool = True
    margin_guide_inset: float = 40
    show_line_numbers: bool = False
    texture: Texture = Texture.NONE

    # Jitter
    jitter: float = 0.6
    cursive: bool = True
    seed: Optional[int] = None

    # Colours
    ink_color: str = "#000000"
    ink_opacity: float = 1.0
    background_color: str = "#ffffff"
    margin_guide_color: str = "#ff6b6b"

    # Export
    export_format: ExportFormat = ExportFormat.PNG
    export_quality: int = 95
    export_scale: float = 1.0
    export_dpi: float = 300
    include_background: bool = True

    def __post_init__(self) -> None:
        """Coerce every field to its declared type, then validate ranges."""
        for f in dataclasses.fields(self):
            object.__setattr__(self, f.name, _coerce(f.name, getattr(self, f.name)))

        if self.font_size <= 0:
            raise ConfigParseError(f"font_size must be positive: {self.font_size}")
        if self.line_height <= 0:
            raise ConfigParseError(f"line_height must be positive: {self.line_height}")
        if not 100 <= self.font_weight <= 900:
            raise ConfigParseError(f"font_weight must be in 100..900: {self.font_weight}")
        for name in _NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if value < 0:
                raise ConfigParseError(f"{name} must be non-negative: {value}")
        if self.jitter > MAX_JITTER:
            raise ConfigParseError(f"jitter must be at most {MAX_JITTER}: {self.jitter}")
        if not 0 <= self.ink_opacity <= 1:
            raise ConfigParseError(f"ink_opacity must be in [0, 1]: {self.ink_opacity}")
        if not 0 <= self.export_quality <= 100:
            raise ConfigParseError(f"export_quality must be in [0, 100]: {self.export_quality}")
        if self.export_scale <= 0:
            raise ConfigParseError(f"export_scale must be positive: {self.export_scale}")
        if self.export_dpi <= 0:
            raise ConfigParseError(f"export_dpi must be positive: {self.export_dpi}")
        if self.page_size == PageSize.CUSTOM:
            if not self.page_width or not self.page_height:
                raise ConfigParseError("custom page size requires page_width and page_height")
            if self.page_width <= 0 or self.page_height <= 0:
                raise ConfigParseError(
                    f"custom page size must be positive: {self.page_width}x{self.page_height}"
                )
        for name in _COLOR_FIELDS:
            value = getattr(self, name)
            if not _HEX_COLOR.match(value):
                raise ConfigParseError(f"{name} must be a hex colour like '#1a2b3c': {value!r}")

    @property
    def line_pixels(self) -> float:
        """Vertical extent of one text line (font_size * line_height)."""
        return self.font_size * self.line_height

    @property
    def resolved_align(self) -> TextAlign:
        """Alignment with START/END resolved against the writing direction."""
        rtl = self.direction == Direction.RTL
        if self.text_align == TextAlign.START:
            return TextAlign.RIGHT if rtl else TextAlign.LEFT
        if self.text_align == TextAlign.END:
            return TextAlign.LEFT if rtl else TextAlign.RIGHT
        return self.text_align

    def replace(self, **changes: Any) -> "Settings":
        """Return a copy with the given fields changed (validated)."""
        return settings_from_mapping(changes, base=self)

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON-compatible mapping of every option."""
        result: Dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result


_ENUM_FIELDS: Dict[str, type] = {
    "text_align": TextAlign,
    "direction": Direction,
    "layout_mode": LayoutMode,
    "page_size": PageSize,
    "orientation": Orientation,
    "paper": PaperStyle,
    "texture": Texture,
    "export_format": ExportFormat,
}

_FLOAT_FIELDS = {
    "font_size", "line_height", "letter_spacing", "word_spacing",
    "margin_top", "margin_right", "margin_bottom", "margin_left",
    "line_spacing", "line_thickness", "margin_guide_inset", "jitter", "ink_opacity",
    "export_scale", "export_dpi",
}
_INT_FIELDS = {"font_weight", "page_width", "page_height", "export_quality", "seed"}
_BOOL_FIELDS = {"show_margin_guide", "show_line_numbers", "cursive", "include_background"}
_STR_FIELDS = {
    "font_family", "font_path", "fallback_font_family",
    "line_color", "ink_color", "background_color", "margin_guide_color",
}
_OPTIONAL_FIELDS = {"font_path", "page_width", "page_height", "seed"}

# Alternate option names accepted from older front ends
_ALIASES = {
    "font_name": "font_family",
    "page_type": "paper",
    "page_orientation": "orientation",
    "text_direction": "direction",
    "text_color": "ink_color",
    "page_background": "background_color",
    "ruled_line_color": "line_color",
    "margin_line_color": "margin_guide_color",
    "show_margin_line": "show_margin_guide",
    "show_margins": "show_margin_guide",
    "margin_line_position": "margin_guide_inset",
    "paper_texture": "texture",
    "export_dpr": "export_scale",
    "custom_width": "page_width",
    "custom_height": "page_height",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _normalise_key(key: str) -> str:
    """Convert camelCase / kebab-case option names to snake_case."""
    snake = _CAMEL_BOUNDARY.sub("_", key.strip()).replace("-", "_").lower()
    return _ALIASES.get(snake, snake)


def _coerce(name: str, value: Any) -> Any:
    """Coerce a raw option value to the field's type."""
    if value is None:
        if name in _OPTIONAL_FIELDS:
            return None
        raise ConfigParseError(f"{name} must not be null")

    if name in _ENUM_FIELDS:
        enum_type = _ENUM_FIELDS[name]
        raw = value.value if isinstance(value, Enum) else str(value).strip().lower()
        try:
            return enum_type(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in enum_type)
            raise ConfigParseError(f"{name} must be one of {allowed}: {value!r}") from None

    if name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().lower()
        if text in ("true", "yes", "on", "1"):
            return True
        if text in ("false", "no", "off", "0"):
            return False
        raise ConfigParseError(f"{name} must be a boolean: {value!r}")

    if name in _FLOAT_FIELDS or name in _INT_FIELDS:
        if isinstance(value, bool):
            raise ConfigParseError(f"{name} must be a number: {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ConfigParseError(f"{name} must be a number: {value!r}") from None
        if number != number or number in (float("inf"), float("-inf")):
            raise ConfigParseError(f"{name} must be finite: {value!r}")
        if name in _INT_FIELDS:
            return int(round(number))
        return number

    if name in _STR_FIELDS:
        if not isinstance(value, str):
            raise ConfigParseError(f"{name} must be a string: {value!r}")
        return value

    raise ConfigParseError(f"Unknown option: {name}")


_KNOWN_FIELDS = {f.name for f in dataclasses.fields(Settings)}


def settings_from_mapping(
    options: Mapping[str, Any],
    *,
    base: Optional[Settings] = None,
) -> Settings:
    """
    Build Settings from a flat option mapping.

    Keys may be snake_case, camelCase or kebab-case. Only keys in the
    Settings schema are honored; unknown keys are ignored. Values are
    coerced to each field's type and the result is validated.

    Args:
        options: Flat mapping of option names to values
        base: Settings to overlay onto (defaults to Settings())

    Returns:
        New validated Settings

    Raises:
        ConfigParseError: If any honored value is malformed or out of range

    Example:
        >>> settings_from_mapping({"fontSize": "30", "pageType": "grid"}).font_size
        30.0
    """
    if not isinstance(options, Mapping):
        raise ConfigParseError(f"Options must be a mapping, got {type(options).__name__}")

    changes: Dict[str, Any] = {}
    for raw_key, value in options.items():
        key = _normalise_key(str(raw_key))
        if key not in _KNOWN_FIELDS:
            logger.debug(f"Ignoring unknown option: {raw_key}")
            continue
        changes[key] = _coerce(key, value)

    try:
        return dataclasses.replace(base or Settings(), **changes)
    except TypeError as e:
        raise ConfigParseError(str(e)) from e


def settings_from_json(text: str, *, base: Optional[Settings] = None) -> Settings:
    """
    Build Settings from a JSON object document.

    Raises:
        ConfigParseError: If the JSON is unparseable, not an object,
            or contains malformed values
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid options JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigParseError("Options JSON must be an object")
    return settings_from_mapping(payload, base=base)


class SettingsStore:
    """
    Holder for the current Settings that never accepts malformed input.

    Every update is validated as a whole; on failure the previous
    settings stay in place and the error is kept in ``last_error``.
    Optionally backed by a JSON file.

    Example:
        >>> store = SettingsStore()
        >>> store.apply_json('{"fontSize": 30}')
        True
        >>> store.apply_json('{not json')
        False
        >>> store.settings.font_size
        30.0
    """

    def __init__(self, path: Optional[Path] = None, settings: Optional[Settings] = None) -> None:
        self.path = path
        self.settings = settings or Settings()
        self.last_error: Optional[str] = None

        if self.path is not None and self.path.exists():
            try:
                text = self.path.read_text(encoding="utf-8")
            except OSError as e:
                self.last_error = f"Failed to read settings: {e}"
                logger.warning(self.last_error)
            else:
                self.apply_json(text)

    def apply(self, options: Mapping[str, Any]) -> bool:
        """
        Overlay options onto the current settings.

        Returns:
            True if applied, False if rejected (previous settings retained)
        """
        try:
            self.settings = settings_from_mapping(options, base=self.settings)
        except ConfigParseError as e:
            self._reject(e)
            return False
        self.last_error = None
        return True

    def apply_json(self, text: str) -> bool:
        """Overlay options from a JSON document (see apply())."""
        try:
            self.settings = settings_from_json(text, base=self.settings)
        except ConfigParseError as e:
            self._reject(e)
            return False
        self.last_error = None
        return True

    def save(self) -> None:
        """Write the current settings to the backing JSON file."""
        if self.path is None:
            raise ValueError("SettingsStore has no backing path")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.settings.to_dict(), indent=2), encoding="utf-8")
        logger.debug(f"Saved settings to {self.path}")

    def _reject(self, error: ConfigParseError) -> None:
        self.last_error = str(error)
        logger.warning(f"Configuration rejected, keeping previous settings: {error}")


def split_known_options(options: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Partition a raw mapping into (honored, ignored) option dicts.

    Keys in the honored dict are normalised field names.
    """
    honored: Dict[str, Any] = {}
    ignored: Dict[str, Any] = {}
    for raw_key, value in options.items():
        key = _normalise_key(str(raw_key))
        if key in _KNOWN_FIELDS:
            honored[key] = value
        else:
            ignored[str(raw_key)] = value
    return honored, ignored
