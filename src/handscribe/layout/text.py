"""
Module: handscribe.layout.text

Purpose:
    Break raw text into an ordered list of line strings according to
    a layout mode. Width measurement is delegated to a callable supplied
    by the font metrics provider; no glyph shaping happens here.

Key Functions:
    - layout_text(): Main entry point, dispatches on LayoutMode
    - wrap_words(): Greedy word wrap
    - split_two_lines(): Split once near the middle

Algorithm (paragraph mode):
    1. Split text into paragraphs on explicit line breaks
    2. For each paragraph, walk words left to right
    3. Append a word while measure(current + " " + word) <= max_width
    4. Otherwise flush the current line and start a new one
    5. A word wider than max_width sits alone on its own line

Used By:
    - handscribe.controller: Render pipeline
"""

from __future__ import annotations

import logging
from typing import Callable, List

from handscribe.config import LayoutMode

logger = logging.getLogger(__name__)

Measure = Callable[[str], float]


def layout_text(
    text: str,
    mode: LayoutMode,
    max_width: float,
    measure: Measure,
) -> List[str]:
    """
    Convert raw text into line strings.

    Args:
        text: Raw text, possibly containing line breaks
        mode: Layout mode
        max_width: Maximum line width (paragraph mode only)
        measure: Returns the rendered width of a string

    Returns:
        Ordered list of lines. Empty text yields [""] in every mode.

    Example:
        >>> layout_text("alpha beta gamma delta", LayoutMode.TWO_LINE, 0, len)
        ['alpha beta', 'gamma delta']
    """
    if not text:
        return [""]

    mode = LayoutMode(mode)
    if mode == LayoutMode.SINGLE_LINE:
        lines = [" ".join(_split_breaks(text))]
    elif mode == LayoutMode.TWO_LINE:
        lines = split_two_lines(text)
    elif mode == LayoutMode.EXPLICIT:
        lines = _split_breaks(text)
    else:
        lines = []
        for paragraph in _split_breaks(text):
            lines.extend(wrap_words(paragraph, max_width, measure))

    logger.debug(f"Laid out {len(text)} chars into {len(lines)} lines ({mode.value})")
    return lines


def wrap_words(paragraph: str, max_width: float, measure: Measure) -> List[str]:
    """
    Greedy word wrap of a single paragraph.

    Words are never dropped or split. A blank paragraph yields one
    empty line so that blank lines in the input survive.
    """
    words = paragraph.split()
    if not words:
        return [""]

    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if measure(candidate) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def split_two_lines(text: str) -> List[str]:
    """
    Split text once at the whitespace nearest the character midpoint.

    Ties between equally near whitespace prefer the left one. Without
    any whitespace the text is split exactly at the midpoint. Always
    returns two lines; the second may be empty.
    """
    mid = len(text) // 2
    spaces = [i for i, ch in enumerate(text) if ch.isspace()]
    if not spaces:
        return [text[:mid], text[mid:]]

    split_at = min(spaces, key=lambda i: (abs(i - mid), i))
    return [text[:split_at].strip(), text[split_at:].strip()]


def _split_breaks(text: str) -> List[str]:
    """Split on explicit line breaks (\\n, \\r\\n, \\r)."""
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
