"""Hex colour helpers."""

from __future__ import annotations

from typing import Tuple

RGBA = Tuple[int, int, int, int]


def parse_hex(color: str) -> RGBA:
    """
    Parse '#rgb', '#rrggbb' or '#rrggbbaa' into an RGBA tuple.

    Example:
        >>> parse_hex("#f00")
        (255, 0, 0, 255)
    """
    value = color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) == 6:
        value += "ff"
    if len(value) != 8:
        raise ValueError(f"Invalid hex colour: {color!r}")
    r, g, b, a = (int(value[i:i + 2], 16) for i in range(0, 8, 2))
    return r, g, b, a


def darken(color: str, amount: float = 0.1) -> RGBA:
    """Subtract amount * 255 from each channel, clamped at 0."""
    r, g, b, a = parse_hex(color)
    delta = round(255 * amount)
    return max(0, r - delta), max(0, g - delta), max(0, b - delta), a

