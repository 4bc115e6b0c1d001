"""
Module: handscribe.render.context

Purpose:
    The mutable drawing target for one page render. Wraps a Pillow
    raster surface and exposes the drawing primitives used by the
    paper, glyph and overlay renderers.

    Primitives take nominal page coordinates and multiply them by the
    render scale, so a page rendered at export scale k is drawn at k
    times the pixel size rather than resized afterwards.

Key Classes:
    - RenderContext: Raster surface plus 2D drawing primitives
    - InkLayer: Transparent band that glyphs are drawn into before
      being composited onto the page with a single alpha

Key Functions:
    - encode_raster(): Encode a raster to PNG/JPEG bytes
    - flatten(): Composite a transparent raster onto a solid colour

Dependencies:
    - PIL: Raster surface, drawing, encoding

Used By:
    - handscribe.render.paper
    - handscribe.render.glyphs
    - handscribe.render.overlay
    - handscribe.output.exporter
"""

from __future__ import annotations

import io
import logging
import math
from typing import Optional, Sequence, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from handscribe.layout.models import Rect

from .colors import RGBA, parse_hex

logger = logging.getLogger(__name__)

Color = Union[str, RGBA]


def _rgba(color: Color) -> RGBA:
    return parse_hex(color) if isinstance(color, str) else color


def _alpha_composite_clipped(base: Image.Image, overlay: Image.Image, left: int, top: int) -> None:
    """Alpha-composite overlay onto base at (left, top), clipping to base bounds."""
    bw, bh = base.size
    ow, oh = overlay.size
    x0, y0 = max(0, left), max(0, top)
    x1, y1 = min(bw, left + ow), min(bh, top + oh)
    if x0 >= x1 or y0 >= y1:
        return
    cropped = overlay.crop((x0 - left, y0 - top, x1 - left, y1 - top))
    base.alpha_composite(cropped, dest=(x0, y0))


class RenderSealedError(RuntimeError):
    """Drawing attempted on a context whose raster was handed off."""
    pass


class InkLayer:
    """
    Transparent RGBA band spanning the page width.

    Coordinates are surface pixels (already scaled). The band starts
    at surface row `top`.
    """

    def __init__(self, width: int, top: int, height: int) -> None:
        self.top = top
        self.image = Image.new("RGBA", (max(1, width), max(1, height)), (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self.image)

    def draw_glyph(
        self,
        x: float,
        baseline: float,
        ch: str,
        font: ImageFont.FreeTypeFont,
        fill: RGBA,
        *,
        rotation: float = 0.0,
        stroke_width: int = 0,
        stroke_fill: Optional[RGBA] = None,
    ) -> None:
        """
        Draw one glyph with its origin (left baseline) at (x, baseline).

        Rotation is in radians, clockwise, about the glyph origin. The
        rotation is applied to a private tile so nothing carries over to
        the next glyph.
        """
        y = baseline - self.top
        if rotation == 0.0:
            self._draw.text(
                (x, y), ch, font=font, fill=fill, anchor="ls",
                stroke_width=stroke_width, stroke_fill=stroke_fill,
            )
            return

        pad = int(math.ceil(font.size * 2)) + stroke_width + 2
        # Tile is placed on whole pixels; the fractional part of the
        # origin is drawn inside the tile.
        left, top = int(math.floor(x)), int(math.floor(y))
        origin = (pad + (x - left), pad + (y - top))
        tile = Image.new("RGBA", (pad * 2, pad * 2), (0, 0, 0, 0))
        ImageDraw.Draw(tile).text(
            origin, ch, font=font, fill=fill, anchor="ls",
            stroke_width=stroke_width, stroke_fill=stroke_fill,
        )
        tile = tile.rotate(-math.degrees(rotation), resample=Image.Resampling.BICUBIC, center=origin)
        _alpha_composite_clipped(self.image, tile, left - pad, top - pad)


class RenderContext:
    """
    Drawing target for a single page render.

    Owned by one render call; never shared between concurrent renders.
    Once seal() is called the raster is handed off and further drawing
    raises RenderSealedError.

    Attributes:
        nominal_width: Page width in nominal pixels
        nominal_height: Page height in nominal pixels
        scale: Render scale (export scale multiplier)
        transparent: Surface is RGBA and starts fully transparent

    Example:
        >>> ctx = RenderContext(1000, 1400, scale=2)
        >>> ctx.pixel_size
        (2000, 2800)
        >>> ctx.stroke_line(0, 10, 1000, 10, "#d3d3d3")
        >>> raster = ctx.seal()
    """

    def __init__(
        self,
        nominal_width: int,
        nominal_height: int,
        *,
        scale: float = 1.0,
        background: Color = "#ffffff",
        transparent: bool = False,
    ) -> None:
        if scale <= 0:
            raise ValueError(f"scale must be positive: {scale}")
        self.nominal_width = nominal_width
        self.nominal_height = nominal_height
        self.scale = scale
        size = (max(1, int(round(nominal_width * scale))), max(1, int(round(nominal_height * scale))))
        self.transparent = transparent
        if transparent:
            self._image = Image.new("RGBA", size, (0, 0, 0, 0))
        else:
            self._image = Image.new("RGB", size, _rgba(background)[:3])
        self._draw = ImageDraw.Draw(self._image)
        self._sealed = False

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return self._image.size

    @property
    def sealed(self) -> bool:
        return self._sealed

    def px(self, value: float) -> float:
        """Nominal length to surface pixels."""
        return value * self.scale

    def stroke_px(self, thickness: float) -> int:
        """Stroke width in surface pixels (at least 1)."""
        return max(1, int(round(thickness * self.scale)))

    # ------------------------------------------------------------------
    # Primitives (nominal coordinates)
    # ------------------------------------------------------------------

    def fill_rect(self, rect: Rect, color: Color) -> None:
        self._check()
        s = self.scale
        box = (rect.x * s, rect.y * s, rect.right * s - 1, rect.bottom * s - 1)
        self._draw.rectangle(box, fill=_rgba(color))

    def stroke_line(
        self,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        color: Color,
        thickness: float = 1,
    ) -> None:
        self._check()
        s = self.scale
        self._draw.line(
            [(x0 * s, y0 * s), (x1 * s, y1 * s)],
            fill=_rgba(color),
            width=self.stroke_px(thickness),
        )

    def stroke_dashed_line(
        self,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        color: Color,
        thickness: float = 1,
        dash: Sequence[float] = (5, 5),
    ) -> None:
        """Dashed line; dash is (on, off) lengths in nominal pixels."""
        on, off = dash
        length = math.hypot(x1 - x0, y1 - y0)
        if length == 0 or on <= 0:
            return
        ux, uy = (x1 - x0) / length, (y1 - y0) / length
        pos = 0.0
        while pos < length:
            end = min(pos + on, length)
            self.stroke_line(
                x0 + ux * pos, y0 + uy * pos, x0 + ux * end, y0 + uy * end,
                color, thickness,
            )
            pos = end + off

    def fill_circle(self, cx: float, cy: float, radius: float, color: Color) -> None:
        self._check()
        s = self.scale
        r = radius * s
        self._draw.ellipse((cx * s - r, cy * s - r, cx * s + r, cy * s + r), fill=_rgba(color))

    def stroke_circle(self, cx: float, cy: float, radius: float, color: Color, thickness: float = 1) -> None:
        self._check()
        s = self.scale
        r = radius * s
        self._draw.ellipse(
            (cx * s - r, cy * s - r, cx * s + r, cy * s + r),
            outline=_rgba(color),
            width=self.stroke_px(thickness),
        )

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        font: ImageFont.FreeTypeFont,
        color: Color,
        *,
        anchor: str = "ls",
    ) -> None:
        """Draw unrotated text; font must already be sized for the surface."""
        self._check()
        self._draw.text((x * self.scale, y * self.scale), text, font=font, fill=_rgba(color), anchor=anchor)

    def draw_image(self, image: Image.Image, dest: Rect, opacity: float = 1.0) -> None:
        """Draw image scaled into dest, with opacity as compositing alpha."""
        self._check()
        s = self.scale
        width = max(1, int(round(dest.width * s)))
        height = max(1, int(round(dest.height * s)))
        tile = image.convert("RGBA")
        if tile.size != (width, height):
            tile = tile.resize((width, height), resample=Image.Resampling.LANCZOS)
        if opacity < 1.0:
            alpha = tile.getchannel("A").point(lambda a: int(round(a * opacity)))
            tile.putalpha(alpha)
        self._paste(tile, int(round(dest.x * s)), int(round(dest.y * s)))

    # ------------------------------------------------------------------
    # Ink layers (surface pixels)
    # ------------------------------------------------------------------

    def new_ink_layer(self, top: float, height: float) -> InkLayer:
        """Transparent band covering nominal rows [top, top + height)."""
        self._check()
        pixel_top = int(math.floor(top * self.scale))
        pixel_height = int(math.ceil(height * self.scale)) + 1
        return InkLayer(self._image.size[0], pixel_top, pixel_height)

    def composite_layer(self, layer: InkLayer, opacity: float = 1.0) -> None:
        """Composite an ink layer onto the page with one constant alpha."""
        self._check()
        tile = layer.image
        if opacity < 1.0:
            tile = tile.copy()
            tile.putalpha(tile.getchannel("A").point(lambda a: int(round(a * opacity))))
        self._paste(tile, 0, layer.top)

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------

    def pixels(self) -> bytes:
        """Raw pixel bytes, row-major (RGB, or RGBA when transparent)."""
        return self._image.tobytes()

    def apply_pixels(self, image: Image.Image) -> None:
        """Replace the surface contents with an image of the same size."""
        self._check()
        if image.size != self._image.size:
            raise ValueError(f"Size mismatch: {image.size} != {self._image.size}")
        self._image.paste(image.convert(self._image.mode))

    def snapshot(self) -> Image.Image:
        """Copy of the current surface."""
        return self._image.copy()

    def seal(self) -> Image.Image:
        """Hand off the raster; the context accepts no further drawing."""
        self._sealed = True
        return self._image

    def _paste(self, tile: Image.Image, left: int, top: int) -> None:
        if self._image.mode == "RGBA":
            _alpha_composite_clipped(self._image, tile, left, top)
        else:
            self._image.paste(tile, (left, top), tile)

    def _check(self) -> None:
        if self._sealed:
            raise RenderSealedError("RenderContext already sealed")


def flatten(image: Image.Image, background: Color = "#ffffff") -> Image.Image:
    """RGB copy of image with any transparency composited onto background."""
    if image.mode != "RGBA":
        return image.convert("RGB")
    base = Image.new("RGBA", image.size, _rgba(background))
    base.alpha_composite(image)
    return base.convert("RGB")


def encode_raster(image: Image.Image, fmt: str, *, quality: int = 95) -> bytes:
    """
    Encode a raster as PNG or JPEG bytes.

    PNG keeps an alpha channel; JPEG is flattened onto white.

    Args:
        image: Raster to encode
        fmt: "png" or "jpeg" (case-insensitive, "jpg" accepted)
        quality: JPEG quality in [0, 100]

    Returns:
        Encoded bytes
    """
    fmt = fmt.lower()
    buf = io.BytesIO()
    if fmt == "png":
        image.save(buf, format="PNG")
    elif fmt in ("jpeg", "jpg"):
        quality = max(0, min(100, int(quality)))
        flatten(image).save(buf, format="JPEG", quality=quality)
    else:
        raise ValueError(f"Unsupported raster format: {fmt}")
    return buf.getvalue()
