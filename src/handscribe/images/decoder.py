"""
Module: handscribe.images.decoder

Purpose:
    Decode overlay image sources into Pillow images.

Key Classes:
    - ImageDecoder: Abstract decode interface
    - PillowImageDecoder: Default Pillow-backed decoder

Dependencies:
    - PIL: Image decoding

Used By:
    - handscribe.render.overlay: Overlay compositing
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from handscribe.errors import DecodeFailed

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, Path, Image.Image]


class ImageDecoder(ABC):
    """Abstract interface for turning encoded bytes into an image."""

    @abstractmethod
    def decode(self, source: bytes) -> Image.Image:
        """
        Decode encoded image bytes.

        Raises:
            DecodeFailed: If the bytes are not a readable image
        """

    def load(self, source: ImageSource) -> Image.Image:
        """
        Decode any supported source.

        Already-decoded images are returned unchanged; paths are read
        then decoded.
        """
        if isinstance(source, Image.Image):
            return source
        if isinstance(source, Path):
            try:
                source = source.read_bytes()
            except OSError as e:
                raise DecodeFailed(f"Cannot read image file: {e}") from e
        if not isinstance(source, (bytes, bytearray)):
            raise DecodeFailed(f"Unsupported image source: {type(source).__name__}")
        return self.decode(bytes(source))


class PillowImageDecoder(ImageDecoder):
    """
    Decode with Pillow, fully loading pixel data.

    Example:
        >>> image = PillowImageDecoder().decode(png_bytes)
        >>> image.mode
        'RGBA'
    """

    def decode(self, source: bytes) -> Image.Image:
        if not source:
            raise DecodeFailed("Empty image data")
        try:
            with Image.open(io.BytesIO(source)) as img:
                img.load()
                decoded = img.convert("RGBA")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeFailed(f"Cannot decode image: {e}") from e
        logger.debug(f"Decoded image {decoded.size[0]}x{decoded.size[1]}")
        return decoded
