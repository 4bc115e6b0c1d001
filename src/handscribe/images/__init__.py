"""
Module: handscribe.images

Purpose:
    Image decode provider for overlays.

Key Classes:
    - ImageDecoder: Abstract decode interface
    - PillowImageDecoder: Default decoder
"""

from .decoder import ImageDecoder, PillowImageDecoder, ImageSource

__all__ = [
    "ImageDecoder",
    "PillowImageDecoder",
    "ImageSource",
]
