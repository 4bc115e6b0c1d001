"""
Module: handscribe.errors

Purpose:
    Exception hierarchy shared by the rendering pipeline.

Key Classes:
    - HandscribeError: Base class for all engine errors
    - InvalidGeometry: Margins leave no drawable area (fatal)
    - FontUnavailable: Font could not be acquired (recovered via fallback)
    - DecodeFailed: Overlay image could not be decoded (overlay skipped)
    - ConfigParseError: Settings input malformed (previous settings kept)
    - ExportUnavailable: Nothing ready to export yet (retryable)

Used By:
    - All handscribe subpackages
"""

from __future__ import annotations


class HandscribeError(Exception):
    """Base class for handscribe errors."""
    pass


class InvalidGeometry(HandscribeError, ValueError):
    """Margins exceed the page size."""
    pass


class FontUnavailable(HandscribeError):
    """Requested font family/weight could not be found."""

    def __init__(self, family: str, weight: int, reason: str = "") -> None:
        self.family = family
        self.weight = weight
        message = f"Font unavailable: {family!r} (weight {weight})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DecodeFailed(HandscribeError):
    """Image bytes could not be decoded."""
    pass


class ConfigParseError(HandscribeError, ValueError):
    """Settings input could not be parsed or failed validation."""
    pass


class ExportUnavailable(HandscribeError):
    """
    Export resource not ready.

    Raised when a render has not finished (or produced no pages).
    The caller may retry once a render completes.
    """
    pass
