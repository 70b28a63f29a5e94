"""Exceptions raised by the interpolation core."""

from __future__ import annotations


class PrecheckFailed(ValueError):
    """Input is not sorted by vessel and time, or a track is too short."""


class UnsupportedMethod(ValueError):
    """Interpolation method is neither straight line nor cubic Hermite spline."""


class InvalidGeometry(ValueError):
    """Position input from which no latitude correction can be derived."""
