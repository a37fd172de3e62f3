"""Thumbnail geometry: bounding-box fitting that never upscales."""

from __future__ import annotations

import math
from fractions import Fraction

from ..config import ThumbnailSettings
from .upload_models import ThumbnailSpec


def round_half_away(value: Fraction) -> int:
    if value < 0:
        return -math.floor(-value + Fraction(1, 2))
    return math.floor(value + Fraction(1, 2))


def scale_ratio(width: int, height: int, bound: tuple[int, int]) -> Fraction:
    """Largest per-axis shrink factor, clamped to 1."""
    bound_width, bound_height = bound
    return max(Fraction(width, bound_width), Fraction(height, bound_height), Fraction(1))


def fit_dimensions(width: int, height: int, bound: tuple[int, int]) -> tuple[int, int]:
    ratio = scale_ratio(width, height, bound)
    return round_half_away(width / ratio), round_half_away(height / ratio)


def thumbnail_spec(
    width: int,
    height: int,
    *,
    pinky: bool,
    settings: ThumbnailSettings,
) -> ThumbnailSpec:
    """Return target dims, quality and background for the given context."""
    if pinky:
        bound = settings.pinky_dimensions
        quality = settings.pinky_quality
        background = settings.pinky_background
    else:
        bound = settings.thumb_dimensions
        quality = settings.thumb_quality
        background = settings.thumb_background
    ratio = scale_ratio(width, height, bound)
    return ThumbnailSpec(
        dims=(round_half_away(width / ratio), round_half_away(height / ratio)),
        quality=quality,
        background=background,
        bound=tuple(bound),
        ratio=float(ratio),
    )
