"""Aspect-preserving thumbnail resampling.

The target size is the largest size that fits inside the requested bounding
box without enlarging the source. Pixels are then resampled with Pillow's
Lanczos filter, which premultiplies alpha for LA and RGBA images.
"""

from __future__ import annotations

import math
from typing import Protocol

from PIL import Image

from imagereducer.imaging.raster import PixelRaster


class Resampler(Protocol):
    """Callable that fits a raster inside a bounding box."""

    def __call__(self, raster: PixelRaster, max_width: int, max_height: int) -> PixelRaster: ...


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Compute the thumbnail size for a ``width`` x ``height`` source.

    The scale factor is ``min(max_width / width, max_height / height)``
    clamped to 1.0, so sources that already fit keep their size. Each
    dimension is rounded and floored at one pixel; a zero bound therefore
    collapses that axis (and, through the shared scale, the other) to 1.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")
    if max_width < 0 or max_height < 0:
        raise ValueError(f"Bounds must be non-negative, got {max_width}x{max_height}")

    scale = min(max_width / width, max_height / height, 1.0)
    target_width = max(1, min(max_width, _round_half_up(width * scale)))
    target_height = max(1, min(max_height, _round_half_up(height * scale)))
    return target_width, target_height


def resample(raster: PixelRaster, max_width: int, max_height: int) -> PixelRaster:
    """Shrink ``raster`` to fit within ``max_width`` x ``max_height``.

    Returns the input unchanged when it already fits.
    """
    size = fit_within(raster.width, raster.height, max_width, max_height)
    if size == raster.size:
        return raster

    resized = raster.to_image().resize(size, Image.Resampling.LANCZOS)
    return PixelRaster.from_image(resized)
