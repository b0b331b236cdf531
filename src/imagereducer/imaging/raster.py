"""In-memory pixel raster shared by the codecs and the resampler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

if TYPE_CHECKING:
    from numpy.typing import NDArray

# Pillow mode -> number of samples per pixel.
CHANNELS: dict[str, int] = {
    "L": 1,
    "LA": 2,
    "RGB": 3,
    "RGBA": 4,
}


@dataclass(frozen=True)
class PixelRaster:
    """A decoded image: HxWxC uint8 samples in row-major order.

    ``mode`` is the Pillow mode the samples are laid out in; the last
    channel is alpha for ``LA`` and ``RGBA``.
    """

    pixels: NDArray[np.uint8]
    mode: str

    def __post_init__(self) -> None:
        if self.mode not in CHANNELS:
            raise ValueError(f"Unsupported raster mode: {self.mode}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != CHANNELS[self.mode]:
            raise ValueError(f"Pixel array shape {self.pixels.shape} does not match mode {self.mode}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Pixel array must be uint8, got {self.pixels.dtype}")

    @classmethod
    def from_image(cls, image: Image.Image) -> PixelRaster:
        """Copy the samples of an L, LA, RGB or RGBA Pillow image."""
        pixels = np.asarray(image, dtype=np.uint8)
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        return cls(pixels=pixels, mode=image.mode)

    def to_image(self, *, drop_alpha: bool = False) -> Image.Image:
        """Build a Pillow image over the samples, optionally without the alpha channel."""
        pixels = self.pixels
        if drop_alpha and self.has_alpha:
            pixels = pixels[..., :-1]
        if pixels.shape[2] == 1:
            pixels = pixels[..., 0]
        return Image.fromarray(np.ascontiguousarray(pixels))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def has_alpha(self) -> bool:
        return self.mode in ("LA", "RGBA")

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), matching Pillow's ordering."""
        return self.width, self.height
