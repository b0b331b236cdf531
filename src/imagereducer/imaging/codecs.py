"""Pillow-backed decoders and encoders for the supported formats.

Decoding deliberately ignores EXIF orientation and embedded thumbnails: the
raster holds the stored pixel grid exactly as the file lays it out.
"""

from __future__ import annotations

import io
from typing import Any, Protocol

from PIL import Image

from imagereducer.errors import DecodeError, EncodeError, ImageTooLargeError, UnsupportedFormatError
from imagereducer.imaging.formats import ImageFormat
from imagereducer.imaging.raster import CHANNELS, PixelRaster

DEFAULT_JPEG_QUALITY = 75

_PIL_FORMATS: dict[ImageFormat, str] = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
}

_ALPHA_MODES = {"LA", "La", "PA", "RGBA", "RGBa"}


class ImageCodec(Protocol):
    """Protocol for a single-format decoder/encoder pair."""

    @property
    def format(self) -> ImageFormat:
        """Return the format this codec reads and writes."""
        ...

    def decode(self, data: bytes) -> PixelRaster:
        """Decode raw file bytes into a raster.

        Raises:
            DecodeError: If the bytes are not a valid image of this format.
            ImageTooLargeError: If the declared dimensions exceed the pixel limit.
        """
        ...

    def encode(self, raster: PixelRaster) -> bytes:
        """Serialize a raster into file bytes of this format.

        Raises:
            EncodeError: If the raster cannot be written.
        """
        ...


def _normalize_mode(image: Image.Image) -> Image.Image:
    """Convert a decoded image to one of the raster modes (L, LA, RGB, RGBA)."""
    if image.mode in CHANNELS:
        return image
    if image.mode == "1":
        return image.convert("L")
    if image.mode.startswith(("I", "F")):
        # 16-bit and 32-bit grayscale: keep the high byte.
        return image.convert("I").point(lambda v: v * (1 / 256)).convert("L")
    if image.mode in _ALPHA_MODES or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


class PillowCodec:
    """Decodes and encodes one image format with Pillow."""

    def __init__(
        self,
        fmt: ImageFormat,
        *,
        max_image_pixels: int | None = None,
        save_options: dict[str, Any] | None = None,
    ) -> None:
        if fmt not in _PIL_FORMATS:
            raise UnsupportedFormatError(f"No Pillow codec for format: {fmt}")
        self._format = fmt
        self._pil_format = _PIL_FORMATS[fmt]
        self._max_image_pixels = max_image_pixels
        self._save_options = save_options or {}

    @property
    def format(self) -> ImageFormat:
        return self._format

    def decode(self, data: bytes) -> PixelRaster:
        try:
            with Image.open(io.BytesIO(data), formats=[self._pil_format]) as image:
                self._check_dimensions(image.width, image.height)
                image.load()
                raster = PixelRaster.from_image(_normalize_mode(image))
        except Image.DecompressionBombError as exc:
            raise ImageTooLargeError(str(exc)) from exc
        except (OSError, SyntaxError, ValueError) as exc:
            raise DecodeError(f"Cannot decode {self._format} image: {exc}") from exc

        return raster

    def encode(self, raster: PixelRaster) -> bytes:
        if raster.width == 0 or raster.height == 0:
            raise EncodeError(f"Cannot encode empty raster {raster.width}x{raster.height}")

        buffer = io.BytesIO()
        try:
            # JPEG has no alpha channel.
            image = raster.to_image(drop_alpha=self._format is ImageFormat.JPEG)
            image.save(buffer, format=self._pil_format, **self._save_options)
        except (OSError, ValueError, MemoryError) as exc:
            raise EncodeError(f"Cannot encode {self._format} image: {exc}") from exc
        return buffer.getvalue()

    def _check_dimensions(self, width: int, height: int) -> None:
        if self._max_image_pixels is None:
            return
        if width * height > self._max_image_pixels:
            raise ImageTooLargeError(
                f"Image is {width}x{height} ({width * height} pixels), limit is {self._max_image_pixels}"
            )


def default_codecs(
    *,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    max_image_pixels: int | None = None,
) -> dict[ImageFormat, ImageCodec]:
    """Build the JPEG and PNG codecs used by the reduction pipeline."""
    return {
        ImageFormat.JPEG: PillowCodec(
            ImageFormat.JPEG,
            max_image_pixels=max_image_pixels,
            save_options={"quality": jpeg_quality},
        ),
        ImageFormat.PNG: PillowCodec(ImageFormat.PNG, max_image_pixels=max_image_pixels),
    }
