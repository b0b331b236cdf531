"""Reduction pipeline: sniff -> decode -> resample -> encode.

The pipeline is stateless per call. Codecs and the resampler are injected so
the imaging library can be swapped without touching the orchestration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from imagereducer.errors import UnrecognizedFormatError, UnsupportedFormatError
from imagereducer.imaging.codecs import default_codecs
from imagereducer.imaging.formats import ImageFormat, content_type_for, sniff_format
from imagereducer.imaging.resampler import resample

if TYPE_CHECKING:
    from collections.abc import Mapping

    from imagereducer.imaging.codecs import ImageCodec
    from imagereducer.imaging.resampler import Resampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReductionResult:
    """Encoded output of one reduction, always in the input's format."""

    data: bytes
    format: ImageFormat
    original_size: tuple[int, int]
    size: tuple[int, int]

    @property
    def content_type(self) -> str:
        return content_type_for(self.format)


class ReductionPipeline:
    """Orchestrates format detection, decoding, thumbnailing and encoding."""

    def __init__(
        self,
        codecs: Mapping[ImageFormat, ImageCodec] | None = None,
        resampler: Resampler = resample,
    ) -> None:
        self._codecs = dict(codecs) if codecs is not None else default_codecs()
        self._resampler = resampler

    def reduce(self, data: bytes, max_width: int, max_height: int) -> ReductionResult:
        """Shrink an encoded image to fit within ``max_width`` x ``max_height``.

        Raises:
            UnrecognizedFormatError: If the bytes carry no JPEG or PNG signature.
            DecodeError: If the bytes are not a valid image of the sniffed format.
            ImageTooLargeError: If the image exceeds the configured pixel limit.
            UnsupportedFormatError: If no codec is registered for the format.
            EncodeError: If the resized raster cannot be encoded.
        """
        fmt = sniff_format(data)
        if fmt is ImageFormat.UNKNOWN:
            raise UnrecognizedFormatError(f"No known signature in {len(data)} byte payload")

        codec = self._codec_for(fmt)
        raster = codec.decode(data)
        resized = self._resampler(raster, max_width, max_height)
        encoded = codec.encode(resized)

        logger.debug(
            "Reduced %s %dx%d -> %dx%d (%d -> %d bytes)",
            fmt,
            raster.width,
            raster.height,
            resized.width,
            resized.height,
            len(data),
            len(encoded),
        )
        return ReductionResult(
            data=encoded,
            format=fmt,
            original_size=raster.size,
            size=resized.size,
        )

    def _codec_for(self, fmt: ImageFormat) -> ImageCodec:
        match fmt:
            case ImageFormat.JPEG | ImageFormat.PNG:
                codec = self._codecs.get(fmt)
                if codec is None:
                    raise UnsupportedFormatError(f"No codec registered for {fmt}")
                return codec
            case _:
                raise UnsupportedFormatError(f"Cannot encode format: {fmt}")
