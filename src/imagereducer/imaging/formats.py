"""Image format detection from leading magic bytes."""

from __future__ import annotations

from enum import StrEnum

JPEG_SIGNATURE = b"\xff\xd8"
PNG_SIGNATURE = b"\x89PNG"
SNIFF_LENGTH = 4


class ImageFormat(StrEnum):
    JPEG = "jpeg"
    PNG = "png"
    UNKNOWN = "unknown"


_CONTENT_TYPES: dict[ImageFormat, str] = {
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def sniff_format(data: bytes) -> ImageFormat:
    """Classify a byte buffer as JPEG, PNG, or unknown.

    Total over all inputs: buffers shorter than four bytes are always
    ``UNKNOWN``, even when they begin with the two-byte JPEG marker.
    """
    if len(data) < SNIFF_LENGTH:
        return ImageFormat.UNKNOWN
    if data.startswith(JPEG_SIGNATURE):
        return ImageFormat.JPEG
    if data.startswith(PNG_SIGNATURE):
        return ImageFormat.PNG
    return ImageFormat.UNKNOWN


def content_type_for(fmt: ImageFormat) -> str:
    """Return the MIME type for a format, falling back to octet-stream."""
    return _CONTENT_TYPES.get(fmt, DEFAULT_CONTENT_TYPE)
