"""Error conditions raised by the reduction pipeline and the request boundary.

Each class carries a stable ``code`` that is returned to clients alongside a
generic message. Codec-specific detail stays in the exception text and is
only logged.
"""

from __future__ import annotations


class ReducerError(Exception):
    """Base class for every named reduction failure."""

    code: str = "ReducerError"
    message: str = "Failed to reduce image"


class MissingFieldError(ReducerError):
    code = "MissingField"
    message = "Failed to get image from form data"


class InvalidParameterError(ReducerError):
    code = "InvalidParameter"
    message = "Invalid maxWidth or maxHeight value"


class UploadTooLargeError(ReducerError):
    code = "UploadTooLarge"
    message = "Uploaded file is too large"


class UnrecognizedFormatError(ReducerError):
    code = "UnrecognizedFormat"
    message = "Failed to determine image format"


class DecodeError(ReducerError):
    code = "DecodeFailure"
    message = "Failed to resize image"


class ImageTooLargeError(ReducerError):
    code = "ImageTooLarge"
    message = "Image dimensions are too large"


class UnsupportedFormatError(ReducerError):
    code = "UnsupportedFormat"
    message = "Failed to resize image"


class EncodeError(ReducerError):
    code = "EncodeFailure"
    message = "Failed to resize image"
