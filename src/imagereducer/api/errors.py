"""Mapping of reduction errors to HTTP responses.

Clients get a generic message and the error code; the exception text, which
may carry codec detail, is only logged.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from imagereducer.api.schemas import ErrorResponse
from imagereducer.errors import (
    DecodeError,
    EncodeError,
    ImageTooLargeError,
    InvalidParameterError,
    MissingFieldError,
    ReducerError,
    UnrecognizedFormatError,
    UnsupportedFormatError,
    UploadTooLargeError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[ReducerError], int] = {
    MissingFieldError: status.HTTP_400_BAD_REQUEST,
    InvalidParameterError: status.HTTP_400_BAD_REQUEST,
    UploadTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ImageTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    UnrecognizedFormatError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    DecodeError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UnsupportedFormatError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    EncodeError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: ReducerError) -> int:
    return _STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(exc: ReducerError) -> JSONResponse:
    """Render a reduction error as a JSON error body."""
    body = ErrorResponse(detail=exc.message, code=exc.code)
    return JSONResponse(status_code=status_code_for(exc), content=body.model_dump())


async def _handle_reducer_error(request: Request, exc: ReducerError) -> JSONResponse:
    logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc)
    return error_response(exc)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s rejected malformed form: %s", request.method, request.url.path, exc)
    # A non-file "image" part fails UploadFile validation; there is still no upload.
    if any(tuple(error.get("loc", ()))[-1:] == ("image",) for error in exc.errors()):
        return error_response(MissingFieldError(str(exc)))
    return error_response(InvalidParameterError(str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    """Install the exception handlers for every reduction error kind."""
    app.add_exception_handler(ReducerError, _handle_reducer_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
