"""API route definitions."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from imagereducer.api.schemas import ErrorResponse
from imagereducer.errors import InvalidParameterError, MissingFieldError, UploadTooLargeError

if TYPE_CHECKING:
    from imagereducer.config import Settings
    from imagereducer.imaging.pipeline import ReductionPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

_UNSIGNED_DECIMAL = re.compile(r"[0-9]+")
_UINT64_MAX = 2**64 - 1


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_pipeline(request: Request) -> ReductionPipeline:
    pipeline: ReductionPipeline = request.app.state.pipeline
    return pipeline


def parse_dimension(name: str, value: str | None) -> int:
    """Parse a base-10 unsigned integer that fits in 64 bits.

    Signs, whitespace and non-ASCII digits are rejected.
    """
    if value is None or not _UNSIGNED_DECIMAL.fullmatch(value):
        raise InvalidParameterError(f"Invalid {name} value: {value!r}")
    parsed = int(value)
    if parsed > _UINT64_MAX:
        raise InvalidParameterError(f"{name} out of range: {value}")
    return parsed


@router.post(
    "/reduce",
    response_class=Response,
    responses={
        status.HTTP_200_OK: {"content": {"image/jpeg": {}, "image/png": {}}},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="Shrink an image to fit within a bounding box",
)
async def reduce_upload(
    request: Request,
    image: Annotated[UploadFile | None, File()] = None,
    max_width: Annotated[str | None, Form(alias="maxWidth")] = None,
    max_height: Annotated[str | None, Form(alias="maxHeight")] = None,
) -> Response:
    """Return the uploaded JPEG or PNG resized to fit maxWidth x maxHeight, in its original format."""
    if image is None:
        raise MissingFieldError("Form field 'image' is missing")

    width_bound = parse_dimension("maxWidth", max_width)
    height_bound = parse_dimension("maxHeight", max_height)

    settings = _get_settings(request)
    data = await image.read()
    if len(data) > settings.max_file_size:
        raise UploadTooLargeError(f"Upload is {len(data)} bytes, limit is {settings.max_file_size}")

    logger.info(
        "Reducing %s (%d bytes) to fit %dx%d",
        image.filename,
        len(data),
        width_bound,
        height_bound,
    )

    pipeline = _get_pipeline(request)
    result = await run_in_threadpool(pipeline.reduce, data, width_bound, height_bound)

    logger.info(
        "Reduced %s %dx%d -> %dx%d",
        result.format,
        *result.original_size,
        *result.size,
    )
    return Response(content=result.data, media_type=result.content_type)


@router.get("/ping", response_class=PlainTextResponse, summary="Liveness probe")
async def ping() -> str:
    """Return a fixed pong body."""
    return "Pong!\n"

