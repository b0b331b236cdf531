"""Middleware: request logging and upload size limiting."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from imagereducer.api.errors import error_response
from imagereducer.errors import UploadTooLargeError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import Request, Response

    from imagereducer.config import Settings

logger = logging.getLogger(__name__)

# Allowance for multipart boundaries, part headers and the size fields.
FORM_OVERHEAD_BYTES = 65_536


def _get_settings_from_request(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Log method, path, status and elapsed time for every request."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        '"%s %s" %d in %.1fms',
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


async def limit_upload_size(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Reject bodies whose declared Content-Length exceeds the upload limit.

    Runs before the multipart body is parsed. Bodies without a usable
    Content-Length are checked again by the route once the upload is read.
    """
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        limit = _get_settings_from_request(request).max_file_size + FORM_OVERHEAD_BYTES
        if int(content_length) > limit:
            logger.warning("Rejected %s byte body (limit %d)", content_length, limit)
            return error_response(UploadTooLargeError(f"Content-Length {content_length} exceeds {limit}"))
    return await call_next(request)
