"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI

from imagereducer.api.errors import register_error_handlers
from imagereducer.api.middleware import limit_upload_size, log_requests
from imagereducer.api.routes import router
from imagereducer.config import Settings, get_settings
from imagereducer.imaging.codecs import default_codecs
from imagereducer.imaging.pipeline import ReductionPipeline

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> ReductionPipeline:
    """Create the reduction pipeline configured from settings."""
    codecs = default_codecs(
        jpeg_quality=settings.jpeg_quality,
        max_image_pixels=settings.max_image_pixels,
    )
    return ReductionPipeline(codecs=codecs)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load settings and build the pipeline on startup."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting image reducer (max_file_size=%s, max_image_pixels=%s, jpeg_quality=%s)",
        settings.max_file_size,
        settings.max_image_pixels,
        settings.jpeg_quality,
    )

    app.state.pipeline = build_pipeline(settings)

    logger.info("Image reducer ready")
    yield

    logger.info("Shutting down image reducer")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Image Reducer",
        description="Downscale uploaded JPEG and PNG images to fit a bounding box",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Last registered runs first: log every request, including rejected uploads.
    application.middleware("http")(limit_upload_size)
    application.middleware("http")(log_requests)

    register_error_handlers(application)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    logger.info("Server is listening on port %s...", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
