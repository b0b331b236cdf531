"""Tests for the image reducer HTTP API."""

from __future__ import annotations

import io
import os
import threading
from typing import TYPE_CHECKING
from unittest.mock import patch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI, status
from PIL import Image

from imagereducer.config import get_settings
from imagereducer.main import build_pipeline, create_app


def _init_app_state(app: FastAPI, **env_overrides: str) -> None:
    """Manually initialize app state (ASGITransport does not trigger lifespan)."""
    with patch.dict(os.environ, env_overrides):
        settings = get_settings()
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings)


async def _make_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac


def _image_bytes(width: int, height: int, fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (30, 60, 90)).save(buffer, format=fmt)
    return buffer.getvalue()


def _form(max_width: str | None = "300", max_height: str | None = "300") -> dict[str, str]:
    data: dict[str, str] = {}
    if max_width is not None:
        data["maxWidth"] = max_width
    if max_height is not None:
        data["maxHeight"] = max_height
    return data


@pytest.fixture()
def app() -> FastAPI:
    """Create a fresh app instance with default settings."""
    application = create_app()
    _init_app_state(application)
    return application


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Async HTTP client for testing the app."""
    async for ac in _make_client(app):
        yield ac


class TestPingEndpoint:
    async def test_ping_returns_pong(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/ping")
        assert response.status_code == status.HTTP_200_OK
        assert response.text == "Pong!\n"


class TestReduceEndpoint:
    async def test_jpeg_is_reduced(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("photo.jpg", _image_bytes(1000, 500, "JPEG"), "image/jpeg")},
            data=_form("300", "300"),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "image/jpeg"
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.format == "JPEG"
            assert image.size == (300, 150)

    async def test_small_png_is_unchanged(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("icon.png", _image_bytes(100, 100, "PNG"), "image/png")},
            data=_form("500", "500"),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "image/png"
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.format == "PNG"
            assert image.size == (100, 100)

    async def test_format_follows_bytes_not_filename(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("mislabelled.jpg", _image_bytes(40, 40, "PNG"), "image/jpeg")},
            data=_form("20", "20"),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "image/png"

    async def test_unrecognized_format_returns_500(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("anim.gif", _image_bytes(10, 10, "GIF"), "image/gif")},
            data=_form(),
        )
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["code"] == "UnrecognizedFormat"

    async def test_corrupt_jpeg_returns_500_without_codec_detail(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("broken.jpg", b"\xff\xd8\xff\xe0" + b"\x00" * 100, "image/jpeg")},
            data=_form(),
        )
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        body = response.json()
        assert body["code"] == "DecodeFailure"
        assert body["detail"] == "Failed to resize image"

    async def test_missing_max_width_returns_400(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("photo.jpg", _image_bytes(50, 50, "JPEG"), "image/jpeg")},
            data=_form(max_width=None),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "InvalidParameter"

    @pytest.mark.parametrize("value", ["", "-1", "abc", "1.5", " 10", "+10", "18446744073709551616"])
    async def test_invalid_max_height_returns_400(self, client: httpx.AsyncClient, value: str) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("photo.jpg", _image_bytes(50, 50, "JPEG"), "image/jpeg")},
            data=_form(max_height=value),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "InvalidParameter"

    async def test_parameters_checked_before_format(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("notes.txt", b"plain text", "text/plain")},
            data=_form(max_width="wide"),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_missing_image_returns_400(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/reduce", data=_form())
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "MissingField"

    async def test_image_sent_as_text_field_returns_missing_field(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            data={"image": "not-a-file", "maxWidth": "300", "maxHeight": "300"},
            files={"placeholder": ("empty.txt", b"", "text/plain")},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "MissingField"

    async def test_zero_bounds_return_single_pixel(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/reduce",
            files={"image": ("photo.png", _image_bytes(64, 32, "PNG"), "image/png")},
            data=_form("0", "0"),
        )
        assert response.status_code == status.HTTP_200_OK
        with Image.open(io.BytesIO(response.content)) as image:
            assert image.size == (1, 1)

    async def test_reduction_runs_in_worker_thread(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        pipeline = app.state.pipeline
        reduce = pipeline.reduce
        threads: list[threading.Thread] = []

        def recording_reduce(*args: object) -> object:
            threads.append(threading.current_thread())
            return reduce(*args)

        with patch.object(pipeline, "reduce", side_effect=recording_reduce):
            response = await client.post(
                "/reduce",
                files={"image": ("photo.png", _image_bytes(40, 20, "PNG"), "image/png")},
                data=_form("10", "10"),
            )

        assert response.status_code == status.HTTP_200_OK
        assert len(threads) == 1
        assert threads[0] is not threading.main_thread()


class TestInputLimits:
    async def test_upload_over_limit_returns_413(self) -> None:
        app = create_app()
        _init_app_state(app, IMAGEREDUCER_MAX_FILE_SIZE="64")
        async for ac in _make_client(app):
            response = await ac.post(
                "/reduce",
                files={"image": ("photo.jpg", _image_bytes(200, 200, "JPEG"), "image/jpeg")},
                data=_form(),
            )
            assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            assert response.json()["code"] == "UploadTooLarge"

    async def test_declared_content_length_over_limit_returns_413(self) -> None:
        app = create_app()
        _init_app_state(app, IMAGEREDUCER_MAX_FILE_SIZE="64")
        async for ac in _make_client(app):
            response = await ac.post(
                "/reduce",
                files={"image": ("big.bin", b"\x00" * 200_000, "application/octet-stream")},
                data=_form(),
            )
            assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            assert response.json()["code"] == "UploadTooLarge"

    async def test_image_over_pixel_limit_returns_413(self) -> None:
        app = create_app()
        _init_app_state(app, IMAGEREDUCER_MAX_IMAGE_PIXELS="1000")
        async for ac in _make_client(app):
            response = await ac.post(
                "/reduce",
                files={"image": ("photo.png", _image_bytes(100, 100, "PNG"), "image/png")},
                data=_form(),
            )
            assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            assert response.json()["code"] == "ImageTooLarge"
