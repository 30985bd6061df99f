"""FastAPI transport converting one uploaded image per request.

Install with the ``server`` extra. Run with ``webp-convert-http``; host and
port default to ``WEBP_CONVERTER_HTTP_HOST`` / ``WEBP_CONVERTER_HTTP_PORT``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from types import ModuleType
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from webp_converter import __version__
from webp_converter.application.options import DEFAULT_QUALITY
from webp_converter.errors import ConversionError, DependencyError
from webp_converter.formats import SUPPORTED_EXTENSIONS
from webp_converter.schemas import MAX_QUALITY, MIN_QUALITY
from webp_converter.service.core import convert_image_bytes

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

APP_REF = "webp_converter.service.http_server:app"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8090

fastapi: ModuleType | None
try:
    import fastapi
except ModuleNotFoundError:  # pragma: no cover
    fastapi = None

uvicorn: ModuleType | None
try:
    import uvicorn
except ModuleNotFoundError:  # pragma: no cover
    uvicorn = None


class HealthResponse(BaseModel):
    """Liveness/readiness probe payload."""

    model_config = ConfigDict(extra="forbid")

    status: str


class FormatsResponse(BaseModel):
    """Decoders and quality range accepted by the upload endpoint."""

    model_config = ConfigDict(extra="forbid")

    extensions: list[str]
    auto_detect: bool
    min_quality: int
    max_quality: int
    default_quality: int


def _require(module: ModuleType | None, name: str) -> ModuleType:
    if module is None:
        raise DependencyError(
            f"{name} is required to run webp-convert-http. Install with extra: .[server]"
        )
    return module


def create_app() -> FastAPI:
    """Create the WebP conversion HTTP application.

    Raises
    ------
    DependencyError
        If FastAPI is not installed.
    """
    api = _require(fastapi, "fastapi")
    app = api.FastAPI(
        title="WebP Converter",
        version=__version__,
        description="Upload a raster image and download it re-encoded as WebP.",
    )

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/readyz", response_model=HealthResponse)
    async def readyz() -> HealthResponse:
        return HealthResponse(status="ready")

    @app.get("/v1/formats", response_model=FormatsResponse)
    async def formats() -> FormatsResponse:
        return FormatsResponse(
            extensions=list(SUPPORTED_EXTENSIONS),
            auto_detect=True,
            min_quality=MIN_QUALITY,
            max_quality=MAX_QUALITY,
            default_quality=DEFAULT_QUALITY,
        )

    @app.post("/v1/convert/upload", response_model=None)
    async def convert_upload(
        image: fastapi.UploadFile = api.File(...),
        quality: int = api.Form(DEFAULT_QUALITY),
    ) -> fastapi.Response:
        """Convert the uploaded image and return the WebP bytes."""
        payload = await image.read()
        if not payload:
            raise api.HTTPException(
                status_code=api.status.HTTP_400_BAD_REQUEST,
                detail="uploaded image is empty",
            )
        try:
            # Decode/encode is CPU bound; keep it off the event loop.
            input_sha, outcome = await asyncio.to_thread(
                convert_image_bytes,
                payload,
                filename=image.filename or "image",
                quality=quality,
            )
        except ConversionError as exc:
            logger.info("rejected upload %r: %s", image.filename, exc)
            raise api.HTTPException(
                status_code=api.status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc
        except Exception as exc:
            logger.exception("unexpected error converting upload %r", image.filename)
            raise api.HTTPException(
                status_code=api.status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error",
            ) from exc

        return api.Response(
            content=outcome.output_bytes,
            media_type="image/webp",
            headers={
                "X-Input-SHA256": input_sha,
                "X-Output-SHA256": outcome.output_sha256,
                "X-Output-Filename": outcome.output_filename,
                "Content-Disposition": f'attachment; filename="{outcome.output_filename}"',
            },
        )

    return app


app: FastAPI | None = create_app() if fastapi is not None else None


def main(argv: list[str] | None = None) -> None:
    """Run the HTTP server under uvicorn."""
    _require(fastapi, "fastapi")
    server = _require(uvicorn, "uvicorn")
    parser = argparse.ArgumentParser(
        prog="webp-convert-http", description="WebP converter HTTP server."
    )
    parser.add_argument("--host", default=os.getenv("WEBP_CONVERTER_HTTP_HOST", DEFAULT_HOST))
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("WEBP_CONVERTER_HTTP_PORT", str(DEFAULT_PORT))),
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("WEBP_CONVERTER_LOG_LEVEL", "info"),
        choices=["critical", "error", "warning", "info", "debug"],
    )
    args = parser.parse_args(argv)
    server.run(APP_REF, host=args.host, port=args.port, log_level=args.log_level, reload=False)


if __name__ == "__main__":
    main()
