"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imgshift.api.middleware import install_error_handlers, log_requests
from imgshift.api.routes import router
from imgshift.config import get_settings
from imgshift.imaging.dispatcher import Dispatcher
from imgshift.imaging.formats import ALLOWED_FORMATS, FORMAT_POLICIES
from imgshift.imaging.pillow_codec import PillowCodec
from imgshift.imaging.pool import ProcessingPool

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting imgshift (max_concurrent=%s, max_file_size=%s, max_image_pixels=%s)",
        settings.max_concurrent,
        settings.max_file_size,
        settings.max_image_pixels,
    )
    logger.info("Supported formats: %s", ", ".join(ALLOWED_FORMATS))
    for fmt, options in FORMAT_POLICIES.items():
        logger.info("Format options for %s: %s", fmt, options)

    app.state.dispatcher = Dispatcher(PillowCodec(), settings.max_image_pixels)
    processing_pool = ProcessingPool(settings)
    app.state.processing_pool = processing_pool

    logger.info("imgshift ready")
    yield

    logger.info("Shutting down imgshift")
    processing_pool.shutdown()
    logger.info("imgshift shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="imgshift",
        description="Stateless image transformation API: resize, convert, rotate, optimize, effects, composite",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    application.middleware("http")(log_requests)
    install_error_handlers(application)

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run("imgshift.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
