"""API route definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, File, Form, HTTPException, Request, Response, UploadFile, status

from imgshift.api.middleware import error_response
from imgshift.api.schemas import ErrorResponse, FormatPolicyInfo, FormatsResponse, HealthResponse
from imgshift.imaging.errors import status_code_for
from imgshift.imaging.formats import ALLOWED_FORMATS, FORMAT_POLICIES, mime_type_for
from imgshift.imaging.models import UploadedImage

if TYPE_CHECKING:
    from imgshift.config import Settings
    from imgshift.imaging.dispatcher import Dispatcher
    from imgshift.imaging.models import TransformResult
    from imgshift.imaging.pool import ProcessingPool

logger = logging.getLogger(__name__)

router = APIRouter()

_IMAGE_ROUTE: dict[str, Any] = {
    "response_class": Response,
    "responses": {
        status.HTTP_200_OK: {"content": {"image/*": {}}, "description": "Encoded image"},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
}

ImageFile = Annotated[UploadFile | None, File(description="Image to transform (max 5 MiB by default)")]
FormText = Annotated[str | None, Form()]


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_dispatcher(request: Request) -> Dispatcher:
    dispatcher: Dispatcher = request.app.state.dispatcher
    return dispatcher


def _get_pool(request: Request) -> ProcessingPool:
    pool: ProcessingPool = request.app.state.processing_pool
    return pool


async def _read_upload(upload: UploadFile | None, limit: int) -> UploadedImage | None:
    """Read one uploaded file, enforcing the per-file size ceiling.

    An empty file part counts as no file.
    """
    if upload is None:
        return None
    if upload.size is not None and upload.size > limit:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"File upload error: File too large (limit {limit} bytes)")
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"File upload error: File too large (limit {limit} bytes)")
    if not data:
        return None
    return UploadedImage(data=data, content_type=upload.content_type, filename=upload.filename)


def _content_disposition(filename: str) -> str:
    """Build an attachment header; non-ASCII names also get an RFC 5987 ``filename*``."""
    name = filename.replace('"', "").replace("\\", "").replace("\r", "").replace("\n", "")
    if name.isascii():
        return f'attachment; filename="{name}"'
    fallback = name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}"


def _to_response(result: TransformResult) -> Response:
    if result.error is not None:
        return error_response(status_code_for(result.error.kind), result.error.message)

    headers: dict[str, str] = {}
    if result.filename:
        headers["Content-Disposition"] = _content_disposition(result.filename)
    return Response(content=result.data, media_type=result.content_type, headers=headers)


async def _transform(
    request: Request,
    operation: str,
    fields: dict[str, str | None],
    image: UploadFile | None,
    overlay: UploadFile | None = None,
) -> Response:
    limit = _get_settings(request).max_file_size
    base = await _read_upload(image, limit)
    extra = await _read_upload(overlay, limit)

    images: list[UploadedImage] = []
    if base is not None:
        images.append(base)
        if extra is not None:
            images.append(extra)

    params = {name: value for name, value in fields.items() if value is not None}
    try:
        result = await _get_pool(request).run(_get_dispatcher(request).dispatch, operation, params, images)
    except TimeoutError:
        logger.warning("%s: no processing slot available", request.url.path)
        return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Server busy, try again later")
    return _to_response(result)


@router.post("/resize", summary="Resize an image", **_IMAGE_ROUTE)
async def resize(
    request: Request,
    image: ImageFile = None,
    width: FormText = None,
    height: FormText = None,
    fit: FormText = None,
    position: FormText = None,
) -> Response:
    """Resize to the given dimensions; missing dimensions keep the original size."""
    fields = {"width": width, "height": height, "fit": fit, "position": position}
    return await _transform(request, "resize", fields, image)


@router.post("/convert", summary="Convert an image to another format", **_IMAGE_ROUTE)
async def convert(request: Request, image: ImageFile = None, format: FormText = None) -> Response:
    """Re-encode in the requested format and return it as a download."""
    return await _transform(request, "convert", {"format": format}, image)


@router.post("/rotate", summary="Rotate an image", **_IMAGE_ROUTE)
async def rotate(
    request: Request,
    image: ImageFile = None,
    angle: FormText = None,
    background: FormText = None,
) -> Response:
    """Rotate clockwise by ``angle`` degrees, filling exposed corners with ``background``."""
    return await _transform(request, "rotate", {"angle": angle, "background": background}, image)


@router.post("/optimize", summary="Re-compress an image", **_IMAGE_ROUTE)
async def optimize(request: Request, image: ImageFile = None) -> Response:
    """Re-encode with the format's optimization policy, without changing pixels."""
    return await _transform(request, "optimize", {}, image)


@router.post("/effects", summary="Apply a pixel effect", **_IMAGE_ROUTE)
async def effects(
    request: Request,
    image: ImageFile = None,
    effect: FormText = None,
    value: FormText = None,
    brightness: FormText = None,
    saturation: FormText = None,
    hue: FormText = None,
) -> Response:
    """Apply one of blur, sharpen, modulate, grayscale, sepia, negate, tint, normalize, median."""
    fields = {
        "effect": effect,
        "value": value,
        "brightness": brightness,
        "saturation": saturation,
        "hue": hue,
    }
    return await _transform(request, "effect", fields, image)


@router.post("/composite", summary="Composite an overlay onto an image", **_IMAGE_ROUTE)
async def composite(
    request: Request,
    image: ImageFile = None,
    overlay: ImageFile = None,
) -> Response:
    """Place ``overlay`` centered over ``image``; without an overlay the image is re-encoded."""
    return await _transform(request, "composite", {}, image, overlay)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = _get_pool(request)
    return HealthResponse(
        status="ok",
        active_jobs=pool.active_count,
        queue_depth=pool.queue_depth,
        max_concurrent=pool.max_concurrent,
    )


@router.get("/formats", response_model=FormatsResponse, summary="List supported formats")
async def list_formats() -> FormatsResponse:
    """Return accepted format names and the encode policy applied to each."""
    policies = [
        FormatPolicyInfo(
            format=str(fmt),
            mime_type=mime_type_for(fmt),
            quality=options.quality,
            lossless=options.lossless,
            compression_level=options.compression_level,
            palette=options.palette,
            colors=options.colors,
        )
        for fmt, options in FORMAT_POLICIES.items()
    ]
    return FormatsResponse(allowed=list(ALLOWED_FORMATS), policies=policies)
