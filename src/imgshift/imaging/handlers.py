"""Operation handlers: translate request parameters into pipeline steps.

Each handler validates its parameters in ``check()`` (no codec access), then
queues transform steps on the request's pipeline in ``handle()`` and finishes
with an encode governed by the format policy table.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from imgshift.imaging.codec import FIT_MODES, POSITIONS
from imgshift.imaging.errors import InvalidOperation, InvalidParameters, ProcessingFailed, UnsupportedFormat
from imgshift.imaging.formats import mime_type_for, normalize_format, policy_for
from imgshift.imaging.models import TransformResult
from imgshift.imaging.params import float_or_default, int_or_default, parse_int, text_or_default

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from imgshift.imaging.formats import ImageFormat
    from imgshift.imaging.models import ImageMetadata, TransformRequest
    from imgshift.imaging.pipeline import Pipeline

WHITE = "#ffffff"
TINT_COLOR: tuple[int, int, int] = (255, 240, 16)

NO_IMAGE_MESSAGE = "No image file provided"


class OperationHandler:
    """Base handler. Subclasses override ``handle`` and usually ``check``."""

    name: str = ""
    missing_input_message: str = NO_IMAGE_MESSAGE

    def check(self, params: Mapping[str, str]) -> None:
        """Validate parameters that do not depend on the image."""

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        raise NotImplementedError

    @staticmethod
    def encode_as(pipeline: Pipeline, fmt: ImageFormat) -> TransformResult:
        data = pipeline.encode(fmt, policy_for(fmt))
        return TransformResult.success(data, mime_type_for(fmt))


class ResizeHandler(OperationHandler):
    name = "resize"

    def check(self, params: Mapping[str, str]) -> None:
        fit = text_or_default(params, "fit", "fill").lower()
        if fit not in FIT_MODES:
            raise InvalidParameters(f"Invalid fit mode: {fit}")
        position = text_or_default(params, "position", "center").lower()
        if position not in POSITIONS:
            raise InvalidParameters(f"Invalid position: {position}")

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        params = request.params
        width = int_or_default(params, "width", metadata.width)
        height = int_or_default(params, "height", metadata.height)
        if width <= 0 or height <= 0:
            raise InvalidParameters("Invalid dimensions")

        # Enlargement is allowed; callers are trusted with the target size.
        pipeline.add(
            "resize",
            width=width,
            height=height,
            fit=text_or_default(params, "fit", "fill").lower(),
            position=text_or_default(params, "position", "center").lower(),
            background=WHITE,
        )
        return self.encode_as(pipeline, metadata.format)


class ConvertHandler(OperationHandler):
    name = "convert"

    def check(self, params: Mapping[str, str]) -> None:
        requested = params.get("format")
        if requested is None or not requested.strip():
            raise UnsupportedFormat("Unsupported format: no target format given")
        normalize_format(requested)

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        extension = request.params["format"].strip().lower()
        target = normalize_format(extension)
        try:
            data = pipeline.encode(target, policy_for(target))
        except ProcessingFailed as exc:
            raise ProcessingFailed(f"Failed to convert image: {exc.message}") from exc
        return TransformResult.success(
            data,
            mime_type_for(target),
            filename=f"{_basename(request.base.filename)}.{extension}",
        )


class RotateHandler(OperationHandler):
    name = "rotate"

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        # Any integer angle is accepted; the codec wraps it.
        angle = parse_int(request.params.get("angle")) or 0
        background = text_or_default(request.params, "background", WHITE)
        pipeline.add("rotate", angle=angle, background=background)
        return self.encode_as(pipeline, metadata.format)


class OptimizeHandler(OperationHandler):
    name = "optimize"

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        return self.encode_as(pipeline, metadata.format)


# -- Effects -------------------------------------------------------------------

EffectStep = tuple[str, dict[str, Any]]


def _blur(params: Mapping[str, str]) -> EffectStep:
    return "blur", {"radius": max(0, int_or_default(params, "value", 5))}


def _sharpen(params: Mapping[str, str]) -> EffectStep:
    sigma = int_or_default(params, "value", 5)
    if sigma < 0:
        raise InvalidParameters(f"Invalid sharpen value: {sigma}")
    return "sharpen", {"sigma": sigma}


def _modulate(params: Mapping[str, str]) -> EffectStep:
    return "modulate", {
        "brightness": float_or_default(params, "brightness", 1.0),
        "saturation": float_or_default(params, "saturation", 1.0),
        "hue": int_or_default(params, "hue", 0),
    }


def _median(params: Mapping[str, str]) -> EffectStep:
    size = int_or_default(params, "value", 3)
    if size < 0:
        raise InvalidParameters(f"Invalid median window: {size}")
    if size % 2 == 0:
        size += 1
    return "median", {"size": size}


EFFECTS: Mapping[str, Callable[[Mapping[str, str]], EffectStep]] = MappingProxyType(
    {
        "blur": _blur,
        "sharpen": _sharpen,
        "modulate": _modulate,
        "grayscale": lambda _params: ("grayscale", {}),
        "sepia": lambda _params: ("sepia", {}),
        "negate": lambda _params: ("negate", {}),
        "tint": lambda _params: ("tint", {"color": TINT_COLOR}),
        "normalize": lambda _params: ("normalize", {}),
        "median": _median,
    }
)


class EffectHandler(OperationHandler):
    name = "effect"

    def check(self, params: Mapping[str, str]) -> None:
        effect = params.get("effect", "")
        if effect not in EFFECTS:
            raise InvalidOperation("Invalid effect specified")
        EFFECTS[effect](params)

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        step, kwargs = EFFECTS[request.params["effect"]](request.params)
        pipeline.add(step, **kwargs)
        return self.encode_as(pipeline, metadata.format)


class CompositeHandler(OperationHandler):
    name = "composite"
    missing_input_message = "No base image provided"

    def handle(self, pipeline: Pipeline, metadata: ImageMetadata, request: TransformRequest) -> TransformResult:
        overlay = request.overlay
        if overlay is not None:
            pipeline.add("composite", overlay=overlay.data)
        return self.encode_as(pipeline, metadata.format)


def _basename(filename: str | None) -> str:
    """Return the part of an upload's filename before its first dot."""
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    return name.split(".")[0] or "image"


_effect_handler = EffectHandler()

HANDLERS: Mapping[str, OperationHandler] = MappingProxyType(
    {
        "resize": ResizeHandler(),
        "convert": ConvertHandler(),
        "rotate": RotateHandler(),
        "optimize": OptimizeHandler(),
        "effect": _effect_handler,
        "effects": _effect_handler,
        "composite": CompositeHandler(),
    }
)
