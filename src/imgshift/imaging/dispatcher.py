"""Dispatcher: route one transform request to its handler and normalize the outcome."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from imgshift.imaging.errors import MissingInput, TransformError, UnknownOperation
from imgshift.imaging.handlers import HANDLERS, NO_IMAGE_MESSAGE
from imgshift.imaging.models import TransformRequest, TransformResult
from imgshift.imaging.validator import ImageValidator

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from imgshift.imaging.codec import ImageCodec
    from imgshift.imaging.handlers import OperationHandler
    from imgshift.imaging.models import UploadedImage

logger = logging.getLogger(__name__)


class Dispatcher:
    """Validates uploads once per call and runs exactly one handler.

    ``dispatch`` never raises for caller or codec errors: every outcome comes
    back as a ``TransformResult``.
    """

    def __init__(
        self,
        codec: ImageCodec,
        max_image_pixels: int,
        handlers: Mapping[str, OperationHandler] = HANDLERS,
    ) -> None:
        self._validator = ImageValidator(codec, max_image_pixels)
        self._handlers = handlers

    @property
    def operations(self) -> list[str]:
        return sorted(self._handlers)

    def dispatch(
        self,
        operation: str,
        params: Mapping[str, str],
        images: Iterable[UploadedImage],
    ) -> TransformResult:
        request = TransformRequest(operation=operation, params=dict(params), images=tuple(images))
        try:
            result = self._run(request)
        except TransformError as exc:
            if exc.status_code >= 500:
                logger.error("%s failed [%s]: %s", operation, exc.kind, exc.message, exc_info=exc.__cause__)
            else:
                logger.warning("%s rejected [%s]: %s", operation, exc.kind, exc.message)
            return TransformResult.failure(exc.kind, exc.message)

        logger.debug("%s produced %s (%d bytes)", operation, result.content_type, len(result.data or b""))
        return result

    def _run(self, request: TransformRequest) -> TransformResult:
        handler = self._handlers.get(request.operation)
        if not request.images:
            raise MissingInput(handler.missing_input_message if handler is not None else NO_IMAGE_MESSAGE)
        if handler is None:
            raise UnknownOperation(f"Unknown operation: {request.operation}")

        handler.check(request.params)
        metadata, pipeline = self._validator.validate(request.base.data)
        return handler.handle(pipeline, metadata, request)
