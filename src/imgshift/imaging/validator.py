"""Image validator: the gate every upload passes before a handler runs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from imgshift.imaging.errors import UnreadableImage, UnsupportedFormat
from imgshift.imaging.formats import normalize_format
from imgshift.imaging.models import ImageMetadata
from imgshift.imaging.pipeline import Pipeline

if TYPE_CHECKING:
    from imgshift.imaging.codec import ImageCodec

logger = logging.getLogger(__name__)

INVALID_IMAGE_MESSAGE = "Invalid image file"


class ImageValidator:
    """Reads header metadata and seeds a pipeline for valid uploads."""

    def __init__(self, codec: ImageCodec, max_image_pixels: int) -> None:
        self._codec = codec
        self._max_image_pixels = max_image_pixels

    def validate(self, data: bytes) -> tuple[ImageMetadata, Pipeline]:
        """Validate raw upload bytes.

        Returns:
            The image metadata and a fresh pipeline over ``data``.

        Raises:
            UnreadableImage: If the header cannot be read, dimensions are missing
                or zero, or the pixel count exceeds the configured limit.
            UnsupportedFormat: If the image decodes but its container format is
                outside the supported set.
        """
        try:
            raw = self._codec.metadata(data)
        except Exception as exc:
            logger.warning("Metadata extraction failed: %s", exc)
            raise UnreadableImage(INVALID_IMAGE_MESSAGE) from exc

        logger.debug("Image metadata: %s", raw)
        if not raw.width or not raw.height or raw.width <= 0 or raw.height <= 0 or not raw.format:
            raise UnreadableImage(INVALID_IMAGE_MESSAGE)

        if raw.width * raw.height > self._max_image_pixels:
            raise UnreadableImage(
                f"Image too large: {raw.width}x{raw.height} exceeds {self._max_image_pixels} pixels"
            )

        try:
            fmt = normalize_format(raw.format)
        except UnsupportedFormat:
            raise UnsupportedFormat(f"Unsupported image format: {raw.format}") from None

        metadata = ImageMetadata(width=raw.width, height=raw.height, format=fmt)
        return metadata, Pipeline(self._codec, data)
