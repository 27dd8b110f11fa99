"""Format policy table: fixed encode parameters per output format.

Every handler finishes with an encode step governed by this table, so the
quality/size tradeoff is identical no matter which transform ran.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

from imgshift.imaging.errors import UnsupportedFormat

if TYPE_CHECKING:
    from collections.abc import Mapping


class ImageFormat(StrEnum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    AVIF = "avif"
    GIF = "gif"


@dataclass(frozen=True)
class EncodeOptions:
    """Encode parameters for one output format. ``None`` means not applicable."""

    quality: int | None = None
    lossless: bool | None = None
    compression_level: int | None = None
    palette: bool | None = None
    colors: int | None = None
    optimize: bool | None = None


FORMAT_POLICIES: Mapping[ImageFormat, EncodeOptions] = MappingProxyType(
    {
        ImageFormat.JPEG: EncodeOptions(quality=80, optimize=True),
        ImageFormat.PNG: EncodeOptions(compression_level=9, palette=True, colors=256),
        ImageFormat.WEBP: EncodeOptions(quality=75, lossless=False),
        ImageFormat.AVIF: EncodeOptions(quality=65, lossless=False),
        ImageFormat.GIF: EncodeOptions(colors=256),
    }
)

# Names accepted from callers, in the order they are advertised.
ALLOWED_FORMATS: tuple[str, ...] = ("jpeg", "jpg", "png", "webp", "avif", "gif")

_ALIASES: Mapping[str, ImageFormat] = MappingProxyType({"jpg": ImageFormat.JPEG})


def normalize_format(name: str | None) -> ImageFormat:
    """Map a caller- or codec-supplied format name onto the closed format set.

    Raises:
        UnsupportedFormat: If the name is missing or outside the allow-list.
    """
    key = (name or "").strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return ImageFormat(key)
    except ValueError:
        raise UnsupportedFormat(f"Unsupported format: {name}") from None


def policy_for(fmt: ImageFormat | str) -> EncodeOptions:
    """Return the fixed encode options for a supported format."""
    return FORMAT_POLICIES[normalize_format(fmt)]


def mime_type_for(fmt: ImageFormat | str) -> str:
    """Return the MIME type for a format, e.g. ``image/jpeg`` for ``jpg``."""
    return f"image/{normalize_format(fmt)}"
