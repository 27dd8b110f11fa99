"""Codec capability interface.

The transformation core never touches pixels itself: decode, transforms and
encode are delegated to an ``ImageCodec``. The production implementation is
``imgshift.imaging.pillow_codec.PillowCodec``; tests substitute a fake.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping

    from imgshift.imaging.formats import EncodeOptions, ImageFormat

FIT_MODES: frozenset[str] = frozenset({"fill", "cover", "contain", "inside", "outside"})

# Anchor positions as (x, y) fractions of the free space, for cropping and padding.
POSITIONS: Mapping[str, tuple[float, float]] = MappingProxyType(
    {
        "center": (0.5, 0.5),
        "centre": (0.5, 0.5),
        "top": (0.5, 0.0),
        "right top": (1.0, 0.0),
        "right": (1.0, 0.5),
        "right bottom": (1.0, 1.0),
        "bottom": (0.5, 1.0),
        "left bottom": (0.0, 1.0),
        "left": (0.0, 0.5),
        "left top": (0.0, 0.0),
        "north": (0.5, 0.0),
        "northeast": (1.0, 0.0),
        "east": (1.0, 0.5),
        "southeast": (1.0, 1.0),
        "south": (0.5, 1.0),
        "southwest": (0.0, 1.0),
        "west": (0.0, 0.5),
        "northwest": (0.0, 0.0),
    }
)

# Names of the codec methods a pipeline may queue as transform steps.
TRANSFORMS: frozenset[str] = frozenset(
    {
        "resize",
        "rotate",
        "blur",
        "sharpen",
        "modulate",
        "grayscale",
        "sepia",
        "negate",
        "tint",
        "normalize",
        "median",
        "composite",
    }
)


@dataclass(frozen=True)
class RawMetadata:
    """Header facts as reported by the codec, before validation.

    ``format`` is the codec's own lowercase name for the container (e.g. ``jpeg``,
    ``png``, ``bmp``) and may fall outside the supported set.
    """

    width: int | None
    height: int | None
    format: str | None


class ImageCodec(Protocol):
    """Protocol for the image codec library.

    Transform methods take a decoded image and return a new (or the same) decoded
    image. The decoded representation is opaque to the core.
    """

    def metadata(self, data: bytes) -> RawMetadata:
        """Read dimensions and container format without rasterizing."""
        ...

    def decode(self, data: bytes) -> Any:
        """Fully decode raw bytes into the codec's image representation."""
        ...

    def resize(self, image: Any, *, width: int, height: int, fit: str, position: str, background: str) -> Any:
        """Resize to ``width`` x ``height`` using the given fit mode and anchor position."""
        ...

    def rotate(self, image: Any, *, angle: int, background: str) -> Any:
        """Rotate clockwise by ``angle`` degrees, filling uncovered area with ``background``."""
        ...

    def blur(self, image: Any, *, radius: int) -> Any: ...

    def sharpen(self, image: Any, *, sigma: int) -> Any: ...

    def modulate(self, image: Any, *, brightness: float, saturation: float, hue: int) -> Any:
        """Apply brightness and saturation multipliers and a hue rotation in one pass."""
        ...

    def grayscale(self, image: Any) -> Any: ...

    def sepia(self, image: Any) -> Any: ...

    def negate(self, image: Any) -> Any: ...

    def tint(self, image: Any, *, color: tuple[int, int, int]) -> Any: ...

    def normalize(self, image: Any) -> Any: ...

    def median(self, image: Any, *, size: int) -> Any: ...

    def composite(self, image: Any, *, overlay: bytes) -> Any:
        """Paste the overlay (raw bytes) centered over the image at full opacity."""
        ...

    def encode(self, image: Any, fmt: ImageFormat, options: EncodeOptions) -> bytes:
        """Encode the image in ``fmt`` using ``options``."""
        ...
