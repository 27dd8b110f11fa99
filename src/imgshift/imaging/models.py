"""Request-scoped data model for the transformation core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from imgshift.imaging.errors import ErrorKind
    from imgshift.imaging.formats import ImageFormat


@dataclass(frozen=True)
class UploadedImage:
    """Raw upload as received: bytes, declared MIME type and original filename."""

    data: bytes
    content_type: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class ImageMetadata:
    """Facts derived from an upload's header. Dimensions are always positive."""

    width: int
    height: int
    format: ImageFormat

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True)
class TransformRequest:
    """One caller request: operation name, raw string parameters and uploads.

    ``images[0]`` is the base image; composite reads an optional overlay from
    ``images[1]``.
    """

    operation: str
    params: Mapping[str, str] = field(default_factory=dict)
    images: tuple[UploadedImage, ...] = ()

    @property
    def base(self) -> UploadedImage:
        return self.images[0]

    @property
    def overlay(self) -> UploadedImage | None:
        return self.images[1] if len(self.images) > 1 else None


@dataclass(frozen=True)
class TransformFailure:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class TransformResult:
    """Outcome of a dispatch: encoded output or a failure, never both."""

    data: bytes | None = None
    content_type: str | None = None
    filename: str | None = None
    error: TransformFailure | None = None

    def __post_init__(self) -> None:
        has_output = self.data is not None and self.content_type is not None
        if has_output == (self.error is not None):
            raise ValueError("TransformResult must carry either output or an error")
        if self.error is not None and (self.data is not None or self.filename is not None):
            raise ValueError("A failed TransformResult cannot carry output")

    @classmethod
    def success(cls, data: bytes, content_type: str, filename: str | None = None) -> TransformResult:
        return cls(data=data, content_type=content_type, filename=filename)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> TransformResult:
        return cls(error=TransformFailure(kind=kind, message=message))

    @property
    def ok(self) -> bool:
        return self.error is None
