"""Deferred transform pipeline bound to a single request.

A ``Pipeline`` only records transform steps; the codec is not invoked until
``encode()``, which decodes the source and replays the steps in order on the
calling thread. Instances must not be shared between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from imgshift.imaging.codec import TRANSFORMS
from imgshift.imaging.errors import ProcessingFailed

if TYPE_CHECKING:
    from imgshift.imaging.codec import ImageCodec
    from imgshift.imaging.formats import EncodeOptions, ImageFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformStep:
    """One queued codec call."""

    name: str
    kwargs: dict[str, Any] = field(default_factory=dict)


class Pipeline:
    """Accumulates transform steps over one source buffer."""

    def __init__(self, codec: ImageCodec, source: bytes) -> None:
        self._codec = codec
        self._source = source
        self._steps: list[TransformStep] = []

    @property
    def steps(self) -> tuple[TransformStep, ...]:
        return tuple(self._steps)

    def add(self, name: str, **kwargs: Any) -> Pipeline:
        """Queue a codec transform by name and return the pipeline for chaining."""
        if name not in TRANSFORMS:
            raise ValueError(f"Unknown transform: {name}")
        self._steps.append(TransformStep(name=name, kwargs=kwargs))
        return self

    def encode(self, fmt: ImageFormat, options: EncodeOptions) -> bytes:
        """Decode, apply every queued step in order, then encode.

        Raises:
            ProcessingFailed: If the codec raises at any point; the library's
                message is preserved.
        """
        try:
            image = self._codec.decode(self._source)
            for step in self._steps:
                image = getattr(self._codec, step.name)(image, **step.kwargs)
            return self._codec.encode(image, fmt, options)
        except Exception as exc:
            logger.debug("Codec failure after steps %s", [s.name for s in self._steps], exc_info=True)
            raise ProcessingFailed(str(exc) or type(exc).__name__) from exc
