"""Tests for the request-scoped data model."""

from __future__ import annotations

import pytest

from imgshift.imaging.errors import ErrorKind
from imgshift.imaging.formats import ImageFormat
from imgshift.imaging.models import ImageMetadata, TransformRequest, TransformResult, UploadedImage


class TestImageMetadata:
    def test_positive_dimensions(self) -> None:
        meta = ImageMetadata(width=10, height=20, format=ImageFormat.PNG)
        assert (meta.width, meta.height) == (10, 20)

    @pytest.mark.parametrize(("width", "height"), [(0, 10), (10, 0), (-1, 5)])
    def test_rejects_non_positive_dimensions(self, width: int, height: int) -> None:
        with pytest.raises(ValueError, match="positive"):
            ImageMetadata(width=width, height=height, format=ImageFormat.PNG)


class TestTransformRequest:
    def test_base_and_overlay(self) -> None:
        base = UploadedImage(data=b"a")
        overlay = UploadedImage(data=b"b")
        request = TransformRequest(operation="composite", images=(base, overlay))
        assert request.base is base
        assert request.overlay is overlay

    def test_overlay_absent(self) -> None:
        request = TransformRequest(operation="composite", images=(UploadedImage(data=b"a"),))
        assert request.overlay is None


class TestTransformResult:
    def test_success(self) -> None:
        result = TransformResult.success(b"data", "image/png", "out.png")
        assert result.ok
        assert result.error is None
        assert result.filename == "out.png"

    def test_failure(self) -> None:
        result = TransformResult.failure(ErrorKind.MISSING_INPUT, "No image file provided")
        assert not result.ok
        assert result.data is None
        assert result.error is not None
        assert result.error.kind is ErrorKind.MISSING_INPUT

    def test_rejects_empty_result(self) -> None:
        with pytest.raises(ValueError, match="either output or an error"):
            TransformResult()

    def test_rejects_output_and_error(self) -> None:
        with pytest.raises(ValueError):
            TransformResult(
                data=b"x",
                content_type="image/png",
                error=TransformResult.failure(ErrorKind.PROCESSING_FAILED, "boom").error,
            )
