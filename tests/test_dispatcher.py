"""Tests for the dispatcher's routing and error normalization."""

from __future__ import annotations

import logging

import pytest
from fakes import FakeCodec

from imgshift.imaging.dispatcher import Dispatcher
from imgshift.imaging.errors import ErrorKind
from imgshift.imaging.models import UploadedImage

_IMAGE = UploadedImage(data=b"raw", content_type="image/png", filename="photo.png")


def _dispatcher(codec: FakeCodec, max_image_pixels: int = 1_000_000) -> Dispatcher:
    return Dispatcher(codec, max_image_pixels)


class TestDispatchErrors:
    def test_missing_input(self) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("convert", {"format": "png"}, [])

        assert result.error is not None
        assert result.error.kind is ErrorKind.MISSING_INPUT
        assert result.error.message == "No image file provided"
        assert codec.calls == []

    def test_missing_base_for_composite(self) -> None:
        result = _dispatcher(FakeCodec()).dispatch("composite", {}, [])
        assert result.error is not None
        assert result.error.message == "No base image provided"

    def test_unknown_operation(self) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("flip", {}, [_IMAGE])

        assert result.error is not None
        assert result.error.kind is ErrorKind.UNKNOWN_OPERATION
        assert "flip" in result.error.message
        assert codec.calls == []

    def test_missing_input_checked_before_operation_name(self) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("flip", {}, [])

        assert result.error is not None
        assert result.error.kind is ErrorKind.MISSING_INPUT
        assert result.error.message == "No image file provided"
        assert codec.calls == []

    @pytest.mark.parametrize("target", ["bmp", "tiff", "heic", "svg", ""])
    def test_unsupported_convert_makes_no_codec_call(self, target: str) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("convert", {"format": target}, [_IMAGE])

        assert result.error is not None
        assert result.error.kind is ErrorKind.UNSUPPORTED_FORMAT
        assert codec.calls == []

    def test_unknown_effect(self) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("effects", {"effect": "unknown"}, [_IMAGE])

        assert result.error is not None
        assert result.error.kind is ErrorKind.INVALID_OPERATION
        assert result.error.message == "Invalid effect specified"
        assert codec.calls == []

    def test_unreadable_image_short_circuits(self) -> None:
        codec = FakeCodec(fail_on="metadata")
        result = _dispatcher(codec).dispatch("optimize", {}, [_IMAGE])

        assert result.error is not None
        assert result.error.kind is ErrorKind.UNREADABLE_IMAGE
        assert codec.call_names == ["metadata"]

    def test_unsupported_detected_format(self) -> None:
        codec = FakeCodec(fmt="bmp")
        result = _dispatcher(codec).dispatch("optimize", {}, [_IMAGE])
        assert result.error is not None
        assert result.error.kind is ErrorKind.UNSUPPORTED_FORMAT

    def test_pixel_limit(self) -> None:
        result = _dispatcher(FakeCodec(width=1000, height=1000), max_image_pixels=10).dispatch(
            "optimize", {}, [_IMAGE]
        )
        assert result.error is not None
        assert result.error.kind is ErrorKind.UNREADABLE_IMAGE

    def test_invalid_dimensions(self) -> None:
        result = _dispatcher(FakeCodec()).dispatch("resize", {"width": "-1"}, [_IMAGE])
        assert result.error is not None
        assert result.error.kind is ErrorKind.INVALID_PARAMETERS
        assert result.error.message == "Invalid dimensions"

    def test_processing_failure_preserves_message(self) -> None:
        codec = FakeCodec(fail_on="blur")
        result = _dispatcher(codec).dispatch("effect", {"effect": "blur"}, [_IMAGE])

        assert result.error is not None
        assert result.error.kind is ErrorKind.PROCESSING_FAILED
        assert result.error.message == "boom"

    def test_failures_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="imgshift.imaging.dispatcher"):
            _dispatcher(FakeCodec(fail_on="encode")).dispatch("optimize", {}, [_IMAGE])
            _dispatcher(FakeCodec()).dispatch("flip", {}, [_IMAGE])

        levels = [record.levelno for record in caplog.records]
        assert logging.ERROR in levels
        assert logging.WARNING in levels
        assert any("optimize" in record.getMessage() for record in caplog.records)


class TestDispatchSuccess:
    def test_runs_validator_once_then_handler(self) -> None:
        codec = FakeCodec(fmt="jpeg")
        result = _dispatcher(codec).dispatch("resize", {"width": "50", "height": "50"}, [_IMAGE])

        assert result.ok
        assert result.content_type == "image/jpeg"
        assert codec.call_names == ["metadata", "decode", "resize", "encode"]

    def test_effects_alias(self) -> None:
        codec = FakeCodec()
        result = _dispatcher(codec).dispatch("effects", {"effect": "negate"}, [_IMAGE])
        assert result.ok
        assert "negate" in codec.call_names

    def test_composite_uses_second_image_as_overlay(self) -> None:
        codec = FakeCodec()
        overlay = UploadedImage(data=b"overlay")
        result = _dispatcher(codec).dispatch("composite", {}, [_IMAGE, overlay])

        assert result.ok
        assert ("composite", {"overlay": b"overlay"}) in codec.calls

    def test_convert_filename_hint(self) -> None:
        result = _dispatcher(FakeCodec()).dispatch("convert", {"format": "avif"}, [_IMAGE])
        assert result.ok
        assert result.filename == "photo.avif"
        assert result.content_type == "image/avif"

    def test_operations_listed(self) -> None:
        assert "resize" in _dispatcher(FakeCodec()).operations
