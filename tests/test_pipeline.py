"""Tests for the deferred transform pipeline."""

from __future__ import annotations

import pytest
from fakes import FakeCodec

from imgshift.imaging.errors import ProcessingFailed
from imgshift.imaging.formats import ImageFormat, policy_for
from imgshift.imaging.pipeline import Pipeline, TransformStep


class TestPipeline:
    def test_add_is_deferred(self) -> None:
        codec = FakeCodec()
        pipeline = Pipeline(codec, b"raw")
        pipeline.add("blur", radius=3).add("negate")

        assert codec.calls == []
        assert pipeline.steps == (TransformStep("blur", {"radius": 3}), TransformStep("negate", {}))

    def test_unknown_transform_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown transform"):
            Pipeline(FakeCodec(), b"raw").add("explode")

    def test_encode_replays_steps_in_order(self) -> None:
        codec = FakeCodec()
        pipeline = Pipeline(codec, b"raw").add("grayscale").add("median", size=3)

        data = pipeline.encode(ImageFormat.PNG, policy_for("png"))

        assert data == b"encoded-png"
        assert codec.call_names == ["decode", "grayscale", "median", "encode"]
        assert codec.calls[2] == ("median", {"size": 3})
        assert codec.calls[3][1]["options"] is policy_for("png")

    def test_codec_error_becomes_processing_failed(self) -> None:
        codec = FakeCodec(fail_on="sharpen")
        pipeline = Pipeline(codec, b"raw").add("sharpen", sigma=5).add("negate")

        with pytest.raises(ProcessingFailed, match="boom") as excinfo:
            pipeline.encode(ImageFormat.JPEG, policy_for("jpeg"))

        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert "negate" not in codec.call_names

    def test_encode_failure_becomes_processing_failed(self) -> None:
        codec = FakeCodec(fail_on="encode")
        with pytest.raises(ProcessingFailed):
            Pipeline(codec, b"raw").encode(ImageFormat.GIF, policy_for("gif"))
