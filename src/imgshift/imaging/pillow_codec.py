"""Pillow-backed implementation of the ``ImageCodec`` protocol.

Decoded images are ``PIL.Image.Image`` instances normalized to ``RGB`` or
``RGBA``; every transform keeps that invariant so the encoders only ever see
those two modes. Color-matrix effects (modulate, sepia) run on numpy arrays.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from PIL import Image, ImageColor, ImageFilter, ImageOps

from imgshift.imaging.codec import POSITIONS, RawMetadata
from imgshift.imaging.formats import ImageFormat

if TYPE_CHECKING:
    from imgshift.imaging.formats import EncodeOptions

logger = logging.getLogger(__name__)

_RESAMPLE = Image.Resampling.LANCZOS

# Pillow reports some containers under their own names.
_FORMAT_ALIASES: dict[str, str] = {"mpo": "jpeg"}

_SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float32,
)

_WHITE = (255, 255, 255)


def _split_alpha(image: Image.Image) -> tuple[Image.Image, Image.Image | None]:
    if image.mode == "RGBA":
        return image.convert("RGB"), image.getchannel("A")
    return image.convert("RGB"), None


def _merge_alpha(rgb: Image.Image, alpha: Image.Image | None) -> Image.Image:
    if alpha is None:
        return rgb
    out = rgb.convert("RGBA")
    out.putalpha(alpha)
    return out


def _has_alpha(image: Image.Image) -> bool:
    if image.mode in ("RGBA", "LA", "PA", "La", "RGBa"):
        return True
    return image.mode == "P" and "transparency" in image.info


def _flatten(image: Image.Image) -> Image.Image:
    """Drop alpha by compositing onto opaque white."""
    if image.mode != "RGBA":
        return image.convert("RGB")
    background = Image.new("RGB", image.size, _WHITE)
    background.paste(image, mask=image.getchannel("A"))
    return background


def _to_8bit(image: Image.Image) -> Image.Image:
    """Scale 16-bit grayscale samples down to ``L``; Pillow's own convert clips them."""
    pixels = np.asarray(image).astype(np.int64)
    return Image.fromarray(np.clip(pixels >> 8, 0, 255).astype(np.uint8))


def _quantize(image: Image.Image, colors: int) -> Image.Image:
    if image.mode == "RGBA":
        return image.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
    return image.convert("RGB").quantize(colors=colors)


class PillowCodec:
    """Decode, transform and encode images with Pillow."""

    # -- Decode ---------------------------------------------------------------

    def metadata(self, data: bytes) -> RawMetadata:
        """Read the header only; Pillow defers pixel decoding until ``load()``."""
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format.lower() if img.format else None
            return RawMetadata(
                width=img.width,
                height=img.height,
                format=_FORMAT_ALIASES.get(fmt, fmt) if fmt else None,
            )

    def decode(self, data: bytes) -> Image.Image:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode in ("RGB", "RGBA"):
                return img.copy()
            if img.mode == "I" or img.mode.startswith("I;16"):
                return _to_8bit(img).convert("RGB")
            return img.convert("RGBA" if _has_alpha(img) else "RGB")

    # -- Geometry -------------------------------------------------------------

    def resize(
        self,
        image: Image.Image,
        *,
        width: int,
        height: int,
        fit: str,
        position: str,
        background: str,
    ) -> Image.Image:
        size = (width, height)
        centering = POSITIONS[position]
        if fit == "fill":
            return image.resize(size, _RESAMPLE)
        if fit == "cover":
            return ImageOps.fit(image, size, method=_RESAMPLE, centering=centering)
        if fit == "contain":
            return ImageOps.pad(image, size, method=_RESAMPLE, color=background, centering=centering)
        if fit == "inside":
            return ImageOps.contain(image, size, method=_RESAMPLE)
        if fit == "outside":
            scale = max(width / image.width, height / image.height)
            outer = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
            return image.resize(outer, _RESAMPLE)
        raise ValueError(f"Unsupported fit mode: {fit}")

    def rotate(self, image: Image.Image, *, angle: int, background: str) -> Image.Image:
        fill = ImageColor.getcolor(background, image.mode)
        # Pillow rotates counter-clockwise.
        return image.rotate(-angle, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=fill)

    # -- Filters --------------------------------------------------------------

    def blur(self, image: Image.Image, *, radius: int) -> Image.Image:
        return image.filter(ImageFilter.GaussianBlur(radius))

    def sharpen(self, image: Image.Image, *, sigma: int) -> Image.Image:
        return image.filter(ImageFilter.UnsharpMask(radius=sigma, percent=150, threshold=0))

    def median(self, image: Image.Image, *, size: int) -> Image.Image:
        return image.filter(ImageFilter.MedianFilter(size))

    # -- Color ----------------------------------------------------------------

    def modulate(self, image: Image.Image, *, brightness: float, saturation: float, hue: int) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        hsv = np.asarray(rgb.convert("HSV"), dtype=np.float32)
        hsv[..., 0] = (hsv[..., 0] + (hue % 360) * 256.0 / 360.0) % 256.0
        hsv[..., 1] *= saturation
        hsv[..., 2] *= brightness
        packed = np.clip(np.rint(hsv), 0, 255).astype(np.uint8)
        out = Image.frombytes("HSV", rgb.size, packed.tobytes()).convert("RGB")
        return _merge_alpha(out, alpha)

    def grayscale(self, image: Image.Image) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        return _merge_alpha(ImageOps.grayscale(rgb).convert("RGB"), alpha)

    def sepia(self, image: Image.Image) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        pixels = np.asarray(rgb, dtype=np.float32) @ _SEPIA_MATRIX.T
        out = Image.fromarray(np.clip(pixels, 0, 255).astype(np.uint8))
        return _merge_alpha(out, alpha)

    def negate(self, image: Image.Image) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        return _merge_alpha(ImageOps.invert(rgb), alpha)

    def tint(self, image: Image.Image, *, color: tuple[int, int, int]) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        toned = ImageOps.colorize(ImageOps.grayscale(rgb), black=(0, 0, 0), white=_WHITE, mid=color)
        return _merge_alpha(toned, alpha)

    def normalize(self, image: Image.Image) -> Image.Image:
        rgb, alpha = _split_alpha(image)
        return _merge_alpha(ImageOps.autocontrast(rgb, cutoff=1), alpha)

    # -- Compositing ----------------------------------------------------------

    def composite(self, image: Image.Image, *, overlay: bytes) -> Image.Image:
        with Image.open(io.BytesIO(overlay)) as src:
            layer = src.convert("RGBA")
        if layer.width > image.width or layer.height > image.height:
            raise ValueError("Image to composite must have same dimensions or smaller")

        base = image.convert("RGBA")
        offset = ((base.width - layer.width) // 2, (base.height - layer.height) // 2)
        base.alpha_composite(layer, dest=offset)
        return base if image.mode == "RGBA" else base.convert("RGB")

    # -- Encode ---------------------------------------------------------------

    def encode(self, image: Image.Image, fmt: ImageFormat, options: EncodeOptions) -> bytes:
        out, params = self._prepare(image, fmt, options)
        buffer = io.BytesIO()
        out.save(buffer, format=fmt.upper(), **{key: value for key, value in params.items() if value is not None})
        data = buffer.getvalue()
        logger.debug("Encoded %dx%d %s (%d bytes)", out.width, out.height, fmt, len(data))
        return data

    @staticmethod
    def _prepare(image: Image.Image, fmt: ImageFormat, options: EncodeOptions) -> tuple[Image.Image, dict[str, Any]]:
        if fmt is ImageFormat.JPEG:
            params: dict[str, Any] = {"quality": options.quality, "optimize": bool(options.optimize)}
            return _flatten(image), params
        if fmt is ImageFormat.PNG:
            out = _quantize(image, options.colors or 256) if options.palette else image
            return out, {"compress_level": options.compression_level, "optimize": False}
        if fmt is ImageFormat.WEBP:
            return image, {"quality": options.quality, "lossless": bool(options.lossless)}
        if fmt is ImageFormat.AVIF:
            return image, {"quality": options.quality}
        if fmt is ImageFormat.GIF:
            return _quantize(image, options.colors or 256), {}
        raise ValueError(f"No encoder for format: {fmt}")
