"""
[Intent]
CPU reference backend built on OpenCV and NumPy. Implements the same contract a
GPU backend would: decode, in-place blur, bilinear resize, luma grayscale and
readback, all executed on the CommandQueue worker threads.

[Usage]
- pipeline/generator.py uses this backend when none is injected.

[Details]
- Decoding goes through cv2.imdecode (IMREAD_UNCHANGED keeps 16-bit data).
  Formats OpenCV can't read (PCX, etc.) fall back to Pillow, 16-bit
  Pillow modes included.
- 8-bit images come out as BGRA (RGBA via Pillow), 16-bit images as RGBA.
- sRGB layouts are linearized when the grayscale kernel reads them.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from perceptual_hash.errors import (
    AllocationError,
    BackendExecutionError,
    BackendInitError,
    DecodeError,
    UnsupportedFormatError,
)

from .base import LUMA_WEIGHTS, DecodedImage, ImageBackend, PixelLayout

logger = logging.getLogger(__name__)

_TO_BGRA = {1: cv2.COLOR_GRAY2BGRA, 3: cv2.COLOR_BGR2BGRA}
_TO_RGBA = {1: cv2.COLOR_GRAY2RGBA, 3: cv2.COLOR_BGR2RGBA, 4: cv2.COLOR_BGRA2RGBA}


def _srgb_to_linear(values: np.ndarray) -> np.ndarray:
    return np.where(
        values <= np.float32(0.04045),
        values / np.float32(12.92),
        np.power((values + np.float32(0.055)) / np.float32(1.055), np.float32(2.4)),
    ).astype(np.float32)


class OpenCVBackend(ImageBackend):
    """
    [Class Purpose]
    OpenCV implementation of ImageBackend.

    Attributes:
        assume_srgb (bool): tag 8-bit decodes as sRGB (gamma encoded)
        worker_threads (Optional[int]): CommandQueue pool size (None = executor default)
    """

    def __init__(self, *, assume_srgb: bool = True, worker_threads: Optional[int] = None) -> None:
        super().__init__(worker_threads=worker_threads)
        self.assume_srgb = assume_srgb
        self._luma: Optional[np.ndarray] = None

    def prepare(self) -> None:
        """Builds the grayscale weights and smoke-tests the OpenCV kernels."""
        try:
            luma = np.asarray(LUMA_WEIGHTS, dtype=np.float32)
            probe = np.zeros((4, 4, 4), dtype=np.uint8)
            probe = cv2.GaussianBlur(probe, (0, 0), sigmaX=1.0)
            cv2.resize(probe, (2, 2), interpolation=cv2.INTER_LINEAR)
        except cv2.error as exc:
            raise BackendInitError(f"Failed to create grayscale kernel: {exc}") from exc
        self._luma = luma

    # --- decode ---

    def decode_image(self, data: bytes) -> DecodedImage:
        if not data:
            raise DecodeError("Image data is empty.")
        buffer = np.frombuffer(data, dtype=np.uint8)
        try:
            pixels = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
        except cv2.error as exc:
            raise DecodeError(f"OpenCV failed to decode image: {exc}") from exc
        if pixels is None:
            return self._decode_with_pillow(data)
        return self._normalize(pixels)

    def _normalize(self, pixels: np.ndarray) -> DecodedImage:
        if pixels.dtype not in (np.uint8, np.uint16):
            raise UnsupportedFormatError(f"{pixels.dtype} x{pixels.shape[2] if pixels.ndim == 3 else 1}")
        channels = 1 if pixels.ndim == 2 else pixels.shape[2]

        if pixels.dtype == np.uint16:
            if channels not in _TO_RGBA:
                raise UnsupportedFormatError(f"uint16 x{channels}")
            rgba = cv2.cvtColor(pixels, _TO_RGBA[channels])
            return DecodedImage(np.ascontiguousarray(rgba), PixelLayout.RGBA16_UNORM)

        layout = PixelLayout.BGRA8_UNORM_SRGB if self.assume_srgb else PixelLayout.BGRA8_UNORM
        if channels == 4:
            return DecodedImage(np.ascontiguousarray(pixels), layout)
        if channels not in _TO_BGRA:
            raise UnsupportedFormatError(f"uint8 x{channels}")
        return DecodedImage(cv2.cvtColor(pixels, _TO_BGRA[channels]), layout)

    def _decode_with_pillow(self, data: bytes) -> DecodedImage:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                if img.mode.startswith("I;16"):
                    gray = np.array(img).astype(np.uint16)
                    rgba = cv2.cvtColor(gray, cv2.COLOR_GRAY2RGBA)
                    layout = PixelLayout.RGBA16_UNORM
                elif img.mode in ("I", "F"):
                    raise UnsupportedFormatError(img.mode)
                else:
                    rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
                    layout = PixelLayout.RGBA8_UNORM_SRGB if self.assume_srgb else PixelLayout.RGBA8_UNORM
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise DecodeError(f"Unable to decode image data: {exc}") from exc
        logger.debug("[Backend] decoded via Pillow fallback size=%dx%d", rgba.shape[1], rgba.shape[0])
        return DecodedImage(np.ascontiguousarray(rgba), layout)

    # --- pixel operations ---

    def blur_in_place(self, image: DecodedImage, sigma: float) -> None:
        if sigma <= 0:
            return
        try:
            image.pixels[...] = cv2.GaussianBlur(
                image.pixels,
                (0, 0),
                sigmaX=sigma,
                sigmaY=sigma,
                borderType=cv2.BORDER_REPLICATE,
            )
        except cv2.error as exc:
            raise BackendExecutionError(f"Gaussian blur failed: {exc}") from exc

    def resize_bilinear(self, source: DecodedImage, destination: np.ndarray, scale_x: float, scale_y: float) -> None:
        dst_h, dst_w = destination.shape[:2]
        # The destination edge is fixed; the scale factors must land on it.
        if abs(source.width * scale_x - dst_w) > 0.5 or abs(source.height * scale_y - dst_h) > 0.5:
            raise BackendExecutionError(
                f"Scale ({scale_x:.6f}, {scale_y:.6f}) does not map {source.width}x{source.height} onto {dst_w}x{dst_h}."
            )
        if destination.dtype != source.pixels.dtype:
            raise BackendExecutionError(
                f"Resize destination dtype {destination.dtype} does not match source {source.pixels.dtype}."
            )
        try:
            destination[...] = cv2.resize(source.pixels, (dst_w, dst_h), interpolation=cv2.INTER_LINEAR)
        except cv2.error as exc:
            raise BackendExecutionError(f"Bilinear resize failed: {exc}") from exc

    def compute_grayscale(self, source: np.ndarray, destination: np.ndarray, layout: PixelLayout) -> None:
        if self._luma is None:
            raise BackendExecutionError("Grayscale kernel is not prepared.")
        rgb = source[..., list(layout.rgb_channels)].astype(np.float32) / np.float32(layout.max_value)
        if layout.is_srgb:
            rgb = _srgb_to_linear(rgb)
        destination[...] = rgb @ self._luma

    def readback(self, buffer: np.ndarray) -> np.ndarray:
        return np.array(buffer, dtype=np.float32).reshape(-1)

    def allocate_buffer(self, width: int, height: int, layout: Optional[PixelLayout]) -> np.ndarray:
        if width <= 0 or height <= 0:
            raise AllocationError(width, height, "Size must be positive.")
        try:
            if layout is None:
                return np.zeros((height, width), dtype=np.float32)
            return np.zeros((height, width, 4), dtype=layout.dtype)
        except MemoryError as exc:
            raise AllocationError(width, height, str(exc)) from exc


__all__ = ["OpenCVBackend"]
