"""Compute backends for the fingerprint pipeline."""

from .base import (
    DEFAULT_MAX_IN_FLIGHT,
    LUMA_WEIGHTS,
    CommandQueue,
    DecodedImage,
    ImageBackend,
    PixelLayout,
)
from .opencv_backend import OpenCVBackend

__all__ = [
    "CommandQueue",
    "DEFAULT_MAX_IN_FLIGHT",
    "DecodedImage",
    "ImageBackend",
    "LUMA_WEIGHTS",
    "OpenCVBackend",
    "PixelLayout",
]
