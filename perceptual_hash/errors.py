"""Perceptual hash error taxonomy.

Every failure raised by this package derives from `PerceptualHashError`:
1) Construction-time failures (`ConfigurationError`, `BackendInitError`) make the
   generator instance unusable.
2) Per-call failures (`DecodeError`, `UnsupportedFormatError`,
   `BackendExecutionError`, `AllocationError`, `LengthMismatchError`) only affect
   the call that raised them. Nothing is retried internally.
"""

from __future__ import annotations

from typing import Any


class PerceptualHashError(Exception):
    """Base class for all perceptual hash errors."""


class ConfigurationError(PerceptualHashError, ValueError):
    """Invalid size parameters for a generator."""

    @classmethod
    def negative_or_zero_resized_size(cls, value: int) -> "ConfigurationError":
        return cls(f"Intermediate resized image matrix can't have negative or zero size (got {value}).")

    @classmethod
    def wrong_transform_size(cls, value: int) -> "ConfigurationError":
        return cls(f"Discrete Cosine Transform (DCT) matrix can't be smaller than 2x2 (got {value}).")

    @classmethod
    def resized_size_too_small(cls, resized_size: int, transform_size: int) -> "ConfigurationError":
        return cls(
            "Intermediate resized image matrix can't be smaller than the DCT matrix "
            f"(resized_size={resized_size}, transform_size={transform_size})."
        )


class BackendInitError(PerceptualHashError):
    """Backend provisioning (kernel, queue, decoder) failed."""


class DecodeError(PerceptualHashError):
    """Image bytes could not be decoded."""


class UnsupportedFormatError(DecodeError):
    """Decoded image uses a pixel layout the backend can't process."""

    def __init__(self, pixel_format: Any) -> None:
        super().__init__(f"Unsupported source image pixel format: {pixel_format}")
        self.pixel_format = pixel_format


class BackendExecutionError(PerceptualHashError):
    """Submitting or executing a unit of backend work failed."""


class AllocationError(BackendExecutionError):
    """An intermediate buffer could not be allocated."""

    def __init__(self, width: int, height: int, detail: str = "") -> None:
        message = f"Failed to create {width}x{height} intermediate buffer."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.width = width
        self.height = height


class LengthMismatchError(PerceptualHashError, ValueError):
    """Two hashes with different bit counts were compared."""

    def __init__(self, left_bits: int, right_bits: int) -> None:
        super().__init__(
            "Number of bits of the two hashes does not match "
            f"({left_bits} != {right_bits}). Hashes with different number of bits can't be compared."
        )
        self.left_bits = left_bits
        self.right_bits = right_bits


__all__ = [
    "AllocationError",
    "BackendExecutionError",
    "BackendInitError",
    "ConfigurationError",
    "DecodeError",
    "LengthMismatchError",
    "PerceptualHashError",
    "UnsupportedFormatError",
]
