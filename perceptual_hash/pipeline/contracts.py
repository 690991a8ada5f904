"""Fingerprint pipeline contracts.

Typed values passed between the generator, its settings and callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

from perceptual_hash.backend.base import DEFAULT_MAX_IN_FLIGHT
from perceptual_hash.errors import ConfigurationError

BlurStrategy = Literal["max", "min"]


def _to_int(value: Any, default: int) -> int:
    """Integer coercion; unparsable values become `default`."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class GeneratorConfiguration:
    """Sizes and limits of a FingerprintGenerator. Validated on construction."""

    resized_size: int = 32
    transform_size: int = 8
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    blur_strategy: BlurStrategy = "max"

    def __post_init__(self) -> None:
        if self.resized_size <= 0:
            raise ConfigurationError.negative_or_zero_resized_size(self.resized_size)
        if self.transform_size <= 1:
            raise ConfigurationError.wrong_transform_size(self.transform_size)
        if self.resized_size < self.transform_size:
            raise ConfigurationError.resized_size_too_small(self.resized_size, self.transform_size)
        if self.max_in_flight < 1:
            raise ConfigurationError(f"max_in_flight must be >= 1 (got {self.max_in_flight}).")
        if self.blur_strategy not in ("max", "min"):
            raise ConfigurationError(f"blur_strategy must be 'max' or 'min' (got {self.blur_strategy!r}).")

    @property
    def bit_count(self) -> int:
        return self.transform_size * self.transform_size

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "GeneratorConfiguration":
        """Builds a configuration from a dict/YAML section, falling back to defaults."""
        defaults = cls()
        return cls(
            resized_size=_to_int(payload.get("resized_size"), defaults.resized_size),
            transform_size=_to_int(payload.get("transform_size"), defaults.transform_size),
            max_in_flight=_to_int(payload.get("max_in_flight"), defaults.max_in_flight),
            blur_strategy=payload.get("blur_strategy") or defaults.blur_strategy,
        )


def blur_sigma(scale_x: float, scale_y: float, strategy: BlurStrategy = "max") -> float:
    """
    Low-pass sigma applied before downsampling: 1 / (2 * scale).

    "max" (default) uses the larger scale factor. "min" reproduces the earlier
    variant and is kept for comparing against hashes produced with it.
    """
    if scale_x <= 0 or scale_y <= 0:
        raise ValueError("scale factors must be > 0")
    scale = max(scale_x, scale_y) if strategy == "max" else min(scale_x, scale_y)
    return 1.0 / (2.0 * scale)


@dataclass(frozen=True)
class GeneratorSnapshot:
    in_flight: int
    waiting: int
    pooled_sets: int
    in_use_sets: int


__all__ = [
    "BlurStrategy",
    "GeneratorConfiguration",
    "GeneratorSnapshot",
    "blur_sigma",
]
