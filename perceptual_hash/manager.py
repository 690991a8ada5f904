"""Shared default generator.

Generators are expensive to provision, so the process keeps one built from
`get_settings()` and hands it to callers that don't need a custom configuration.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from perceptual_hash.hashing.bit_vector import BitVector
from perceptual_hash.pipeline.generator import FingerprintGenerator
from perceptual_hash.settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_default_generator() -> FingerprintGenerator:
    """Process-wide generator (created on first call)."""
    settings = get_settings()
    generator = FingerprintGenerator.from_settings(settings)
    logger.info(
        "[Manager] default generator ready resized_size=%d transform_size=%d max_in_flight=%d",
        generator.resized_size,
        generator.transform_size,
        generator.configuration.max_in_flight,
    )
    return generator


async def perceptual_hash(image_bytes: bytes) -> BitVector:
    """Hashes `image_bytes` with the default generator."""
    return await get_default_generator().compute(image_bytes)


__all__ = ["get_default_generator", "perceptual_hash"]
