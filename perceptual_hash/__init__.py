"""Perceptual image hashing with a bounded, pooled compute backend."""

from perceptual_hash.errors import (
    AllocationError,
    BackendExecutionError,
    BackendInitError,
    ConfigurationError,
    DecodeError,
    LengthMismatchError,
    PerceptualHashError,
    UnsupportedFormatError,
)
from perceptual_hash.hashing import BitVector, hamming_distance, similarity, transform
from perceptual_hash.manager import get_default_generator, perceptual_hash
from perceptual_hash.pipeline import FingerprintGenerator, GeneratorConfiguration
from perceptual_hash.settings import get_settings, load_settings

__all__ = [
    "AllocationError",
    "BackendExecutionError",
    "BackendInitError",
    "BitVector",
    "ConfigurationError",
    "DecodeError",
    "FingerprintGenerator",
    "GeneratorConfiguration",
    "LengthMismatchError",
    "PerceptualHashError",
    "UnsupportedFormatError",
    "get_default_generator",
    "get_settings",
    "hamming_distance",
    "load_settings",
    "perceptual_hash",
    "similarity",
    "transform",
]
