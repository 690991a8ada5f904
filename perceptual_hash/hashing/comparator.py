"""
[Intent]
Compares two perceptual hashes. Similarity is the normalized Hamming distance
between the packed words, so 1.0 means identical hashes.

[Usage]
- Only meaningful for hashes produced with the same GeneratorConfiguration.
"""

from __future__ import annotations

from perceptual_hash.errors import LengthMismatchError

from .bit_vector import BitVector


def hamming_distance(a: BitVector, b: BitVector) -> int:
    """
    [Purpose]
    - Counts the differing bits between two hashes of equal length.

    [Returns]
    - int: 0 ~ bit_count

    [Raises]
    - LengthMismatchError: bit counts differ
    """
    if a.bit_count != b.bit_count:
        raise LengthMismatchError(a.bit_count, b.bit_count)
    return sum(bin(wa ^ wb).count("1") for wa, wb in zip(a.words, b.words))


def similarity(a: BitVector, b: BitVector) -> float:
    """Returns 1.0 - (differing bits / bit_count), in [0.0, 1.0]."""
    return 1.0 - hamming_distance(a, b) / a.bit_count


__all__ = ["hamming_distance", "similarity"]
