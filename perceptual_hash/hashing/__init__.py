"""Hash value type, comparator and frequency transform."""

from .bit_vector import BitVector
from .comparator import hamming_distance, similarity
from .dct import dct_coefficients, transform

__all__ = [
    "BitVector",
    "dct_coefficients",
    "hamming_distance",
    "similarity",
    "transform",
]
