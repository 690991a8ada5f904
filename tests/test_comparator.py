import pytest

from perceptual_hash.errors import LengthMismatchError
from perceptual_hash.hashing import BitVector, hamming_distance, similarity


def _vec(bits: str) -> BitVector:
    return BitVector.from_binary_string(bits)


def test_similarity_is_reflexive():
    h = _vec("0110" * 16)
    assert similarity(h, h) == 1.0


def test_similarity_is_symmetric():
    a = _vec("0110" * 16)
    b = _vec("1110" * 16)
    assert similarity(a, b) == similarity(b, a)


def test_hamming_counts_differing_bits():
    a = _vec("0" * 64)
    b = _vec("1" * 8 + "0" * 56)
    assert hamming_distance(a, b) == 8
    assert similarity(a, b) == pytest.approx(0.875)


def test_hamming_spans_multiple_words():
    a = _vec("1" * 70)
    b = _vec("0" * 6 + "1" * 63 + "0")
    assert hamming_distance(a, b) == 7
    assert similarity(a, b) == pytest.approx(1.0 - 7 / 70)


def test_opposite_hashes_have_zero_similarity():
    assert similarity(_vec("1" * 64), _vec("0" * 64)) == 0.0


def test_length_mismatch_raises():
    with pytest.raises(LengthMismatchError):
        similarity(_vec("1" * 64), _vec("1" * 16))
    with pytest.raises(ValueError):
        hamming_distance(_vec("1" * 64), _vec("1" * 65))
