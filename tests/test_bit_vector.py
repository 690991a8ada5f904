import dataclasses

import pytest

from perceptual_hash.hashing.bit_vector import BitVector


def test_single_word_msb_first():
    vec = BitVector.from_binary_string("1" + "0" * 63)
    assert vec.bit_count == 64
    assert vec.words == (1 << 63,)


def test_remainder_bits_go_to_first_word():
    bits = "101010" + "1" * 64
    vec = BitVector.from_binary_string(bits)
    assert vec.bit_count == 70
    assert vec.words == (0b101010, (1 << 64) - 1)


def test_binary_round_trip_keeps_leading_zeros():
    bits = "000001" + "0" * 60 + "1010"
    vec = BitVector.from_binary_string(bits)
    encoded = vec.encode(2)
    assert encoded == bits
    parsed = BitVector.from_binary_string(encoded)
    assert parsed == vec
    assert parsed.words == vec.words
    assert parsed.bit_count == vec.bit_count


def test_hex_encoding_is_per_word():
    vec = BitVector.from_binary_string("101010" + "1" * 64)
    assert vec.encode(16) == "2a" + "f" * 16
    assert vec.hex_string == vec.encode(16)


def test_hex_encoding_does_not_pad_words():
    vec = BitVector.from_binary_string("0" * 60 + "1111")
    assert vec.encode(16) == "f"


def test_base36_encoding():
    assert BitVector.from_binary_string(format(35, "064b")).encode(36) == "z"
    assert BitVector.from_binary_string(format(36, "064b")).base36_string == "10"
    assert BitVector.from_binary_string("0" * 64).encode(36) == "0"
    assert str(BitVector.from_binary_string(format(36, "064b"))) == "10"


@pytest.mark.parametrize("bits", ["", "0120", "abc"])
def test_invalid_bit_strings_rejected(bits):
    with pytest.raises(ValueError):
        BitVector.from_binary_string(bits)


def test_unsupported_radix_rejected():
    vec = BitVector.from_binary_string("1" * 64)
    with pytest.raises(ValueError):
        vec.encode(10)


def test_word_count_must_match_bit_count():
    with pytest.raises(ValueError):
        BitVector(bit_count=64, words=(1, 2))
    with pytest.raises(ValueError):
        BitVector(bit_count=4, words=(16,))
    with pytest.raises(ValueError):
        BitVector(bit_count=0, words=())


def test_bit_vector_is_immutable():
    vec = BitVector.from_binary_string("1" * 64)
    with pytest.raises(dataclasses.FrozenInstanceError):
        vec.bit_count = 32
    assert len(vec) == 64
    assert hash(vec) == hash(BitVector.from_binary_string("1" * 64))
