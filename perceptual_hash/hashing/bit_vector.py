"""
[Intent]
Fixed-length fingerprint value type. Bits produced by the frequency transform are
packed into 64-bit words so hashes can be stored compactly and compared with XOR.

[Usage]
- dct.py produces the bit string that is wrapped here.
- comparator.py XORs the packed words to compute similarity.

[Packing]
- If bit_count is not a multiple of 64, the first word holds the leading
  `bit_count % 64` bits. Every following word holds exactly 64 bits.
- Bits are consumed in order, most-significant bit first within each word.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

WORD_BITS = 64
SUPPORTED_RADIXES = (2, 16, 36)

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _word_widths(bit_count: int) -> Iterator[int]:
    """Bit width of each word, in word order."""
    remainder = bit_count % WORD_BITS
    if remainder:
        yield remainder
    for _ in range(bit_count // WORD_BITS):
        yield WORD_BITS


def _render_word(word: int, radix: int) -> str:
    if word == 0:
        return "0"
    digits = []
    while word:
        word, rem = divmod(word, radix)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


@dataclass(frozen=True)
class BitVector:
    """Immutable perceptual hash, packed into 64-bit words."""

    bit_count: int
    words: Tuple[int, ...]

    def __post_init__(self) -> None:
        if self.bit_count <= 0:
            raise ValueError("bit_count must be > 0")
        words = tuple(int(w) for w in self.words)
        widths = list(_word_widths(self.bit_count))
        if len(words) != len(widths):
            raise ValueError(
                f"bit_count={self.bit_count} requires {len(widths)} words, got {len(words)}"
            )
        for word, width in zip(words, widths):
            if word < 0 or word >> width:
                raise ValueError(f"word {word:#x} does not fit in {width} bits")
        object.__setattr__(self, "words", words)

    @classmethod
    def from_binary_string(cls, bits: str) -> "BitVector":
        """
        [Purpose]
        - Packs a string of '0'/'1' characters into a BitVector.

        [Args]
        - bits (str): binary digits in consumption order (e.g. transform output)

        [Returns]
        - BitVector: bit_count == len(bits)
        """
        if not bits:
            raise ValueError("bit string is empty")
        if set(bits) - {"0", "1"}:
            raise ValueError("bit string may only contain '0' and '1'")

        words = []
        offset = 0
        for width in _word_widths(len(bits)):
            words.append(int(bits[offset:offset + width], 2))
            offset += width
        return cls(bit_count=len(bits), words=tuple(words))

    def encode(self, radix: int = 2) -> str:
        """Renders each word in `radix` and concatenates them in word order.

        Binary output pads every word to its bit width so it re-parses with
        `from_binary_string`. Hex and base-36 words are not padded.
        """
        if radix not in SUPPORTED_RADIXES:
            raise ValueError(f"radix must be one of {SUPPORTED_RADIXES}, got {radix}")
        if radix == 2:
            return "".join(
                format(word, "b").zfill(width)
                for word, width in zip(self.words, _word_widths(self.bit_count))
            )
        return "".join(_render_word(word, radix) for word in self.words)

    def to_binary_string(self) -> str:
        return self.encode(2)

    @property
    def hex_string(self) -> str:
        return self.encode(16)

    @property
    def base36_string(self) -> str:
        return self.encode(36)

    def __len__(self) -> int:
        return self.bit_count

    def __str__(self) -> str:
        return self.base36_string


__all__ = ["BitVector", "SUPPORTED_RADIXES", "WORD_BITS"]
