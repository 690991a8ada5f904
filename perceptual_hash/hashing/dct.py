"""
[Intent]
Restricted 2D DCT-II over a grayscale sample grid, followed by mean thresholding.
Only the low-frequency `transform_size x transform_size` block is computed, since
that is the part of the spectrum that survives recompression and resizing.

[Usage]
- pipeline/generator.py: called on the readback of the grayscale buffer.

[Details]
- Computation is done in float32, the precision of the grayscale buffer.
- coeff[0][0] (DC term) is zeroed before the mean is taken, and the mean still
  divides by transform_size**2, so the zeroed cell counts toward the mean.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

SampleInput = Union[np.ndarray, Sequence[float]]


def _cosine_basis(resized_size: int, transform_size: int) -> np.ndarray:
    """basis[k][x] = cos(pi * (2x + 1) * k / (2N)), shape (transform_size, resized_size)."""
    k = np.arange(transform_size, dtype=np.float32)[:, None]
    x = np.arange(resized_size, dtype=np.float32)[None, :]
    angle = (np.float32(math.pi) * (np.float32(2.0) * x + np.float32(1.0)) * k) / np.float32(2.0 * resized_size)
    return np.cos(angle).astype(np.float32)


def dct_coefficients(samples: SampleInput, resized_size: int, transform_size: int) -> np.ndarray:
    """
    [Purpose]
    - Computes the low-frequency DCT block before thresholding.

    [Args]
    - samples: resized_size * resized_size floats, row-major (flat or 2D)
    - resized_size (int): edge length of the sample grid (N)
    - transform_size (int): number of retained coefficients per axis (T)

    [Returns]
    - np.ndarray: float32 (T, T); coeff[u][v], u pairs with columns (j), v with rows (i)
    """
    grid = np.asarray(samples, dtype=np.float32)
    if grid.size != resized_size * resized_size:
        raise ValueError(
            f"expected {resized_size * resized_size} samples, got {grid.size}"
        )
    if transform_size < 1 or transform_size > resized_size:
        raise ValueError(f"transform_size must be in [1, {resized_size}], got {transform_size}")
    grid = grid.reshape(resized_size, resized_size)

    basis = _cosine_basis(resized_size, transform_size)
    # sum_i sum_j s[i][j] * basis[u][j] * basis[v][i]  ->  (basis @ s^T @ basis^T)[u][v]
    coeffs = basis @ grid.T @ basis.T

    scale = np.float32(math.sqrt(2.0 / resized_size))
    offset = np.float32(math.sqrt(1.0 / resized_size))
    # The zero-frequency row/column gets an additive offset instead of a scale.
    coeffs[1:, :] *= scale
    coeffs[0, :] += offset
    coeffs[:, 1:] *= scale
    coeffs[:, 0] += offset
    return coeffs


def transform(samples: SampleInput, resized_size: int, transform_size: int) -> str:
    """
    [Purpose]
    - Produces the hash bit string from a grayscale sample grid.

    [Returns]
    - str: transform_size**2 characters of '0'/'1', row-major (u outer, v inner)
    """
    coeffs = dct_coefficients(samples, resized_size, transform_size)
    coeffs[0, 0] = 0.0
    mean = coeffs.sum(dtype=np.float32) / np.float32(transform_size * transform_size)
    bits = (coeffs > mean).flatten()
    return "".join("1" if bit else "0" for bit in bits)


__all__ = ["dct_coefficients", "transform"]
