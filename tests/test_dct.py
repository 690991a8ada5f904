import math

import numpy as np
import pytest

import perceptual_hash.hashing.dct as dct_module
from perceptual_hash.hashing.dct import dct_coefficients, transform


def _reference_dct(samples: np.ndarray, n: int, t: int) -> np.ndarray:
    """Straight loop over the restricted DCT-II definition (float64)."""
    grid = samples.reshape(n, n).astype(np.float64)
    out = np.zeros((t, t))
    for u in range(t):
        for v in range(t):
            total = 0.0
            for i in range(n):
                for j in range(n):
                    total += (
                        grid[i, j]
                        * math.cos(math.pi * (2 * j + 1) * u / (2 * n))
                        * math.cos(math.pi * (2 * i + 1) * v / (2 * n))
                    )
            if u != 0:
                total *= math.sqrt(2 / n)
            else:
                total += math.sqrt(1 / n)
            if v != 0:
                total *= math.sqrt(2 / n)
            else:
                total += math.sqrt(1 / n)
            out[u, v] = total
    return out


def test_coefficients_match_loop_definition():
    rng = np.random.default_rng(3)
    samples = rng.random(8 * 8).astype(np.float32)
    coeffs = dct_coefficients(samples, 8, 4)
    assert coeffs.dtype == np.float32
    np.testing.assert_allclose(coeffs, _reference_dct(samples, 8, 4), rtol=1e-4, atol=1e-4)


def test_horizontal_ramp_maps_to_u_axis():
    # Horizontal ramp only varies along j, which pairs with u.
    n = 8
    ramp = np.tile(np.arange(n, dtype=np.float32), (n, 1))
    coeffs = dct_coefficients(ramp, n, 4)
    np.testing.assert_allclose(coeffs, _reference_dct(ramp, n, 4), rtol=1e-4, atol=1e-4)
    assert abs(coeffs[1, 2]) < 1e-3
    assert abs(coeffs[1, 0]) > 1.0


@pytest.mark.parametrize("n,t", [(32, 8), (16, 4), (9, 3)])
def test_output_length_is_transform_size_squared(n, t):
    rng = np.random.default_rng(n)
    bits = transform(rng.random(n * n), n, t)
    assert len(bits) == t * t
    assert set(bits) <= {"0", "1"}


def test_constant_image_pins_offsets_and_threshold():
    # Only the additive sqrt(1/N) offsets survive on a flat image.
    bits = transform(np.full(32 * 32, 0.5, dtype=np.float32), 32, 8)
    assert bits == "01111111" + "10000000" * 7


def test_mean_includes_zeroed_dc_cell(monkeypatch):
    coeffs = np.array([[9.0, 1.0], [2.0, 3.0]], dtype=np.float32)
    monkeypatch.setattr(dct_module, "dct_coefficients", lambda *_args: coeffs.copy())
    # DC zeroed -> [0, 1, 2, 3]; mean over all 4 cells = 1.5 (over 3 cells it would be 2.0).
    assert transform(np.zeros(4), 2, 2) == "0011"


def test_transform_accepts_2d_grid():
    rng = np.random.default_rng(11)
    grid = rng.random((16, 16)).astype(np.float32)
    assert transform(grid, 16, 4) == transform(grid.reshape(-1), 16, 4)


def test_wrong_sample_count_rejected():
    with pytest.raises(ValueError):
        transform(np.zeros(10), 32, 8)
