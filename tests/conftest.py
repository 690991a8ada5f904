import sys
from pathlib import Path

import cv2
import numpy as np
import pytest


# Ensure `import perceptual_hash...` works under pytest importlib mode by putting
# the repo root on sys.path.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def smooth_image(seed: int, width: int = 128, height: int = 96) -> np.ndarray:
    """Low-frequency random BGR image (upsampled noise)."""
    rng = np.random.default_rng(seed)
    small = rng.integers(0, 256, size=(6, 8, 3), dtype=np.uint8)
    return cv2.resize(small, (width, height), interpolation=cv2.INTER_CUBIC)


def encode(image: np.ndarray, ext: str = ".png", params=None) -> bytes:
    ok, buf = cv2.imencode(ext, image, params or [])
    assert ok, f"imencode failed for {ext}"
    return buf.tobytes()


@pytest.fixture
def png_bytes() -> bytes:
    return encode(smooth_image(7))
