"""Image backend contract.

The generator never touches pixels itself: decoding, blur, resize, grayscale and
readback are delegated to an `ImageBackend`. Work is submitted to the backend's
`CommandQueue` as one unit so callers can await it without blocking the event loop.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import numpy as np

from perceptual_hash.errors import BackendExecutionError, BackendInitError

logger = logging.getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT = 128

# Rec. 709 luma weights applied to (R, G, B).
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


class PixelLayout(str, Enum):
    """Supported native color layouts."""

    RGBA8_UNORM = "rgba8Unorm"
    RGBA8_UNORM_SRGB = "rgba8Unorm_srgb"
    BGRA8_UNORM = "bgra8Unorm"
    BGRA8_UNORM_SRGB = "bgra8Unorm_srgb"
    RGBA16_UNORM = "rgba16Unorm"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.uint16) if self is PixelLayout.RGBA16_UNORM else np.dtype(np.uint8)

    @property
    def max_value(self) -> float:
        return float(np.iinfo(self.dtype).max)

    @property
    def is_srgb(self) -> bool:
        return self in (PixelLayout.RGBA8_UNORM_SRGB, PixelLayout.BGRA8_UNORM_SRGB)

    @property
    def rgb_channels(self) -> tuple[int, int, int]:
        """Channel indices of (R, G, B) inside a pixel."""
        if self in (PixelLayout.BGRA8_UNORM, PixelLayout.BGRA8_UNORM_SRGB):
            return (2, 1, 0)
        return (0, 1, 2)


@dataclass
class DecodedImage:
    """A source image at native resolution, (height, width, 4) in `layout`."""

    pixels: np.ndarray
    layout: PixelLayout

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class CommandQueue:
    """Bounded submission queue executed on a worker thread pool.

    Submissions beyond `max_in_flight` are rejected, never blocked, so an
    application-level limiter must keep callers below the cap.
    """

    def __init__(self, *, max_in_flight: int = DEFAULT_MAX_IN_FLIGHT, worker_threads: Optional[int] = None) -> None:
        if max_in_flight < 1:
            raise BackendInitError("command queue capacity must be >= 1")
        self.max_in_flight = max_in_flight
        try:
            self._executor = ThreadPoolExecutor(
                max_workers=worker_threads,
                thread_name_prefix="phash-backend",
            )
        except ValueError as exc:
            raise BackendInitError(f"Failed to create command queue: {exc}") from exc
        self._lock = threading.Lock()
        self._in_flight = 0
        self._closed = False

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        with self._lock:
            if self._closed:
                raise BackendExecutionError("Command queue is closed.")
            if self._in_flight >= self.max_in_flight:
                raise BackendExecutionError(
                    f"Command queue is full ({self._in_flight}/{self.max_in_flight} in flight)."
                )
            self._in_flight += 1
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as exc:
            self._on_done(None)
            raise BackendExecutionError(f"Failed to create command buffer: {exc}") from exc
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, _future: Optional[Future]) -> None:
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)


class ImageBackend(ABC):
    """Base class for compute backends.

    Subclasses implement the abstract pixel operations; queue management is shared.
    """

    def __init__(self, *, worker_threads: Optional[int] = None) -> None:
        self.worker_threads = worker_threads
        self._queue: Optional[CommandQueue] = None

    @property
    def queue(self) -> CommandQueue:
        if self._queue is None:
            raise BackendExecutionError("Backend is not open.")
        return self._queue

    def open(self, max_in_flight: int = DEFAULT_MAX_IN_FLIGHT) -> None:
        """Provisions kernels and the submission queue. Raises BackendInitError."""
        self.prepare()
        self._queue = CommandQueue(max_in_flight=max_in_flight, worker_threads=self.worker_threads)
        logger.info(
            "[Backend] opened %s max_in_flight=%d workers=%s",
            type(self).__name__,
            max_in_flight,
            self.worker_threads,
        )

    def close(self) -> None:
        if self._queue is not None:
            self._queue.shutdown()
            self._queue = None
            logger.info("[Backend] closed %s", type(self).__name__)

    def submit(self, fn: Callable[..., Any], *args: Any) -> "Future[Any]":
        return self.queue.submit(fn, *args)

    def prepare(self) -> None:
        """Backend-specific provisioning hook."""

    @abstractmethod
    def decode_image(self, data: bytes) -> DecodedImage:
        """Decodes encoded bytes at native resolution. Raises DecodeError."""

    @abstractmethod
    def blur_in_place(self, image: DecodedImage, sigma: float) -> None:
        """Gaussian blur of `image.pixels` with `sigma`, written back in place."""

    @abstractmethod
    def resize_bilinear(self, source: DecodedImage, destination: np.ndarray, scale_x: float, scale_y: float) -> None:
        """Bilinear resize of `source` into `destination` with the given scale factors."""

    @abstractmethod
    def compute_grayscale(self, source: np.ndarray, destination: np.ndarray, layout: PixelLayout) -> None:
        """Writes luma of the (R, G, B) channels of `source` into `destination`."""

    @abstractmethod
    def readback(self, buffer: np.ndarray) -> np.ndarray:
        """Returns the buffer as a flat row-major float32 copy."""

    @abstractmethod
    def allocate_buffer(self, width: int, height: int, layout: Optional[PixelLayout]) -> np.ndarray:
        """Allocates a color buffer for `layout`, or a float32 grayscale buffer when None."""


__all__ = [
    "CommandQueue",
    "DEFAULT_MAX_IN_FLIGHT",
    "DecodedImage",
    "ImageBackend",
    "LUMA_WEIGHTS",
    "PixelLayout",
]
