"""Perceptual hash generator.

Create one `FingerprintGenerator` and reuse it: construction provisions backend
resources (grayscale kernel, bounded submission queue, decoder) that are shared by
every `compute()` call.

Per call:
1) admit through the ConcurrencyLimiter
2) submit decode -> blur -> resize -> grayscale -> readback as one unit of work
3) run the restricted DCT on the readback and pack the bits into a BitVector
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Iterable, List, Optional

import numpy as np

from perceptual_hash.backend.base import ImageBackend
from perceptual_hash.backend.opencv_backend import OpenCVBackend
from perceptual_hash.errors import BackendExecutionError, BackendInitError, PerceptualHashError
from perceptual_hash.hashing.bit_vector import BitVector
from perceptual_hash.hashing.dct import transform

from .buffer_pool import WorkingBufferPool
from .contracts import GeneratorConfiguration, GeneratorSnapshot, blur_sigma
from .limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)


class FingerprintGenerator:
    """Computes perceptual hashes on a shared, bounded backend."""

    def __init__(
        self,
        configuration: Optional[GeneratorConfiguration] = None,
        *,
        resized_size: Optional[int] = None,
        transform_size: Optional[int] = None,
        backend: Optional[ImageBackend] = None,
        poll_interval_sec: float = 0.0,
    ) -> None:
        configuration = configuration or GeneratorConfiguration()
        sizes = {
            key: value
            for key, value in (("resized_size", resized_size), ("transform_size", transform_size))
            if value is not None
        }
        # Keyword sizes override the configuration and are validated with it.
        self.configuration = replace(configuration, **sizes) if sizes else configuration
        self.backend = backend or OpenCVBackend()

        try:
            self.backend.open(self.configuration.max_in_flight)
        except BackendInitError:
            raise
        except Exception as exc:
            raise BackendInitError(f"Backend provisioning failed: {exc}") from exc

        self.limiter = ConcurrencyLimiter(
            self.configuration.max_in_flight,
            poll_interval_sec=poll_interval_sec,
        )
        self.pool = WorkingBufferPool(backend=self.backend, resized_size=self.configuration.resized_size)
        self._closed = False

    @classmethod
    def from_settings(cls, settings) -> "FingerprintGenerator":
        """Builds a generator (and its OpenCV backend) from FingerprintSettings."""
        backend = OpenCVBackend(
            assume_srgb=settings.backend.assume_srgb,
            worker_threads=settings.backend.worker_threads,
        )
        return cls(
            settings.to_generator_configuration(),
            backend=backend,
            poll_interval_sec=settings.limiter.poll_interval_sec,
        )

    @property
    def resized_size(self) -> int:
        return self.configuration.resized_size

    @property
    def transform_size(self) -> int:
        return self.configuration.transform_size

    # --- hashing ---

    async def compute(self, image_bytes: bytes) -> BitVector:
        """Hashes encoded image bytes. Raises DecodeError, UnsupportedFormatError or BackendExecutionError."""
        if self._closed:
            raise BackendExecutionError("Generator is closed.")

        async with self.limiter.slot() as ticket:
            t0 = time.perf_counter()
            samples = await self._submit(image_bytes)
            bits = transform(samples, self.resized_size, self.transform_size)
            logger.debug(
                "[Generator] hashed bytes=%d waited=%.4fs backend=%.4fs in_flight=%d",
                len(image_bytes),
                ticket.waited_sec,
                time.perf_counter() - t0,
                ticket.snapshot.in_flight,
            )
        return BitVector.from_binary_string(bits)

    async def compute_many(self, images: Iterable[bytes]) -> List[BitVector]:
        """Hashes several images concurrently; results keep input order."""
        tasks = [self.compute(data) for data in images]
        return list(await asyncio.gather(*tasks))

    async def _submit(self, image_bytes: bytes) -> np.ndarray:
        future = self.backend.submit(self._process, image_bytes)
        wrapped = asyncio.wrap_future(future)
        try:
            return await asyncio.shield(wrapped)
        except asyncio.CancelledError:
            # A started unit can't be aborted; hold the admission slot until it
            # leaves the backend queue, however often this task is cancelled.
            if not future.cancel():
                while not wrapped.done():
                    try:
                        await asyncio.wait({wrapped})
                    except asyncio.CancelledError:
                        logger.debug("[Generator] repeated cancel while backend unit is running")
                if not wrapped.cancelled():
                    wrapped.exception()
            logger.debug("[Generator] compute cancelled; backend unit discarded")
            raise

    def _process(self, image_bytes: bytes) -> np.ndarray:
        """One unit of backend work. Runs on a command queue worker thread."""
        try:
            image = self.backend.decode_image(image_bytes)
            scale_x = self.resized_size / image.width
            scale_y = self.resized_size / image.height
            sigma = blur_sigma(scale_x, scale_y, self.configuration.blur_strategy)
            self.backend.blur_in_place(image, sigma)

            buffer_set = self.pool.acquire(image.layout)
            try:
                self.backend.resize_bilinear(image, buffer_set.color, scale_x, scale_y)
                self.backend.compute_grayscale(buffer_set.color, buffer_set.grayscale, buffer_set.layout)
                samples = self.backend.readback(buffer_set.grayscale)
            finally:
                self.pool.release(buffer_set)
                self.pool.trim()
        except PerceptualHashError:
            raise
        except Exception as exc:
            raise BackendExecutionError(f"Backend execution failed: {exc}") from exc
        return samples

    # --- lifecycle ---

    def snapshot(self) -> GeneratorSnapshot:
        limiter = self.limiter.snapshot()
        pool = self.pool.snapshot()
        return GeneratorSnapshot(
            in_flight=limiter.in_flight,
            waiting=limiter.waiting,
            pooled_sets=pool.total,
            in_use_sets=pool.in_use,
        )

    async def close(self) -> None:
        """Waits for submitted work and shuts the backend queue down."""
        if self._closed:
            return
        self._closed = True
        await asyncio.to_thread(self.backend.close)

    async def __aenter__(self) -> "FingerprintGenerator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


__all__ = ["FingerprintGenerator"]
