"""Pooled intermediate buffers for the fingerprint pipeline.

Each in-flight `compute()` checks out one `WorkingBufferSet` (resized color buffer +
float32 grayscale buffer). Sets are created lazily, handed to a single owner at a
time, and trimmed once idle so steady-state memory stays at one spare set.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import List

import numpy as np

from perceptual_hash.backend.base import ImageBackend, PixelLayout

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WorkingBufferSet:
    """A checked-out pair of intermediate buffers."""

    id: int
    layout: PixelLayout
    color: np.ndarray
    grayscale: np.ndarray
    in_use: bool = field(default=False)


@dataclass(frozen=True)
class PoolSnapshot:
    total: int
    in_use: int
    idle: int


class WorkingBufferPool:
    """Arena of buffer sets with an explicit checkout/return protocol.

    All bookkeeping happens under one lock; allocation itself runs outside it.
    """

    def __init__(self, *, backend: ImageBackend, resized_size: int) -> None:
        if resized_size <= 0:
            raise ValueError("resized_size must be > 0")
        self.backend = backend
        self.resized_size = resized_size
        self._lock = threading.Lock()
        self._sets: List[WorkingBufferSet] = []
        self._ids = itertools.count(1)

    def acquire(self, layout: PixelLayout) -> WorkingBufferSet:
        """Returns the first idle set for `layout`, allocating a new one if none is free."""
        with self._lock:
            for buffer_set in self._sets:
                if not buffer_set.in_use and buffer_set.layout is layout:
                    buffer_set.in_use = True
                    logger.debug("[BufferPool] reuse set=%d layout=%s", buffer_set.id, layout.value)
                    return buffer_set

        size = self.resized_size
        color = self.backend.allocate_buffer(size, size, layout)
        grayscale = self.backend.allocate_buffer(size, size, None)

        with self._lock:
            buffer_set = WorkingBufferSet(
                id=next(self._ids),
                layout=layout,
                color=color,
                grayscale=grayscale,
                in_use=True,
            )
            self._sets.append(buffer_set)
            total = len(self._sets)
        logger.debug(
            "[BufferPool] allocate set=%d layout=%s size=%dx%d total=%d",
            buffer_set.id,
            layout.value,
            size,
            size,
            total,
        )
        return buffer_set

    def release(self, buffer_set: WorkingBufferSet) -> None:
        with self._lock:
            if buffer_set not in self._sets:
                logger.warning("[BufferPool] release of unknown set=%d ignored", buffer_set.id)
                return
            if not buffer_set.in_use:
                logger.warning("[BufferPool] set=%d released twice", buffer_set.id)
                return
            buffer_set.in_use = False

    def trim(self) -> None:
        """Drops idle sets.

        While any set is in use every idle set is dropped; once all are idle at most
        one is kept.
        """
        with self._lock:
            in_use = [s for s in self._sets if s.in_use]
            idle = [s for s in self._sets if not s.in_use]
            if in_use:
                self._sets = in_use
            elif len(idle) > 1:
                self._sets = idle[:1]
            dropped = len(in_use) + len(idle) - len(self._sets)
        if dropped:
            logger.debug("[BufferPool] trimmed %d idle set(s)", dropped)

    def snapshot(self) -> PoolSnapshot:
        with self._lock:
            in_use = sum(1 for s in self._sets if s.in_use)
            return PoolSnapshot(total=len(self._sets), in_use=in_use, idle=len(self._sets) - in_use)


__all__ = ["PoolSnapshot", "WorkingBufferPool", "WorkingBufferSet"]
