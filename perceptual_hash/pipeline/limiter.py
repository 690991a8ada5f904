"""Admission limiter for backend submissions.

Keeps application code from ever calling into the backend queue when it is full:
callers yield to the event loop until a slot frees up instead of blocking a thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimiterSnapshot:
    limit: int
    in_flight: int
    waiting: int


@dataclass(frozen=True)
class AdmissionTicket:
    waited_sec: float
    snapshot: LimiterSnapshot


class ConcurrencyLimiter:
    """Counting limiter with cooperative (yielding) admission.

    The counter is guarded by a thread lock, so one limiter may be shared by tasks
    running on different event loops/threads.
    """

    def __init__(self, max_in_flight: int, *, poll_interval_sec: float = 0.0) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be >= 1")
        if poll_interval_sec < 0:
            raise ValueError("poll_interval_sec must be >= 0")
        self.max_in_flight = max_in_flight
        self.poll_interval_sec = poll_interval_sec
        self._lock = threading.Lock()
        self._in_flight = 0
        self._waiting = 0

    def _try_admit(self) -> bool:
        with self._lock:
            if self._in_flight >= self.max_in_flight:
                return False
            self._in_flight += 1
            return True

    async def admit(self) -> float:
        """Waits for a free slot and takes it. Returns seconds spent waiting."""
        if self._try_admit():
            return 0.0

        queued_at = time.monotonic()
        with self._lock:
            self._waiting += 1
        try:
            while not self._try_admit():
                await asyncio.sleep(self.poll_interval_sec)
        finally:
            with self._lock:
                self._waiting = max(0, self._waiting - 1)
        return time.monotonic() - queued_at

    def release(self) -> None:
        with self._lock:
            if self._in_flight == 0:
                logger.warning("[Limiter] release without admission ignored")
                return
            self._in_flight -= 1

    def snapshot(self) -> LimiterSnapshot:
        with self._lock:
            return LimiterSnapshot(limit=self.max_in_flight, in_flight=self._in_flight, waiting=self._waiting)

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[AdmissionTicket]:
        """Admits, yields a ticket, and always releases the slot on exit."""
        waited = await self.admit()
        try:
            yield AdmissionTicket(waited_sec=waited, snapshot=self.snapshot())
        finally:
            self.release()


__all__ = ["AdmissionTicket", "ConcurrencyLimiter", "LimiterSnapshot"]
