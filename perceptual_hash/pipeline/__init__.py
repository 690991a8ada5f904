"""Fingerprint pipeline: admission limiter, buffer pool and generator."""

from .buffer_pool import PoolSnapshot, WorkingBufferPool, WorkingBufferSet
from .contracts import GeneratorConfiguration, GeneratorSnapshot, blur_sigma
from .generator import FingerprintGenerator
from .limiter import AdmissionTicket, ConcurrencyLimiter, LimiterSnapshot

__all__ = [
    "AdmissionTicket",
    "ConcurrencyLimiter",
    "FingerprintGenerator",
    "GeneratorConfiguration",
    "GeneratorSnapshot",
    "LimiterSnapshot",
    "PoolSnapshot",
    "WorkingBufferPool",
    "WorkingBufferSet",
    "blur_sigma",
]
