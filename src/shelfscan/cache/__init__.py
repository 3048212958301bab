"""Probe result caching.

- compute_fingerprint / HashFailure: content-head fingerprints used as keys
- ProbeCache: thread-safe LRU + TTL cache of MediaProbeData
- CacheStats / ProbeCacheEntry: bookkeeping types
"""

from shelfscan.cache.fingerprint import (
    FINGERPRINT_HEAD_BYTES,
    HashFailure,
    compute_fingerprint,
)
from shelfscan.cache.probe_cache import CacheStats, ProbeCache, ProbeCacheEntry

__all__ = [
    "FINGERPRINT_HEAD_BYTES",
    "CacheStats",
    "HashFailure",
    "ProbeCache",
    "ProbeCacheEntry",
    "compute_fingerprint",
]
