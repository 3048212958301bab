"""In-memory, size- and time-bounded cache of probe results.

Entries are keyed by FileFingerprint, so a renamed but unchanged file still
hits and an edited file misses. Eviction is automatic: least recently touched
first when full, and by age when an entry has not been touched within the
TTL. Nothing is persisted; the cache starts empty every process lifetime.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from shelfscan.cache.fingerprint import HashFailure, compute_fingerprint
from shelfscan.domain import FileFingerprint, MediaProbeData

if TYPE_CHECKING:
    from shelfscan.config.models import CacheConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10000
DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class ProbeCacheEntry:
    """A cached probe result with its recency bookkeeping."""

    key: FileFingerprint
    value: MediaProbeData
    inserted_at: float
    last_accessed_at: float


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of cache counters."""

    hits: int
    misses: int
    errors: int
    current_size: int
    max_size: int

    @property
    def hit_rate(self) -> float:
        """Return hits / lookups, or 0.0 before the first lookup."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict:
        """Return the stats as a plain dict, including the hit rate."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "current_size": self.current_size,
            "max_size": self.max_size,
            "hit_rate": self.hit_rate,
        }


class ProbeCache:
    """Thread-safe LRU + TTL cache mapping file fingerprints to probe data.

    Fingerprinting happens outside the lock, so slow reads of one file never
    block lookups for another. Values are deep-copied on the way in and on
    the way out; callers never share state with the cache.

    Example:
        cache = ProbeCache(max_entries=1000, ttl_seconds=3600)
        data = cache.get(path)
        if data is None:
            data = probe(path)
            cache.set(path, data)
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        fingerprinter: Callable[[Path | str], FileFingerprint] = compute_fingerprint,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum number of entries before LRU eviction.
            ttl_seconds: Seconds an entry survives without being touched.
                0 disables age-based expiry.
            clock: Monotonic time source (injectable for tests).
            fingerprinter: Function computing the cache key for a path.
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")

        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._fingerprinter = fingerprinter
        self._entries: OrderedDict[FileFingerprint, ProbeCacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def _fingerprint(self, path: Path | str) -> FileFingerprint | None:
        """Fingerprint a path, counting and logging failures."""
        try:
            return self._fingerprinter(path)
        except HashFailure as e:
            logger.warning("Probe cache bypassed: %s", e)
            with self._lock:
                self._errors += 1
            return None

    def _is_expired(self, entry: ProbeCacheEntry, now: float) -> bool:
        if self._ttl_seconds == 0:
            return False
        return now - entry.last_accessed_at > self._ttl_seconds

    def _touch(self, key: FileFingerprint) -> ProbeCacheEntry | None:
        """Return a live entry and refresh its recency. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if self._is_expired(entry, now):
            del self._entries[key]
            return None
        entry.last_accessed_at = now
        self._entries.move_to_end(key)
        return entry

    def get(self, path: Path | str) -> MediaProbeData | None:
        """Look up cached probe data for a file.

        Args:
            path: File whose current content is looked up.

        Returns:
            A copy of the cached MediaProbeData, or None on a miss or when
            the file cannot be fingerprinted.
        """
        key = self._fingerprint(path)
        if key is None:
            return None

        with self._lock:
            entry = self._touch(key)
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            value = copy.deepcopy(entry.value)
            hits, lookups = self._hits, self._hits + self._misses

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Probe cache hit for %s (%.1f%% hit rate)",
                path,
                hits / lookups * 100,
            )
        return value

    def contains(self, path: Path | str) -> bool:
        """Check whether a file has a live entry.

        Like get(), this refreshes the entry's recency, but it does not
        touch the hit/miss counters.
        """
        key = self._fingerprint(path)
        if key is None:
            return False
        with self._lock:
            return self._touch(key) is not None

    def set(self, path: Path | str, data: MediaProbeData) -> bool:
        """Insert or overwrite the entry for a file.

        Args:
            path: File the data was probed from.
            data: Probe result to cache.

        Returns:
            True if the entry was stored, False if the file could not be
            fingerprinted.
        """
        key = self._fingerprint(path)
        if key is None:
            return False

        value = copy.deepcopy(data)
        with self._lock:
            now = self._clock()
            self._entries[key] = ProbeCacheEntry(
                key=key,
                value=value,
                inserted_at=now,
                last_accessed_at=now,
            )
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("Probe cache evicted %s", evicted_key)

        logger.debug("Cached probe data for %s", path)
        return True

    def clear(self) -> None:
        """Drop all entries. Counters are kept."""
        with self._lock:
            self._entries.clear()
        logger.info("Probe cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        """Return a snapshot of the cache counters."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                errors=self._errors,
                current_size=len(self._entries),
                max_size=self._max_entries,
            )

    def log_stats(self) -> None:
        """Log a one-line summary of the cache counters."""
        stats = self.stats()
        logger.info(
            "Probe cache stats: %d hits, %d misses, %d errors, "
            "%.1f%% hit rate, %d/%d cached",
            stats.hits,
            stats.misses,
            stats.errors,
            stats.hit_rate * 100,
            stats.current_size,
            stats.max_size,
        )

    @classmethod
    def from_config(cls, config: CacheConfig) -> ProbeCache | None:
        """Create a cache from configuration, or None when caching is off."""
        if not config.enabled:
            return None
        return cls(max_entries=config.max_entries, ttl_seconds=config.ttl_seconds)
