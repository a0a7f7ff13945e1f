"""
Enrichment Cache

Thread-safe, TTL-bound store of per-chunk enrichment output, keyed by a
hash of the chunk text (see ``cache_key_for``).

Semantics:
    - try_get hits only while now < expires_at
    - An expired entry found on lookup is removed and counted as a miss
    - set always overwrites
    - Entries are immutable (value, expires_at) pairs swapped in under a lock,
      so readers never see a half-written entry

An optional secondary ``CacheBackend`` (e.g. a shared key-value store) is
consulted on local misses and written through on set. Backend failures are
logged and treated as misses; they never reach the caller. A backend hit is
kept locally for ``default_ttl``; the backend does not report its own
remaining lifetime.

The cache is an explicit object: construct one and pass it to whatever
needs it.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from chunkgraph.exceptions import InvalidArgumentError
from chunkgraph.types import CacheStatistics, EnrichedChunk

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 86400.0


class CacheBackend(ABC):
    """Abstract interface for a secondary enrichment store."""

    @abstractmethod
    def get(self, key: str) -> EnrichedChunk | None:
        """Fetch a value, None if absent. May raise UpstreamFailureError."""
        ...

    @abstractmethod
    def set(self, key: str, value: EnrichedChunk, ttl_seconds: float) -> None:
        """Store a value. May raise UpstreamFailureError."""
        ...


@dataclass(frozen=True)
class _CacheEntry:
    value: EnrichedChunk
    expires_at: float


class InMemoryEnrichmentCache:
    """
    In-process enrichment cache.

    Usage:
        cache = InMemoryEnrichmentCache(default_ttl=3600)
        cache.set(cache_key_for(chunk.content), enriched)
        hit = cache.try_get(cache_key_for(chunk.content))
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        backend: CacheBackend | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Entry lifetime in seconds when set() is given none
            backend: Optional secondary store
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if default_ttl <= 0:
            raise InvalidArgumentError(f"default_ttl must be positive, got {default_ttl}")
        self.default_ttl = default_ttl
        self.backend = backend
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def try_get(self, key: str) -> tuple[bool, EnrichedChunk | None]:
        """
        Look up a key.

        Returns:
            (True, value) on a hit, (False, None) on a miss
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if now < entry.expires_at:
                    self._hits += 1
                    return True, entry.value
                del self._entries[key]

        value = self._backend_get(key)
        if value is not None:
            now = self._clock()
            with self._lock:
                self._hits += 1
                # A set() that landed during the backend call wins
                current = self._entries.get(key)
                if current is not None and now < current.expires_at:
                    return True, current.value
                self._entries[key] = _CacheEntry(value, now + self.default_ttl)
            return True, value

        with self._lock:
            self._misses += 1
        return False, None

    def get(self, key: str) -> EnrichedChunk | None:
        """Value for ``key``, or None on a miss."""
        _, value = self.try_get(key)
        return value

    def set(self, key: str, value: EnrichedChunk, ttl: float | None = None) -> None:
        """
        Store a value, replacing any existing entry.

        Args:
            key: Cache key
            value: Enrichment output
            ttl: Lifetime in seconds; defaults to ``default_ttl``

        Raises:
            InvalidArgumentError: If ttl is not positive
        """
        ttl_seconds = self.default_ttl if ttl is None else ttl
        if ttl_seconds <= 0:
            raise InvalidArgumentError(f"ttl must be positive, got {ttl_seconds}")

        entry = _CacheEntry(value, self._clock() + ttl_seconds)
        with self._lock:
            self._entries[key] = entry

        if self.backend is not None:
            try:
                self.backend.set(key, value, ttl_seconds)
            except Exception as e:
                logger.warning(f"Enrichment cache backend write failed for {key[:12]}: {e}")

    def remove(self, key: str) -> bool:
        """Drop a local entry. Returns True if one existed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop all local entries and reset counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def get_statistics(self) -> CacheStatistics:
        """Snapshot of hit/miss counters and current size."""
        with self._lock:
            return CacheStatistics(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _backend_get(self, key: str) -> EnrichedChunk | None:
        if self.backend is None:
            return None
        try:
            return self.backend.get(key)
        except Exception as e:
            logger.warning(f"Enrichment cache backend unavailable, treating as miss: {e}")
            return None
