"""Suggestion cache keyed by the text surrounding the cursor.

Suggestions are reused when the user returns to exactly the same
prefix/suffix pair, which avoids a second round trip to the prediction
backend. The cache is bounded both by entry count (least-recently-used
eviction) and by age (time-to-live checked lazily on access).
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

__all__ = [
    "MASK_TOKEN",
    "SuggestionCache",
    "SuggestionCacheConfig",
    "SuggestionCacheEntry",
    "CacheStats",
    "make_key",
]

LOGGER = logging.getLogger(__name__)

MASK_TOKEN = "<mask/>"
FIVE_MINUTES_IN_SECONDS = 60.0 * 5
MAX_ITEMS_IN_CACHE = 5_000

Clock = Callable[[], float]


def make_key(prefix: str, suffix: str) -> str:
    """Join ``prefix`` and ``suffix`` around the mask marker."""

    return f"{prefix}{MASK_TOKEN}{suffix}"


# -----------------------------------------------------------------------------
# Cache Configuration
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class SuggestionCacheConfig:
    """Configuration for the suggestion cache.

    Attributes:
        max_entries: Maximum number of suggestions to keep.
        ttl_seconds: Time-to-live for entries in seconds (0 = no expiry).
        track_stats: Whether to track cache statistics.
    """

    max_entries: int = MAX_ITEMS_IN_CACHE
    ttl_seconds: float = FIVE_MINUTES_IN_SECONDS
    track_stats: bool = True


@dataclass(slots=True)
class SuggestionCacheEntry:
    key: str
    suggestion: str
    inserted_at: float

    def is_expired(self, ttl_seconds: float, now: float) -> bool:
        if ttl_seconds <= 0:
            return False
        return now - self.inserted_at >= ttl_seconds


@dataclass(slots=True)
class CacheStats:
    """Counters describing cache effectiveness."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    cleared: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


# -----------------------------------------------------------------------------
# Suggestion Cache
# -----------------------------------------------------------------------------


class SuggestionCache:
    """LRU + TTL cache mapping surrounding text to a suggestion.

    Only ever touched from the event loop thread that owns the state
    machine, so no locking is done here.

    Example:
        >>> cache = SuggestionCache()
        >>> cache.set("The cat sat.", "", " on the mat")
        >>> cache.get("The cat sat.", "")
        ' on the mat'
    """

    def __init__(
        self,
        config: SuggestionCacheConfig | None = None,
        *,
        enabled: bool = True,
        clock: Clock = time.monotonic,
    ) -> None:
        self._config = config or SuggestionCacheConfig()
        if self._config.max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: OrderedDict[str, SuggestionCacheEntry] = OrderedDict()
        self._enabled = bool(enabled)
        self._clock = clock
        self._stats = CacheStats() if self._config.track_stats else None

    @property
    def config(self) -> SuggestionCacheConfig:
        return self._config

    @property
    def stats(self) -> CacheStats | None:
        """Cache statistics (None if tracking disabled)."""
        return self._stats

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)
        if not self._enabled:
            self.clear()

    def get(self, prefix: str, suffix: str) -> str | None:
        """Return the cached suggestion for the pair, or None if missing or expired."""

        key = make_key(prefix, suffix)
        entry = self._entries.get(key)
        if entry is None:
            if self._stats:
                self._stats.misses += 1
            return None

        if entry.is_expired(self._config.ttl_seconds, self._clock()):
            del self._entries[key]
            if self._stats:
                self._stats.expirations += 1
                self._stats.misses += 1
            LOGGER.debug("Suggestion cache entry expired (%d chars of key)", len(key))
            return None

        self._entries.move_to_end(key)
        if self._stats:
            self._stats.hits += 1
        return entry.suggestion

    def set(self, prefix: str, suffix: str, suggestion: str) -> None:
        """Store ``suggestion`` for the pair, evicting the least recently used entries if full."""

        if not self._enabled:
            return
        key = make_key(prefix, suffix)
        entry = SuggestionCacheEntry(key=key, suggestion=suggestion, inserted_at=self._clock())
        if key in self._entries:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            return

        while len(self._entries) >= self._config.max_entries:
            self._entries.popitem(last=False)
            if self._stats:
                self._stats.evictions += 1
        self._entries[key] = entry

    def clear(self) -> int:
        """Remove every entry and return how many were dropped."""

        count = len(self._entries)
        self._entries.clear()
        if self._stats:
            self._stats.cleared += count
        if count:
            LOGGER.debug("Cleared %d cached suggestions", count)
        return count

    def contains(self, prefix: str, suffix: str) -> bool:
        """Check membership without touching recency or expiry."""
        return make_key(prefix, suffix) in self._entries

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys ordered from least to most recently used."""
        return list(self._entries.keys())

    def cleanup_expired(self) -> int:
        """Remove all expired entries and return how many were dropped."""

        if self._config.ttl_seconds <= 0:
            return 0
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(self._config.ttl_seconds, now)]
        for key in expired:
            del self._entries[key]
            if self._stats:
                self._stats.expirations += 1
        if expired:
            LOGGER.debug("Cleaned up %d expired suggestions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
