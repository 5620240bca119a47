"""Bounded, thread-safe memoization for key conversions.

Converting the same handful of column names over and over is the common
case for row post-processing, so converted keys are memoized. The cache is
bounded with least-recently-used eviction and refuses to store long keys,
which keeps attacker-controlled payloads from growing it without limit.
"""

import threading
from collections import OrderedDict

from casekit.core.constants import DEFAULT_CACHE_CAPACITY, MAX_CACHED_KEY_LENGTH

type CacheKey = tuple[str, bool, bool]


class ConversionCache:
    """LRU mapping from (source key, case mode) to the converted key.

    The case mode is part of the cache key: the same source key converts to
    different strings under camelCase and PascalCase, and under
    preserve-consecutive-uppercase. Every other option only decides *whether*
    a key is converted, never *how*, so one cache can serve all calls.

    Args:
        capacity: Maximum number of entries kept before evicting the least
            recently used one.
        max_key_length: Source keys of this length or longer are never stored.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CACHE_CAPACITY,
        max_key_length: int = MAX_CACHED_KEY_LENGTH,
    ) -> None:
        if capacity < 1:
            msg = "capacity must be at least 1"
            raise ValueError(msg)
        self.capacity = capacity
        self.max_key_length = max_key_length
        self._entries: OrderedDict[CacheKey, str] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(
        key: str, *, pascal_case: bool, preserve_consecutive_uppercase: bool
    ) -> CacheKey:
        """Build the cache key for a source key under a case mode."""
        return (key, pascal_case, preserve_consecutive_uppercase)

    def get(self, cache_key: CacheKey) -> str | None:
        """Return the cached conversion and mark it as recently used."""
        with self._lock:
            converted = self._entries.get(cache_key)
            if converted is not None:
                self._entries.move_to_end(cache_key)
            return converted

    def put(self, cache_key: CacheKey, converted: str) -> bool:
        """Store a conversion, evicting the least recently used entries.

        Returns:
            bool: False when the source key is too long to be cached.
        """
        if len(cache_key[0]) >= self.max_key_length:
            return False

        with self._lock:
            self._entries[cache_key] = converted
            self._entries.move_to_end(cache_key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
        return True

    def clear(self) -> None:
        """Drop every cached conversion."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, cache_key: object) -> bool:
        with self._lock:
            return cache_key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
