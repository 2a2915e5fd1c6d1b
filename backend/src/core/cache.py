"""Explicitly constructed TTL cache.

A thin layer over cachetools ``TTLCache``. There is no process-wide
instance: whoever needs caching creates a ``Cache`` and owns it (the
file best-practices store is the only owner today).
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAXSIZE = 128
DEFAULT_TTL = 300  # seconds

_MISSING = object()


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class Cache:
    """In-memory key/value cache with per-entry TTL and lookup stats."""

    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        ttl: float = DEFAULT_TTL,
        timer: Callable[[], float] | None = None,
    ) -> None:
        """Create an empty cache.

        Args:
            maxsize: Entry limit; least recently used entries go first.
            ttl: Seconds an entry stays valid. Must be positive.
            timer: Clock used for expiry, injectable for tests.

        Raises:
            ValueError: If ``ttl`` is not positive.
        """
        if ttl <= 0:
            raise ValueError("Cache ttl must be positive")
        self._ttl = ttl
        extra: dict[str, Any] = {} if timer is None else {"timer": timer}
        self._entries: TTLCache[str, Any] = TTLCache(maxsize=maxsize, ttl=ttl, **extra)
        self.stats = CacheStats()

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def size(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> tuple[Any, bool]:
        """Look up ``key``.

        Returns:
            ``(value, True)`` on a hit, ``(None, False)`` on a miss, so a
            stored ``None`` can be told apart from absence.
        """
        value = self._entries.get(key, _MISSING)
        if value is _MISSING:
            self.stats.misses += 1
            return None, False
        self.stats.hits += 1
        return value, True

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    async def get_or_compute(
        self, key: str, compute: Callable[[], Awaitable[T | None]]
    ) -> T | None:
        """Return the cached value, computing and storing it on a miss.

        A ``None`` result is returned but not stored, so absence is
        re-checked on the next call.
        """
        value, found = self.get(key)
        if found:
            return value

        logger.debug("Cache miss, computing %s", key)
        result = await compute()
        if result is not None:
            self.set(key, result)
        return result

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns whether it was present."""
        return self._entries.pop(key, _MISSING) is not _MISSING
