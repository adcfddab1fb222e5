import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    value: T
    stored_at: float


class SingleValueCache(Generic[T]):
    """One-slot cache with a freshness window.

    Stale values are kept so callers can fall back to the last known good
    value when every upstream fails. ``lock`` guards check-then-set sequences.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry[T]] = None
        self.lock = asyncio.Lock()

    def fresh(self) -> Optional[T]:
        entry = self._entry
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return entry.value

    def last(self) -> Optional[T]:
        return self._entry.value if self._entry is not None else None

    def set(self, value: T) -> None:
        self._entry = CacheEntry(value=value, stored_at=self._clock())


class TTLCache:
    """Simple in-memory TTL cache keyed by string"""

    def __init__(self, default_ttl: float = 300, max_size: int = 1000, clock: Clock = time.monotonic):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: Dict[str, CacheEntry[Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.default_ttl:
                del self._cache[key]
                return None
            return entry.value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = CacheEntry(value=value, stored_at=self._clock())

            # dicts keep insertion order, so the first key is the oldest write
            while len(self._cache) > self.max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
