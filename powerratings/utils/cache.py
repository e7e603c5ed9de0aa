"""
In-process cache with explicit expiry.

Entries are stored as ``(value, inserted_at)`` and expire ``ttl`` seconds
after insertion. The clock is injectable so expiry can be tested without
sleeping.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimedCache(Generic[V]):
    """
    Time-bounded key/value cache.

    Example:
        cache = TimedCache(ttl_seconds=600)
        await cache.set("odds:ncaab", games)
        games = await cache.get("odds:ncaab")   # None once expired
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], datetime] = utc_now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[V, datetime]] = {}
        self._lock = asyncio.Lock()

    def _is_fresh(self, inserted_at: datetime) -> bool:
        return self._clock() - inserted_at < self.ttl

    async def get(self, key: Hashable) -> Optional[V]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._is_fresh(inserted_at):
                return value
            del self._entries[key]
            return None

    async def set(self, key: Hashable, value: V) -> None:
        async with self._lock:
            self._entries[key] = (value, self._clock())

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        fresh = sum(1 for _, inserted_at in self._entries.values() if self._is_fresh(inserted_at))
        return {
            "entries": len(self._entries),
            "fresh": fresh,
            "ttl_seconds": self.ttl.total_seconds(),
        }
