"""
Crypto Pulse — Single-Slot TTL Cache
──────────────────────────────────────
One entry per key, overwritten on every put. No eviction policy:
keys are a small fixed set (one per tracked asset, or one global).

get()  → entry only while fresh
peek() → entry regardless of age (soft-expiry fallback after a failed refresh)
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CachedAggregate(Generic[T]):
    payload:    T
    fetched_at: float   # epoch seconds

    def age(self, now: float) -> float:
        return now - self.fetched_at


class TTLCache(Generic[T]):

    def __init__(self, ttl_s: float, clock: Callable[[], float] = time.time):
        self.ttl_s  = ttl_s
        self._clock = clock
        self._slots: Dict[Any, CachedAggregate[T]] = {}

    def get(self, key: Any) -> Optional[CachedAggregate[T]]:
        entry = self._slots.get(key)
        if entry and entry.age(self._clock()) < self.ttl_s:
            return entry
        return None

    def peek(self, key: Any) -> Optional[CachedAggregate[T]]:
        return self._slots.get(key)

    def put(self, key: Any, payload: T) -> CachedAggregate[T]:
        entry = CachedAggregate(payload=payload, fetched_at=self._clock())
        self._slots[key] = entry
        return entry

    def clear(self):
        self._slots.clear()

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._slots)
