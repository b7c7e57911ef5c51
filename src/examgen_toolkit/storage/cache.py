"""
Module: storage.cache

Purpose:
    In-memory cache with per-entry expiry and an injected clock, used
    for pattern lists and question pools fetched from the content store.

Key Classes:
    - TTLCache: Expiring key/value cache
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")

Clock = Callable[[], float]


class TTLCache(Generic[V]):
    """
    Key/value cache whose entries expire ``ttl_seconds`` after being set.

    Example:
        >>> now = [0.0]
        >>> cache = TTLCache(300, clock=lambda: now[0])
        >>> cache.set("patterns", [1, 2])
        >>> now[0] = 301
        >>> cache.get("patterns") is None
        True
    """

    def __init__(self, ttl_seconds: float, *, clock: Optional[Clock] = None) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive: {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[Hashable, Tuple[float, V]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
