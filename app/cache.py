"""Bounded, time-expiring in-memory cache shared by the row pipeline."""

from __future__ import annotations

import time
from typing import Any, Callable, Hashable

from cachetools import TTLCache as _BoundedTTLCache

_MISSING = object()


def cache_key(namespace: str, *parts: object) -> str:
    """Build a ``namespace:part:part`` cache key, e.g. ``meta:movie:tt0111161``."""

    return ":".join([namespace, *(str(part) for part in parts)])


class TTLCache:
    """LRU-evicting key/value store whose entries expire after a fixed TTL.

    Every entry receives the same time-to-live at insertion; there is no
    per-key override. Expired entries are reported absent even before they
    are physically purged. State lives for the lifetime of the process only.
    """

    def __init__(
        self,
        maxsize: int,
        ttl: float,
        *,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._store: _BoundedTTLCache = _BoundedTTLCache(
            maxsize=maxsize, ttl=ttl, timer=timer
        )

    @property
    def maxsize(self) -> int:
        return int(self._store.maxsize)

    @property
    def ttl(self) -> float:
        return float(self._store.ttl)

    def get(self, key: Hashable, default: Any = None) -> Any:
        value = self._store.get(key, _MISSING)
        if value is _MISSING:
            return default
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._store[key] = value

    def delete(self, key: Hashable) -> None:
        self._store.pop(key, None)

    def clear(self, prefix: str | None = None) -> None:
        """Drop every entry, or only string keys starting with ``prefix``."""

        if prefix is None:
            self._store.clear()
            return
        for key in [k for k in list(self._store.keys()) if isinstance(k, str)]:
            if key.startswith(prefix):
                self._store.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        self._store.expire()
        return len(self._store)
