from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Any, TypeVar

from app.settings import get_settings

T = TypeVar("T")


@dataclass
class _Entry:
    value: Any
    stored_at: float


class ReadCache:
    """TTL map for read queries, keyed by query signature.

    Entries expire `ttl_seconds` after they were stored. When full, the oldest
    stored entry is evicted first.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive.")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, _Entry] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
            self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def get_or_load(self, key: Hashable, loader: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        if value is not None:
            self.put(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


@lru_cache(maxsize=1)
def get_read_cache() -> ReadCache:
    settings = get_settings()
    return ReadCache(
        ttl_seconds=settings.read_cache_ttl_seconds,
        max_entries=settings.read_cache_max_entries,
    )
