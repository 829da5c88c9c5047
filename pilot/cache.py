"""TTL cache used for strategy listings and wallet balances.

Entries are immutable snapshots once written; expired entries are treated as
absent. cachetools is not thread-safe, so a lock guards the map when the host
runs handlers on worker threads. Concurrent writers to one key race with
last-writer-wins semantics.
"""
from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Generic, NamedTuple, TypeVar

from cachetools import TLRUCache

T = TypeVar("T")

MAX_ENTRIES = 4096


class _Entry(NamedTuple):
    value: Any
    ttl_ms: int


def _expires_at(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_ms / 1000


class TTLCache(Generic[T]):
    def __init__(
        self,
        default_ttl_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl_ms = default_ttl_ms
        self._entries: TLRUCache = TLRUCache(maxsize=MAX_ENTRIES, ttu=_expires_at, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> T | None:
        with self._lock:
            entry = self._entries.get(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: T, ttl_ms: int | None = None) -> None:
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        with self._lock:
            self._entries[key] = _Entry(value, ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


def cache_key(prefix: str, **params: Any) -> str:
    """Deterministic key over every parameter, absent ones included.

    JSON with sorted keys keeps distinct combinations from colliding even when
    values contain separator characters.
    """
    return f"{prefix}:{json.dumps(params, sort_keys=True, default=str)}"
