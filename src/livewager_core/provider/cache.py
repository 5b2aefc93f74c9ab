"""EdgeCache — short-TTL response cache in front of the upstream."""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx


def cache_key(url: str | httpx.URL) -> str:
    """Stable key for a target resource.

    Query parameters are sorted, so logically identical requests share a
    slot regardless of the order their parameters were built in.
    """
    u = httpx.URL(str(url))
    if u.params:
        u = u.copy_with(params=sorted(u.params.multi_items()))
    return hashlib.sha256(str(u).encode()).hexdigest()


@dataclass
class CacheEntry:
    key: str
    payload: bytes
    expires_at: float


class EdgeCache:
    """Lock-guarded dict + monotonic clock TTL cache of raw payloads."""

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        """Return the cached payload or ``None`` if missing / expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._store[key]
                return None
            return entry.payload

    def put(self, key: str, payload: bytes, ttl: float | None = None) -> None:
        """Store *payload* under *key*. Last writer wins."""
        expires_at = self._clock() + (self.ttl_seconds if ttl is None else ttl)
        with self._lock:
            self._store[key] = CacheEntry(key=key, payload=payload, expires_at=expires_at)

    def invalidate(self, key: str) -> None:
        """Remove a single key (no-op if absent)."""
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
