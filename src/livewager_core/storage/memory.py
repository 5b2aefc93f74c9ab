"""In-process store for tests and demo runs."""

from __future__ import annotations

import threading


class MemoryStore:
    """Dict-backed KeyValueStore."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, payload: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(payload)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
