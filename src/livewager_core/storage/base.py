"""Key-value persistence contract shared by the ledger and the time-series store."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable key-scoped blobs. ``load`` returns ``None`` for a missing key."""

    def load(self, key: str) -> bytes | None: ...

    def save(self, key: str, payload: bytes) -> None: ...


def wagers_key(match_id: str) -> str:
    return f"wagers:{match_id}"


def history_key(match_id: str) -> str:
    return f"history:{match_id}"
