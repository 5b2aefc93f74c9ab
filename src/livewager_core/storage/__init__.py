"""Persistence — key-value contract and its backends."""

from livewager_core.storage.base import KeyValueStore, history_key, wagers_key
from livewager_core.storage.memory import MemoryStore
from livewager_core.storage.sql import SqlKeyValueStore

__all__ = ["KeyValueStore", "MemoryStore", "SqlKeyValueStore", "history_key", "wagers_key"]
