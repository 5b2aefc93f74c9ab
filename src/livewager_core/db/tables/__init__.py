"""Import all table modules so Base.metadata knows about them."""

from livewager_core.db.tables.kv import KeyValueRow

__all__ = ["KeyValueRow"]
