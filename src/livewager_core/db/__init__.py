"""Database layer — engine and ORM base."""

from livewager_core.db.base import Base
from livewager_core.db.engine import init_engine

__all__ = ["Base", "init_engine"]
