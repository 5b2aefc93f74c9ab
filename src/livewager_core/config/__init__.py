"""Configuration system."""

from livewager_core.config.loader import load_config
from livewager_core.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
