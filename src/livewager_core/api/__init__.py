"""HTTP surface — edge cache proxy and JSON API."""

from livewager_core.api.app import Services, create_app

__all__ = ["Services", "create_app"]
