"""Structured logging."""

from livewager_core.logging.setup import get_logger, match_context, setup_logging

__all__ = ["get_logger", "match_context", "setup_logging"]
