"""Periodic per-match refresh of live data."""

from livewager_core.scheduler.runner import RefreshError, RefreshScheduler, RefreshStatus

__all__ = ["RefreshError", "RefreshScheduler", "RefreshStatus"]
