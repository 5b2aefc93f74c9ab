"""Live match data synchronization and wager settlement engine."""

__version__ = "0.1.0"
