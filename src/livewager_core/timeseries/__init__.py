"""Per-match time series of stats and odds, plus derived indicators."""

from livewager_core.timeseries.indicators import (
    api_momentum,
    api_score,
    api_series,
    pressure,
    shot_cluster,
)
from livewager_core.timeseries.store import SeriesSnapshot, TimeSeriesStore

__all__ = [
    "SeriesSnapshot",
    "TimeSeriesStore",
    "api_momentum",
    "api_score",
    "api_series",
    "pressure",
    "shot_cluster",
]
