"""Feature payload for the goal advisor, built from a snapshot and its history."""

from __future__ import annotations

from typing import Any

from livewager_core.models import MatchSnapshot, OddsQuote
from livewager_core.timeseries.indicators import (
    DEFAULT_WINDOW,
    api_momentum,
    api_score,
    pressure,
    shot_cluster,
)
from livewager_core.timeseries.store import TimeSeriesStore


def _quote_dict(quote: OddsQuote | None) -> dict[str, Any] | None:
    if quote is None:
        return None
    prices = {
        "over_under": ("over_price", "under_price"),
        "handicap": ("home_price", "away_price"),
    }[quote.family]
    out: dict[str, Any] = {"minute": quote.minute, "handicap_line": float(quote.handicap_line)}
    for name in prices:
        price = getattr(quote, name)
        out[name] = float(price) if price is not None else None
    return out


def build_features(
    snapshot: MatchSnapshot,
    series: TimeSeriesStore,
    window: int = DEFAULT_WINDOW,
) -> dict[str, Any]:
    """JSON-ready features: minute, score, raw counters, API scores,
    momentum / shot cluster / pressure over the trailing window and the
    latest quote of each market family.
    """
    history = series.stats_history(snapshot.id)
    over_under = series.history(snapshot.id, "over_under")
    stats = snapshot.stats
    return {
        "match_id": snapshot.id,
        "home": snapshot.home_name,
        "away": snapshot.away_name,
        "minute": snapshot.minute,
        "score": {"home": snapshot.score.home, "away": snapshot.score.away},
        "stats": stats.model_dump(),
        "api_score": {
            "home": round(api_score(stats, 0), 1),
            "away": round(api_score(stats, 1), 1),
        },
        "api_momentum": round(api_momentum(history, window), 1),
        "shot_cluster": round(shot_cluster(history, window), 1),
        "pressure": round(pressure(over_under, window), 1),
        "latest_over_under": _quote_dict(series.latest_odds(snapshot.id, "over_under")),
        "latest_handicap": _quote_dict(series.latest_odds(snapshot.id, "handicap")),
    }
