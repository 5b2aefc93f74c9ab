"""Derived in-play indicators — pure functions on stats and odds history."""

from __future__ import annotations

from livewager_core.models import MatchStats, OddsQuote

# Attack-pressure weights: shots, shots on target, corners, dangerous attacks.
SHOT_WEIGHT = 1.0
ON_TARGET_WEIGHT = 3.0
CORNER_WEIGHT = 0.7
DANGEROUS_WEIGHT = 0.1

DEFAULT_WINDOW = 5


def api_score(stats: MatchStats | None, side: int) -> float:
    """Attack-pressure index for one side (0 = home, 1 = away).

    shots * 1.0 + on_target * 3.0 + corners * 0.7 + dangerous_attacks * 0.1
    """
    if stats is None:
        return 0.0
    on_target = stats.on_target.side(side)
    shots = on_target + stats.off_target.side(side)
    return (
        shots * SHOT_WEIGHT
        + on_target * ON_TARGET_WEIGHT
        + stats.corners.side(side) * CORNER_WEIGHT
        + stats.dangerous_attacks.side(side) * DANGEROUS_WEIGHT
    )


def api_series(history: list[tuple[int, MatchStats]]) -> list[tuple[int, float, float]]:
    """``(minute, home_api, away_api)`` for each point of a stats history."""
    return [(minute, api_score(stats, 0), api_score(stats, 1)) for minute, stats in history]


def total_shots(stats: MatchStats) -> int:
    return (
        stats.on_target.home + stats.on_target.away
        + stats.off_target.home + stats.off_target.away
    )


def _window_bounds(minutes: list[int], window: int) -> tuple[int, int] | None:
    """Indexes of (baseline, latest) for a trailing window over sorted minutes.

    The baseline is the last point at or before ``latest - window``, or the
    first point when the history is shorter than the window.
    """
    if len(minutes) < 2:
        return None
    latest = len(minutes) - 1
    cutoff = minutes[latest] - window
    baseline = 0
    for i, minute in enumerate(minutes[:latest]):
        if minute <= cutoff:
            baseline = i
    return baseline, latest


def api_momentum(history: list[tuple[int, MatchStats]], window: int = DEFAULT_WINDOW) -> float:
    """Change of the combined home+away API score over the trailing window."""
    bounds = _window_bounds([m for m, _ in history], window)
    if bounds is None:
        return 0.0
    start, end = bounds
    combined = [api_score(s, 0) + api_score(s, 1) for _, s in (history[start], history[end])]
    return combined[1] - combined[0]


def shot_cluster(history: list[tuple[int, MatchStats]], window: int = DEFAULT_WINDOW) -> float:
    """Shots (both sides, on and off target) added over the trailing window."""
    bounds = _window_bounds([m for m, _ in history], window)
    if bounds is None:
        return 0.0
    start, end = bounds
    return float(total_shots(history[end][1]) - total_shots(history[start][1]))


def pressure(over_under: list[OddsQuote], window: int = DEFAULT_WINDOW) -> float:
    """Movement of the Over price over the trailing window, scaled by 10.

    Quotes with a suspended Over price are ignored.
    """
    priced = [q for q in over_under if q.over_price is not None]
    bounds = _window_bounds([q.minute for q in priced], window)
    if bounds is None:
        return 0.0
    start, end = bounds
    return abs(float(priced[end].over_price - priced[start].over_price)) * 10
