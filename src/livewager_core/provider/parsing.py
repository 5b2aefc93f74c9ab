"""Upstream payload parsing — defensive, never raises on missing fields.

All numeric fields arrive as strings. Counters default to 0 when missing or
unparseable; prices are ``None`` (market absent) in that case.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from livewager_core.errors import InvalidScoreFormatError, UpstreamRejectedError
from livewager_core.models import (
    FAMILY_KEYS,
    STAT_KEYS,
    MarketFamily,
    MatchSnapshot,
    MatchStats,
    OddsMarketSet,
    OddsQuote,
    Score,
    StatPair,
    parse_score,
)


def parse_int(raw: Any, default: int = 0) -> int:
    """Parse an integer counter, tolerating ``"12"``, ``12``, ``"12.0"`` and junk."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return default


def parse_decimal(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_price(raw: Any) -> Decimal | None:
    """Decimal odds, or ``None`` when missing, unparseable or below 1.0."""
    value = parse_decimal(raw)
    if value is None or value < 1:
        return None
    return value


def parse_handicap(raw: Any) -> Decimal:
    """Parse a line like ``"2.5"``, ``"-0.75"`` or split form ``"0.0,-0.5"``.

    A split line is the midpoint of its two halves. Unparseable → 0.
    """
    if isinstance(raw, str) and "," in raw:
        parts = [parse_decimal(p) for p in raw.split(",")]
        if len(parts) == 2 and all(p is not None for p in parts):
            return (parts[0] + parts[1]) / 2
        return Decimal("0")
    value = parse_decimal(raw)
    return value if value is not None else Decimal("0")


def is_success(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("success") in (1, "1", True)


def is_failure(payload: Any) -> bool:
    """True when the payload is not an object or explicitly flags failure."""
    return not isinstance(payload, dict) or payload.get("success") in (0, "0", False)


def parse_stats(raw: Any) -> MatchStats:
    """Build MatchStats from ``{"attacks": ["60", "75"], ...}``."""
    if not isinstance(raw, dict):
        return MatchStats()
    pairs: dict[str, StatPair] = {}
    for key in STAT_KEYS:
        value = raw.get(key)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            pairs[key] = StatPair(home=parse_int(value[0]), away=parse_int(value[1]))
    return MatchStats(**pairs)


def _name(obj: Any) -> str:
    if isinstance(obj, dict):
        name = obj.get("name")
        if isinstance(name, str):
            return name
    return ""


def parse_minute(event: dict) -> int:
    timer = event.get("timer")
    if isinstance(timer, dict):
        tm = parse_int(timer.get("tm"))
        if tm > 0:
            return tm
    return parse_int(event.get("time"))


def _score_or_zero(raw: Any) -> Score:
    try:
        return parse_score(raw)
    except InvalidScoreFormatError:
        return Score()


def parse_event(event: Any) -> MatchSnapshot | None:
    """Parse one live event, or ``None`` if it lacks an id or a league name."""
    if not isinstance(event, dict):
        return None
    event_id = event.get("id")
    league = _name(event.get("league"))
    if event_id in (None, "") or not league:
        return None
    return MatchSnapshot(
        id=str(event_id),
        league_name=league,
        home_name=_name(event.get("home")),
        away_name=_name(event.get("away")),
        score=_score_or_zero(event.get("ss")),
        minute=parse_minute(event),
        stats=parse_stats(event.get("stats")),
    )


def is_excluded(league_name: str, excluded: list[str]) -> bool:
    name = league_name.lower()
    return any(marker.lower() in name for marker in excluded)


def parse_events(payload: Any, excluded: list[str]) -> list[MatchSnapshot]:
    """Parse the live-events listing, dropping excluded leagues.

    Raises UpstreamRejectedError when the payload carries a failure flag.
    """
    if payload is None:
        return []
    if not is_success(payload):
        message = payload.get("error") if isinstance(payload, dict) else None
        raise UpstreamRejectedError(message or "upstream reported failure")
    results = payload.get("results") or []
    if not isinstance(results, list):
        return []
    snapshots = []
    for raw in results:
        snap = parse_event(raw)
        if snap is not None and not is_excluded(snap.league_name, excluded):
            snapshots.append(snap)
    return snapshots


def parse_quote(item: Any, family: MarketFamily) -> OddsQuote | None:
    """Parse one odds item; items without a ``time_str`` are skipped."""
    if not isinstance(item, dict):
        return None
    time_str = item.get("time_str")
    if time_str in (None, ""):
        return None
    common = {
        "family": family,
        "minute": parse_int(time_str),
        "handicap_line": parse_handicap(item.get("handicap")),
    }
    if family == "over_under":
        return OddsQuote(
            **common,
            over_price=parse_price(item.get("over_od")),
            under_price=parse_price(item.get("under_od")),
        )
    return OddsQuote(
        **common,
        home_price=parse_price(item.get("home_od")),
        away_price=parse_price(item.get("away_od")),
    )


def parse_odds(payload: Any) -> OddsMarketSet | None:
    """Parse the odds payload; ``None`` when absent or flagged as failed."""
    if payload is None or is_failure(payload):
        return None
    results = payload.get("results")
    odds = results.get("odds") if isinstance(results, dict) else None
    if not isinstance(odds, dict):
        return OddsMarketSet()
    market_set = OddsMarketSet()
    for key, family in FAMILY_KEYS.items():
        items = odds.get(key)
        if not isinstance(items, list):
            continue
        target = market_set.quotes(family)
        for item in items:
            quote = parse_quote(item, family)
            if quote is not None:
                target.append(quote)
    return market_set
