"""Settlement — quarter-line Asian handicap / Over-Under outcome and P&L.

Every market type reduces to a signed margin from the wagered side's point
of view, which then goes through a single five-way ladder:

    margin >  0.25  → WON        profit = stake * (price - 1)
    margin == 0.25  → HALF_WON   profit = stake * (price - 1) / 2
    margin == 0     → PUSH       profit = 0
    margin == -0.25 → HALF_LOST  profit = -stake / 2
    otherwise       → LOST       profit = -stake

Only goals scored after placement count. Inputs are assumed validated:
scores are non-negative and the line is a multiple of 0.25.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from livewager_core.models import MarketType, Score, Wager, WagerStatus

QUARTER = Decimal("0.25")


@dataclass(frozen=True)
class Settlement:
    status: WagerStatus
    profit: Decimal


def settlement_margin(
    market_type: MarketType,
    handicap_line: Decimal,
    score_at_placement: Score,
    final_score: Score,
) -> Decimal:
    """Signed margin toward the wagered side.

    OVER:  (goals since placement) - line
    UNDER: line - (goals since placement)
    HOME:  (home since - away since) + line
    AWAY:  (away since - home since) + line
    """
    if market_type in ("OVER", "UNDER"):
        delta = Decimal(final_score.total - score_at_placement.total) - handicap_line
        return delta if market_type == "OVER" else -delta

    home_since = final_score.home - score_at_placement.home
    away_since = final_score.away - score_at_placement.away
    diff = home_since - away_since if market_type == "HOME" else away_since - home_since
    return Decimal(diff) + handicap_line


def apply_ladder(margin: Decimal, stake: Decimal, price: Decimal) -> Settlement:
    """Map a signed margin onto the five quarter-line outcomes."""
    win = stake * (price - 1)
    if margin > QUARTER:
        return Settlement("WON", win)
    if margin == QUARTER:
        return Settlement("HALF_WON", win / 2)
    if margin == 0:
        return Settlement("PUSH", Decimal("0"))
    if margin == -QUARTER:
        return Settlement("HALF_LOST", -stake / 2)
    return Settlement("LOST", -stake)


def settle(wager: Wager, final_score: Score) -> Settlement:
    """Compute the outcome of *wager* at *final_score*. Never mutates the wager."""
    margin = settlement_margin(
        wager.market_type,
        wager.handicap_line,
        wager.score_at_placement,
        final_score,
    )
    return apply_ladder(margin, wager.stake, wager.price_at_placement)
