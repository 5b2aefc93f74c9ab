"""Wager model — one informal bet and its settlement state."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from livewager_core.models.match import Score
from livewager_core.models.odds import MarketFamily

MarketType = Literal["HOME", "AWAY", "OVER", "UNDER"]
WagerStatus = Literal["PENDING", "WON", "HALF_WON", "PUSH", "HALF_LOST", "LOST"]


def family_for(market_type: MarketType) -> MarketFamily:
    return "over_under" if market_type in ("OVER", "UNDER") else "handicap"


class Wager(BaseModel):
    """A bet on one side of a market line, settled once against a final score."""

    id: str
    match_id: str
    market_type: MarketType
    handicap_line: Decimal
    price_at_placement: Decimal
    stake: Decimal
    score_at_placement: Score
    status: WagerStatus = "PENDING"
    profit: Decimal = Decimal("0")
    final_score: Score | None = None
    placed_at: datetime
    settled_at: datetime | None = None
    notes: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status == "PENDING"
