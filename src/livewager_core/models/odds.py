"""Odds models — per-minute quotes grouped by market family."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MarketFamily = Literal["over_under", "handicap"]

# Upstream keys of the two market families in the odds payload.
FAMILY_KEYS: dict[str, MarketFamily] = {
    "1_3": "over_under",
    "1_2": "handicap",
}


class OddsQuote(BaseModel):
    """One update of a market line. A ``None`` price means the side is suspended."""

    model_config = ConfigDict(frozen=True)

    family: MarketFamily
    minute: int
    handicap_line: Decimal = Decimal("0")
    over_price: Decimal | None = None
    under_price: Decimal | None = None
    home_price: Decimal | None = None
    away_price: Decimal | None = None

    def price_for(self, market_type: str) -> Decimal | None:
        return {
            "OVER": self.over_price,
            "UNDER": self.under_price,
            "HOME": self.home_price,
            "AWAY": self.away_price,
        }.get(market_type)


class OddsMarketSet(BaseModel):
    """All quotes of one odds poll, by family, in upstream order."""

    over_under: list[OddsQuote] = Field(default_factory=list)
    handicap: list[OddsQuote] = Field(default_factory=list)

    def quotes(self, family: MarketFamily) -> list[OddsQuote]:
        return self.over_under if family == "over_under" else self.handicap

    def is_empty(self) -> bool:
        return not self.over_under and not self.handicap
