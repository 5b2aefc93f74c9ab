"""Pydantic domain models."""

from livewager_core.models.match import (
    STAT_KEYS,
    MatchSnapshot,
    MatchStats,
    Score,
    StatPair,
    parse_score,
)
from livewager_core.models.odds import FAMILY_KEYS, MarketFamily, OddsMarketSet, OddsQuote
from livewager_core.models.prediction import ConfidenceLevel, GoalPrediction
from livewager_core.models.wager import MarketType, Wager, WagerStatus, family_for

__all__ = [
    "ConfidenceLevel",
    "FAMILY_KEYS",
    "GoalPrediction",
    "MarketFamily",
    "MarketType",
    "MatchSnapshot",
    "MatchStats",
    "OddsMarketSet",
    "OddsQuote",
    "STAT_KEYS",
    "Score",
    "StatPair",
    "Wager",
    "WagerStatus",
    "family_for",
    "parse_score",
]
