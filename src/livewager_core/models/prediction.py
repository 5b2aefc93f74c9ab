"""Advisory goal prediction returned by the AI oracle."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ConfidenceLevel = Literal["low", "medium", "high", "very_high"]


class GoalPrediction(BaseModel):
    """Probability of a goal in the next five minutes, with the oracle's confidence."""

    probability: int = Field(ge=0, le=100)
    confidence: ConfidenceLevel
    reasoning: str = ""
