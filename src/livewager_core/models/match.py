"""Match models — score, in-play stat counters, polled snapshots."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from livewager_core.errors import InvalidScoreFormatError

_SCORE_RE = re.compile(r"^(\d+)-(\d+)$")

STAT_KEYS = (
    "attacks",
    "dangerous_attacks",
    "on_target",
    "off_target",
    "corners",
    "yellowcards",
    "redcards",
)


class StatPair(BaseModel):
    """Home/away values of one counter."""

    model_config = ConfigDict(frozen=True)

    home: int = 0
    away: int = 0

    def side(self, index: int) -> int:
        return self.home if index == 0 else self.away


class MatchStats(BaseModel):
    """The seven in-play counters. Missing counters are zero pairs."""

    model_config = ConfigDict(frozen=True)

    attacks: StatPair = Field(default_factory=StatPair)
    dangerous_attacks: StatPair = Field(default_factory=StatPair)
    on_target: StatPair = Field(default_factory=StatPair)
    off_target: StatPair = Field(default_factory=StatPair)
    corners: StatPair = Field(default_factory=StatPair)
    yellowcards: StatPair = Field(default_factory=StatPair)
    redcards: StatPair = Field(default_factory=StatPair)


class Score(BaseModel):
    model_config = ConfigDict(frozen=True)

    home: int = Field(default=0, ge=0)
    away: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.home + self.away

    def __str__(self) -> str:
        return f"{self.home}-{self.away}"


def parse_score(raw: str) -> Score:
    """Parse a strict ``"H-A"`` score string.

    Raises InvalidScoreFormatError for anything other than two
    non-negative integers separated by a single hyphen.
    """
    if not isinstance(raw, str):
        raise InvalidScoreFormatError(f"score must be a string, got {type(raw).__name__}")
    m = _SCORE_RE.match(raw)
    if m is None:
        raise InvalidScoreFormatError(f"malformed score {raw!r}, expected 'H-A'")
    return Score(home=int(m.group(1)), away=int(m.group(2)))


class MatchSnapshot(BaseModel):
    """Immutable view of one match at one polling instant."""

    model_config = ConfigDict(frozen=True)

    id: str
    league_name: str
    home_name: str
    away_name: str
    score: Score = Field(default_factory=Score)
    minute: int = 0
    stats: MatchStats = Field(default_factory=MatchStats)

    @property
    def score_string(self) -> str:
        return str(self.score)
