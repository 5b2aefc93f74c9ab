"""TimeSeriesStore — per-match stats and odds history keyed by match-minute.

Writes are upserts by minute (the last value observed for a minute wins)
and reads always come back in ascending-minute order. Each match id is an
independent partition with its own lock; partitions are loaded from the
KeyValueStore on first access and flushed after each mutation.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from livewager_core.models import MarketFamily, MatchStats, OddsMarketSet, OddsQuote
from livewager_core.storage.base import KeyValueStore, history_key

log = structlog.get_logger("timeseries")

FAMILIES: tuple[MarketFamily, ...] = ("over_under", "handicap")


class SeriesSnapshot(BaseModel):
    """Persisted form of one match partition."""

    stats: dict[int, MatchStats] = Field(default_factory=dict)
    odds: dict[MarketFamily, list[OddsQuote]] = Field(default_factory=dict)


@dataclass
class _Partition:
    stats: dict[int, MatchStats] = field(default_factory=dict)
    odds: dict[str, dict[int, OddsQuote]] = field(
        default_factory=lambda: {family: {} for family in FAMILIES}
    )
    lock: threading.Lock = field(default_factory=threading.Lock)
    loaded: bool = False


class TimeSeriesStore:
    """Ordered per-match history of stat snapshots and odds quotes."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store
        self._partitions: dict[str, _Partition] = {}
        self._registry_lock = threading.Lock()

    # ── Partitions ────────────────────────────────────────────

    def _partition(self, match_id: str) -> _Partition:
        with self._registry_lock:
            part = self._partitions.setdefault(match_id, _Partition())
        with part.lock:
            if not part.loaded:
                self._load_into(match_id, part)
                part.loaded = True
        return part

    def _load_into(self, match_id: str, part: _Partition) -> None:
        if self._store is None:
            return
        raw = self._store.load(history_key(match_id))
        if raw is None:
            return
        try:
            snap = SeriesSnapshot.model_validate_json(raw)
        except (PydanticValidationError, ValueError):
            log.warning("history_corrupt", match_id=match_id, bytes=len(raw))
            return
        part.stats = dict(snap.stats)
        for family, quotes in snap.odds.items():
            part.odds[family] = {q.minute: q for q in quotes}
        log.info("history_loaded", match_id=match_id, stats_points=len(part.stats))

    def _flush(self, match_id: str, part: _Partition) -> None:
        # Caller holds part.lock.
        if self._store is None:
            return
        snap = SeriesSnapshot(
            stats=part.stats,
            odds={family: [by_min[m] for m in sorted(by_min)] for family, by_min in part.odds.items()},
        )
        self._store.save(history_key(match_id), snap.model_dump_json().encode())

    # ── Writes ────────────────────────────────────────────────

    def record_stats(self, match_id: str, minute: int, stats: MatchStats) -> None:
        part = self._partition(match_id)
        with part.lock:
            part.stats[minute] = stats
            self._flush(match_id, part)

    def record_odds(self, match_id: str, family: MarketFamily, quote: OddsQuote) -> None:
        if quote.family != family:
            raise ValueError(f"{quote.family} quote cannot be recorded under {family}")
        part = self._partition(match_id)
        with part.lock:
            part.odds[family][quote.minute] = quote
            self._flush(match_id, part)

    def record_market_set(self, match_id: str, market_set: OddsMarketSet) -> int:
        """Upsert every quote of one odds poll with a single flush. Returns the count."""
        part = self._partition(match_id)
        count = 0
        with part.lock:
            for family in FAMILIES:
                for quote in market_set.quotes(family):
                    part.odds[family][quote.minute] = quote
                    count += 1
            if count:
                self._flush(match_id, part)
        return count

    # ── Reads ─────────────────────────────────────────────────

    def history(self, match_id: str, family: MarketFamily) -> list[OddsQuote]:
        """Odds quotes of one family in ascending-minute order."""
        part = self._partition(match_id)
        with part.lock:
            by_minute = part.odds[family]
            return [by_minute[m] for m in sorted(by_minute)]

    def stats_history(self, match_id: str) -> list[tuple[int, MatchStats]]:
        """``(minute, stats)`` pairs in ascending-minute order."""
        part = self._partition(match_id)
        with part.lock:
            return [(m, part.stats[m]) for m in sorted(part.stats)]

    def latest_odds(self, match_id: str, family: MarketFamily) -> OddsQuote | None:
        part = self._partition(match_id)
        with part.lock:
            by_minute = part.odds[family]
            return by_minute[max(by_minute)] if by_minute else None

    def latest_stats(self, match_id: str) -> tuple[int, MatchStats] | None:
        part = self._partition(match_id)
        with part.lock:
            if not part.stats:
                return None
            minute = max(part.stats)
            return minute, part.stats[minute]

    def match_ids(self) -> list[str]:
        with self._registry_lock:
            return sorted(self._partitions)
