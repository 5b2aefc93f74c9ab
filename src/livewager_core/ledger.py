"""WagerLedger — per-match wager books with place / settle / delete.

The ledger exclusively owns wagers; callers only ever receive copies. Each
match id is a separate book with its own lock, loaded from the
KeyValueStore on first access and saved after every mutation.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, get_args

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from livewager_core.errors import (
    AlreadySettledError,
    InvalidLineError,
    InvalidPriceError,
    InvalidScoreFormatError,
    InvalidStakeError,
    ValidationError,
    WagerNotFoundError,
)
from livewager_core.models import MarketType, Score, Wager, family_for, parse_score
from livewager_core.settlement import QUARTER, settle
from livewager_core.storage.base import KeyValueStore, wagers_key

if TYPE_CHECKING:
    from livewager_core.timeseries.store import TimeSeriesStore

log = structlog.get_logger("ledger")

_WAGER_LIST = TypeAdapter(list[Wager])
_MARKET_TYPES = frozenset(get_args(MarketType))


@dataclass
class LedgerSummary:
    total_staked: Decimal
    pending_stake: Decimal
    settled_profit: Decimal
    wagers: int
    pending: int


@dataclass
class _Book:
    wagers: dict[str, Wager] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)
    loaded: bool = False


def _to_decimal(raw: Any) -> Decimal | None:
    if isinstance(raw, bool):
        return None
    try:
        value = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def _coerce_score(raw: Score | str) -> Score:
    if isinstance(raw, Score):
        return raw
    return parse_score(raw)


class WagerLedger:
    """In-memory wager books backed by a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._store = store
        self._clock = clock
        self._new_id = id_factory
        self._books: dict[str, _Book] = {}
        self._index: dict[str, str] = {}  # wager id -> match id
        self._registry_lock = threading.Lock()

    # ── Books ─────────────────────────────────────────────────

    def _book(self, match_id: str) -> _Book:
        with self._registry_lock:
            book = self._books.setdefault(match_id, _Book())
        with book.lock:
            if not book.loaded:
                self._load_into(match_id, book)
                book.loaded = True
        return book

    def _load_into(self, match_id: str, book: _Book) -> None:
        if self._store is None:
            return
        raw = self._store.load(wagers_key(match_id))
        if raw is None:
            return
        try:
            wagers = _WAGER_LIST.validate_json(raw)
        except (PydanticValidationError, ValueError):
            log.warning("wagers_corrupt", match_id=match_id, bytes=len(raw))
            return
        book.wagers = {w.id: w for w in wagers if w.match_id == match_id}
        with self._registry_lock:
            for wager_id in book.wagers:
                self._index[wager_id] = match_id
        log.info("wagers_loaded", match_id=match_id, count=len(book.wagers))

    def _commit(self, match_id: str, book: _Book, wagers: dict[str, Wager]) -> None:
        # Caller holds book.lock. The book only changes once the save succeeded.
        if self._store is not None:
            payload = _WAGER_LIST.dump_json(list(wagers.values()))
            self._store.save(wagers_key(match_id), payload)
        book.wagers = wagers

    def _locate(self, wager_id: str, match_id: str | None) -> tuple[str, _Book]:
        if match_id is not None:
            book = self._book(match_id)
        else:
            with self._registry_lock:
                match_id = self._index.get(wager_id)
            if match_id is None:
                raise WagerNotFoundError(f"wager {wager_id!r} not found")
            book = self._book(match_id)
        return match_id, book

    # ── Mutations ─────────────────────────────────────────────

    def place(
        self,
        match_id: str,
        market_type: MarketType,
        handicap_line: Decimal | float | str,
        price: Decimal | float | str,
        stake: Decimal | float | str,
        score_at_placement: Score | str,
        notes: str = "",
    ) -> Wager:
        """Validate the terms and open a PENDING wager."""
        if market_type not in _MARKET_TYPES:
            raise ValidationError(f"unknown market type {market_type!r}")
        stake_d = _to_decimal(stake)
        if stake_d is None or stake_d <= 0:
            raise InvalidStakeError(f"stake must be a positive finite number, got {stake!r}")
        price_d = _to_decimal(price)
        if price_d is None or price_d <= 1:
            raise InvalidPriceError(f"price must be decimal odds above 1.0, got {price!r}")
        line_d = _to_decimal(handicap_line)
        if line_d is None or line_d % QUARTER != 0:
            raise InvalidLineError(f"handicap line must be a multiple of 0.25, got {handicap_line!r}")
        score = _coerce_score(score_at_placement)

        wager = Wager(
            id=self._new_id(),
            match_id=match_id,
            market_type=market_type,
            handicap_line=line_d,
            price_at_placement=price_d,
            stake=stake_d,
            score_at_placement=score,
            placed_at=self._clock(),
            notes=notes,
        )
        book = self._book(match_id)
        with book.lock:
            self._commit(match_id, book, {**book.wagers, wager.id: wager})
            with self._registry_lock:
                self._index[wager.id] = match_id

        log.info(
            "wager_placed",
            wager_id=wager.id,
            match_id=match_id,
            market_type=market_type,
            handicap_line=str(line_d),
            price=str(price_d),
            stake=str(stake_d),
            score=str(score),
        )
        return wager.model_copy(deep=True)

    def place_from_latest(
        self,
        series: "TimeSeriesStore",
        match_id: str,
        market_type: MarketType,
        stake: Decimal | float | str,
        score_at_placement: Score | str,
        notes: str = "",
    ) -> Wager:
        """Place a wager at the latest quoted line and side price for the market."""
        if market_type not in _MARKET_TYPES:
            raise ValidationError(f"unknown market type {market_type!r}")
        quote = series.latest_odds(match_id, family_for(market_type))
        price = quote.price_for(market_type) if quote is not None else None
        if quote is None or price is None:
            raise InvalidPriceError(f"no current {market_type} price for match {match_id!r}")
        return self.place(
            match_id, market_type, quote.handicap_line, price, stake, score_at_placement, notes,
        )

    def settle(self, wager_id: str, final_score: Score | str, match_id: str | None = None) -> Wager:
        """Settle a PENDING wager against *final_score*.

        Raises AlreadySettledError if the wager was settled before and
        InvalidScoreFormatError for a malformed or impossible final score;
        in both cases the wager is left unchanged.
        """
        match_id, book = self._locate(wager_id, match_id)
        with book.lock:
            wager = book.wagers.get(wager_id)
            if wager is None:
                raise WagerNotFoundError(f"wager {wager_id!r} not found")
            if not wager.is_pending or wager.final_score is not None:
                raise AlreadySettledError(f"wager {wager_id!r} is already {wager.status}")
            score = _coerce_score(final_score)
            placed = wager.score_at_placement
            if score.home < placed.home or score.away < placed.away:
                raise InvalidScoreFormatError(
                    f"final score {score} is below the score at placement {placed}"
                )

            result = settle(wager, score)
            settled = wager.model_copy(update={
                "status": result.status,
                "profit": result.profit,
                "final_score": score,
                "settled_at": self._clock(),
            })
            self._commit(match_id, book, {**book.wagers, wager_id: settled})
            settled = settled.model_copy(deep=True)

        log.info(
            "wager_settled",
            wager_id=wager_id,
            match_id=match_id,
            status=settled.status,
            profit=str(settled.profit),
            final_score=str(score),
        )
        return settled

    def delete(self, wager_id: str, match_id: str | None = None) -> bool:
        """Remove a wager regardless of status. Returns False if it was absent."""
        try:
            match_id, book = self._locate(wager_id, match_id)
        except WagerNotFoundError:
            return False
        with book.lock:
            if wager_id not in book.wagers:
                return False
            remaining = {k: w for k, w in book.wagers.items() if k != wager_id}
            self._commit(match_id, book, remaining)
            with self._registry_lock:
                self._index.pop(wager_id, None)
        log.info("wager_deleted", wager_id=wager_id, match_id=match_id)
        return True

    # ── Reads ─────────────────────────────────────────────────

    def get(self, wager_id: str, match_id: str | None = None) -> Wager:
        match_id, book = self._locate(wager_id, match_id)
        with book.lock:
            wager = book.wagers.get(wager_id)
            if wager is None:
                raise WagerNotFoundError(f"wager {wager_id!r} not found")
            return wager.model_copy(deep=True)

    def wagers(self, match_id: str) -> list[Wager]:
        """Wagers for a match, oldest first."""
        book = self._book(match_id)
        with book.lock:
            return [w.model_copy(deep=True) for w in book.wagers.values()]

    def total_profit(self, match_id: str) -> Decimal:
        """Sum of profit over settled wagers; PENDING wagers never contribute."""
        book = self._book(match_id)
        with book.lock:
            return sum(
                (w.profit for w in book.wagers.values() if not w.is_pending),
                Decimal("0"),
            )

    def summary(self, match_id: str) -> LedgerSummary:
        book = self._book(match_id)
        with book.lock:
            wagers = list(book.wagers.values())
        pending = [w for w in wagers if w.is_pending]
        return LedgerSummary(
            total_staked=sum((w.stake for w in wagers), Decimal("0")),
            pending_stake=sum((w.stake for w in pending), Decimal("0")),
            settled_profit=sum((w.profit for w in wagers if not w.is_pending), Decimal("0")),
            wagers=len(wagers),
            pending=len(pending),
        )
