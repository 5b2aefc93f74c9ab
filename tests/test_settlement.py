"""Tests for quarter-line settlement."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from livewager_core.models import Score, Wager
from livewager_core.settlement import apply_ladder, settle, settlement_margin

D = Decimal


def _wager(market_type: str, line: str, price: str, stake: str, placed: str) -> Wager:
    home, away = (int(x) for x in placed.split("-"))
    return Wager(
        id="w1",
        match_id="m1",
        market_type=market_type,
        handicap_line=D(line),
        price_at_placement=D(price),
        stake=D(stake),
        score_at_placement=Score(home=home, away=away),
        placed_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def _score(raw: str) -> Score:
    home, away = (int(x) for x in raw.split("-"))
    return Score(home=home, away=away)


class TestLadder:
    @pytest.mark.parametrize(
        "margin,status",
        [
            ("3", "WON"),
            ("0.5", "WON"),
            ("0.26", "WON"),
            ("0.25", "HALF_WON"),
            ("0.24", "LOST"),
            ("0", "PUSH"),
            ("0.00", "PUSH"),
            ("-0.25", "HALF_LOST"),
            ("-0.5", "LOST"),
            ("-2", "LOST"),
        ],
    )
    def test_partition(self, margin, status):
        assert apply_ladder(D(margin), D("100"), D("2.0")).status == status

    def test_profits(self):
        stake, price = D("100"), D("1.9")
        assert apply_ladder(D("1"), stake, price).profit == D("90")
        assert apply_ladder(D("0.25"), stake, price).profit == D("45")
        assert apply_ladder(D("0"), stake, price).profit == 0
        assert apply_ladder(D("-0.25"), stake, price).profit == D("-50")
        assert apply_ladder(D("-1"), stake, price).profit == D("-100")

    def test_every_quarter_margin_has_exactly_one_outcome(self):
        seen = {}
        for quarters in range(-20, 21):
            margin = D(quarters) * D("0.25")
            seen[margin] = apply_ladder(margin, D("10"), D("2")).status
        assert {m for m, s in seen.items() if s == "WON"} == {m for m in seen if m > D("0.25")}
        assert [m for m, s in seen.items() if s == "HALF_WON"] == [D("0.25")]
        assert [m for m, s in seen.items() if s == "PUSH"] == [D("0")]
        assert [m for m, s in seen.items() if s == "HALF_LOST"] == [D("-0.25")]
        assert {m for m, s in seen.items() if s == "LOST"} == {m for m in seen if m < D("-0.25")}


class TestMargin:
    def test_over_under_mirror(self):
        placed, final = _score("1-1"), _score("3-1")
        over = settlement_margin("OVER", D("1.5"), placed, final)
        under = settlement_margin("UNDER", D("1.5"), placed, final)
        assert over == D("0.5")
        assert under == -over

    def test_only_goals_after_placement_count(self):
        assert settlement_margin("OVER", D("0.5"), _score("2-2"), _score("2-2")) == D("-0.5")

    def test_home_away_signed_toward_side(self):
        placed, final = _score("0-0"), _score("1-0")
        assert settlement_margin("HOME", D("-0.5"), placed, final) == D("0.5")
        assert settlement_margin("AWAY", D("0.5"), placed, final) == D("-0.5")

    def test_home_quarter_line(self):
        assert settlement_margin("HOME", D("-0.25"), _score("1-1"), _score("1-1")) == D("-0.25")
        assert settlement_margin("AWAY", D("0.25"), _score("1-1"), _score("1-1")) == D("0.25")


class TestScenarios:
    def test_home_win_scenario(self):
        result = settle(_wager("HOME", "-0.5", "1.9", "100", "1-0"), _score("2-0"))
        assert result.status == "WON"
        assert result.profit == D("90")

    def test_over_loss_scenario(self):
        result = settle(_wager("OVER", "2.5", "2.0", "50", "1-1"), _score("2-1"))
        assert result.status == "LOST"
        assert result.profit == D("-50")

    def test_under_half_win_scenario(self):
        result = settle(_wager("UNDER", "1.25", "1.8", "40", "0-0"), _score("1-0"))
        assert result.status == "HALF_WON"
        assert result.profit == D("16")

    def test_push_on_whole_line(self):
        result = settle(_wager("AWAY", "0", "1.95", "20", "0-0"), _score("1-1"))
        assert result.status == "PUSH"
        assert result.profit == 0

    def test_half_lost_on_quarter_line(self):
        result = settle(_wager("OVER", "1.25", "1.9", "40", "0-0"), _score("1-0"))
        assert result.status == "HALF_LOST"
        assert result.profit == D("-20")

    def test_settle_does_not_mutate_wager(self):
        wager = _wager("HOME", "-0.5", "1.9", "100", "1-0")
        before = wager.model_copy(deep=True)
        settle(wager, _score("2-0"))
        assert wager == before
