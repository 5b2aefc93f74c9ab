"""Tests for the advisory goal oracle."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal

from livewager_core.config.schema import OracleConfig
from livewager_core.models import MatchSnapshot, MatchStats, OddsQuote, Score, StatPair
from livewager_core.oracle import GoalAdvisor, build_features, parse_prediction
from livewager_core.timeseries import TimeSeriesStore

ENABLED = OracleConfig(enabled=True, api_key="sk-test", timeout_s=0.5)


def _stats(on_home: int) -> MatchStats:
    return MatchStats(on_target=StatPair(home=on_home, away=1), corners=StatPair(home=2, away=0))


def _snapshot() -> MatchSnapshot:
    return MatchSnapshot(
        id="m1", league_name="L", home_name="H", away_name="A",
        score=Score(home=1, away=1), minute=62, stats=_stats(4),
    )


def _answer(payload: dict):
    async def complete(system: str, prompt: str) -> str:
        return json.dumps(payload)

    return complete


class TestFeatures:
    def test_payload(self):
        series = TimeSeriesStore()
        series.record_stats("m1", 55, _stats(1))
        series.record_stats("m1", 62, _stats(4))
        for minute, price in ((55, "2.00"), (62, "1.80")):
            series.record_odds("m1", "over_under", OddsQuote(
                family="over_under", minute=minute, handicap_line=Decimal("2.5"),
                over_price=Decimal(price), under_price=Decimal("2.0"),
            ))

        features = build_features(_snapshot(), series)

        assert features["minute"] == 62
        assert features["score"] == {"home": 1, "away": 1}
        assert features["stats"]["on_target"] == {"home": 4, "away": 1}
        # 3 extra shots on target: 3 * (1 + 3)
        assert features["api_momentum"] == 12.0
        assert features["shot_cluster"] == 3.0
        assert features["pressure"] == 2.0
        assert features["latest_over_under"]["over_price"] == 1.8
        assert features["latest_handicap"] is None
        json.dumps(features)

    def test_empty_history(self):
        features = build_features(_snapshot(), TimeSeriesStore())
        assert features["api_momentum"] == 0.0
        assert features["pressure"] == 0.0


class TestParsePrediction:
    def test_valid(self):
        p = parse_prediction('{"goal_probability": 35, "confidence_level": "High", "reasoning": "pressure"}')
        assert (p.probability, p.confidence, p.reasoning) == (35, "high", "pressure")

    def test_fenced_json_and_spaced_level(self):
        p = parse_prediction('```json\n{"goal_probability": 10, "confidence_level": "very high"}\n```')
        assert p.confidence == "very_high"
        assert p.reasoning == ""

    def test_unusable_answers(self):
        assert parse_prediction(None) is None
        assert parse_prediction("") is None
        assert parse_prediction("the probability is 40%") is None
        assert parse_prediction("[1, 2]") is None
        assert parse_prediction('{"goal_probability": 140, "confidence_level": "low"}') is None
        assert parse_prediction('{"goal_probability": 40, "confidence_level": "certain"}') is None
        assert parse_prediction('{"confidence_level": "low"}') is None


class TestGoalAdvisor:
    def test_prediction(self):
        advisor = GoalAdvisor(ENABLED, complete=_answer({"goal_probability": 42, "confidence_level": "medium"}))
        prediction = asyncio.run(advisor.predict({"match_id": "m1"}))
        assert prediction.probability == 42
        assert prediction.confidence == "medium"

    def test_prompt_carries_features(self):
        seen = {}

        async def complete(system: str, prompt: str) -> str:
            seen["prompt"] = prompt
            return '{"goal_probability": 1, "confidence_level": "low"}'

        asyncio.run(GoalAdvisor(ENABLED, complete=complete).predict({"match_id": "m1", "pressure": 2.5}))
        assert '"pressure": 2.5' in seen["prompt"]

    def test_disabled_returns_none_without_calling(self):
        called = []

        async def complete(system, prompt):
            called.append(1)
            return "{}"

        advisor = GoalAdvisor(OracleConfig(enabled=False), complete=complete)
        assert asyncio.run(advisor.predict({})) is None
        assert called == []

    def test_missing_key_returns_none(self):
        advisor = GoalAdvisor(OracleConfig(enabled=True, api_key=None))
        assert asyncio.run(advisor.predict({})) is None

    def test_timeout_returns_none(self):
        async def slow(system, prompt):
            await asyncio.sleep(5)
            return "{}"

        advisor = GoalAdvisor(OracleConfig(enabled=True, api_key="k", timeout_s=0.01), complete=slow)
        assert asyncio.run(advisor.predict({})) is None

    def test_transport_failure_returns_none(self):
        async def broken(system, prompt):
            raise ConnectionError("unreachable")

        assert asyncio.run(GoalAdvisor(ENABLED, complete=broken).predict({})) is None

    def test_malformed_answer_returns_none(self):
        async def garbage(system, prompt):
            return "not json"

        assert asyncio.run(GoalAdvisor(ENABLED, complete=garbage).predict({})) is None
