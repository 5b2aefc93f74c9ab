"""Shared test fixtures."""

from __future__ import annotations

import json

import httpx
import pytest

from livewager_core.config.schema import AppConfig
from livewager_core.storage import MemoryStore


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class Upstream:
    """Scripted httpx.MockTransport handler that records every request."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def config():
    return AppConfig(provider={"credential": "tok", "demo_delay_s": 0})


@pytest.fixture
def inplay_payload():
    """Live listing with one real match and one simulated-league match."""
    return {
        "success": 1,
        "results": [
            {
                "id": "9001",
                "league": {"name": "Premier League"},
                "home": {"name": "Arsenal"},
                "away": {"name": "Chelsea"},
                "ss": "1-0",
                "time": "1700000000",
                "timer": {"tm": 57},
                "stats": {
                    "attacks": ["60", "48"],
                    "dangerous_attacks": ["40", "22"],
                    "on_target": ["5", "2"],
                    "off_target": ["4", "3"],
                    "corners": ["6", "1"],
                    "yellowcards": ["1", "2"],
                    "redcards": ["0", "0"],
                },
            },
            {
                "id": "9002",
                "league": {"name": "Esoccer Battle - 8 mins play"},
                "home": {"name": "A (pl1)"},
                "away": {"name": "B (pl2)"},
                "ss": "3-3",
                "timer": {"tm": 6},
            },
        ],
    }


@pytest.fixture
def odds_payload():
    return {
        "success": 1,
        "results": {
            "odds": {
                "1_3": [
                    {"time_str": "57", "handicap": "2.5", "over_od": "1.95", "under_od": "1.85"},
                    {"time_str": "50", "handicap": "2.25", "over_od": "1.80", "under_od": "2.00"},
                    {"handicap": "2.0", "over_od": "1.5", "under_od": "2.5"},
                ],
                "1_2": [
                    {"time_str": "57", "handicap": "-0.5", "home_od": "1.90", "away_od": "1.90"},
                ],
            }
        },
    }


@pytest.fixture
def make_upstream():
    """``make_upstream(resp, ...)`` → an Upstream; the last response repeats."""
    return Upstream


@pytest.fixture
def respond():
    """``respond(payload, status_code=200)`` → a JSON httpx.Response."""
    return json_response
