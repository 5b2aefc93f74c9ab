"""Demo mode — canned upstream payloads served without network access."""

from __future__ import annotations

import copy
from typing import Any

DEMO_EVENTS: dict[str, Any] = {
    "success": 1,
    "results": [
        {
            "id": "1",
            "league": {"name": "Premier League - Demo"},
            "home": {"name": "Manchester United"},
            "away": {"name": "Liverpool"},
            "ss": "1-1",
            "time": "65",
            "timer": {"tm": 65, "ts": 0, "tt": "1", "ta": 0, "md": 0},
            "stats": {
                "attacks": ["60", "75"],
                "dangerous_attacks": ["35", "50"],
                "on_target": ["5", "8"],
                "off_target": ["4", "6"],
                "corners": ["3", "5"],
                "yellowcards": ["1", "2"],
                "redcards": ["0", "0"],
            },
        },
        {
            "id": "2",
            "league": {"name": "La Liga - Demo"},
            "home": {"name": "Real Madrid"},
            "away": {"name": "Barcelona"},
            "ss": "2-0",
            "time": "78",
            "timer": {"tm": 78, "ts": 0, "tt": "1", "ta": 0, "md": 0},
            "stats": {
                "attacks": ["80", "50"],
                "dangerous_attacks": ["60", "25"],
                "on_target": ["10", "2"],
                "off_target": ["7", "3"],
                "corners": ["8", "1"],
                "yellowcards": ["0", "3"],
                "redcards": ["0", "0"],
            },
        },
        {
            "id": "3",
            "league": {"name": "Esoccer Battle - 8 mins play"},
            "home": {"name": "Arsenal (Demo)"},
            "away": {"name": "Chelsea (Demo)"},
            "ss": "3-2",
            "time": "6",
        },
    ],
}

DEMO_ODDS: dict[str, Any] = {
    "success": 1,
    "results": {
        "odds": {
            "1_2": [
                {"id": "10", "home_od": "2.05", "away_od": "1.80", "handicap": "-0.25", "time_str": "60", "add_time": "0"},
                {"id": "11", "home_od": "1.95", "away_od": "1.90", "handicap": "0.0,-0.5", "time_str": "65", "add_time": "0"},
            ],
            "1_3": [
                {"id": "1", "over_od": "1.85", "under_od": "1.95", "handicap": "2.5", "time_str": "0", "add_time": "0"},
                {"id": "2", "over_od": "2.10", "under_od": "1.72", "handicap": "3.25", "time_str": "60", "add_time": "0"},
                {"id": "3", "over_od": "1.90", "under_od": "1.90", "handicap": "3.0", "time_str": "65", "add_time": "0"},
            ],
        },
    },
}


def demo_events() -> dict[str, Any]:
    """A fresh copy of the canned live-events payload."""
    return copy.deepcopy(DEMO_EVENTS)


def demo_odds() -> dict[str, Any]:
    return copy.deepcopy(DEMO_ODDS)
