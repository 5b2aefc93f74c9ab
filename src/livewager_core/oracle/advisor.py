"""GoalAdvisor — optional LLM estimate of a goal in the next five minutes.

Purely additive: every failure (disabled, no key, timeout, transport error,
malformed or out-of-range answer) yields ``None`` and a log line, never an
exception.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from livewager_core.config.schema import OracleConfig
from livewager_core.models import GoalPrediction

log = structlog.get_logger("oracle")

CompleteFn = Callable[[str, str], Awaitable[str]]

SYSTEM_PROMPT = (
    "You are a football match analyst with deep knowledge of in-play dynamics and betting markets."
    " From live statistics, the current score, the latest odds and the derived indicators,"
    " estimate the probability that a goal is scored in the NEXT 5 MINUTES."
    " Reply with strict JSON only: {\"goal_probability\": int 0-100,"
    " \"confidence_level\": \"low\"|\"medium\"|\"high\"|\"very_high\", \"reasoning\": short text}."
)

_CONFIDENCE_ALIASES = {
    "low": "low",
    "medium": "medium",
    "high": "high",
    "very_high": "very_high",
    "very high": "very_high",
}


def build_prompt(features: dict[str, Any]) -> str:
    return (
        "Indicators cover the last 5 match minutes: api_momentum is the change in combined"
        " attack-pressure score, shot_cluster the shots taken, pressure the Over price movement x10."
        f"\nFeatures: {json.dumps(features, sort_keys=True)}"
    )


def parse_prediction(text: str | None) -> GoalPrediction | None:
    """Validate a raw model answer. ``None`` when it is not usable."""
    if not text or not text.strip():
        return None
    body = text.strip()
    if body.startswith("```"):
        body = body.strip("`").removeprefix("json").strip()
    try:
        data = json.loads(body)
    except ValueError:
        log.warning("oracle_malformed_json", chars=len(body))
        return None
    if not isinstance(data, dict):
        return None
    confidence = _CONFIDENCE_ALIASES.get(str(data.get("confidence_level", "")).strip().lower())
    try:
        return GoalPrediction(
            probability=data.get("goal_probability"),
            confidence=confidence,
            reasoning=str(data.get("reasoning") or ""),
        )
    except PydanticValidationError:
        log.warning("oracle_invalid_prediction", keys=sorted(data))
        return None


class GoalAdvisor:
    """Calls a chat model with a feature payload; ``complete`` is injectable."""

    def __init__(self, config: OracleConfig, complete: CompleteFn | None = None) -> None:
        self.config = config
        self._complete = complete

    def _openai_complete(self) -> CompleteFn | None:
        if not self.config.api_key:
            log.info("oracle_no_api_key")
            return None
        try:
            from openai import AsyncOpenAI
        except ImportError:
            log.warning("oracle_openai_missing", hint="pip install livewager-core[oracle]")
            return None

        client = AsyncOpenAI(api_key=self.config.api_key)
        model = self.config.model

        async def complete(system: str, prompt: str) -> str:
            resp = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.5,
            )
            return resp.choices[0].message.content or ""

        self._complete = complete
        return complete

    async def predict(self, features: dict[str, Any]) -> GoalPrediction | None:
        if not self.config.enabled:
            return None
        complete = self._complete or self._openai_complete()
        if complete is None:
            return None

        try:
            text = await asyncio.wait_for(
                complete(SYSTEM_PROMPT, build_prompt(features)),
                timeout=self.config.timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("oracle_timeout", timeout_s=self.config.timeout_s)
            return None
        except Exception as exc:
            log.warning("oracle_failed", error=str(exc), error_type=type(exc).__name__)
            return None

        prediction = parse_prediction(text)
        if prediction is not None:
            log.info(
                "oracle_prediction",
                match_id=features.get("match_id"),
                probability=prediction.probability,
                confidence=prediction.confidence,
            )
        return prediction
