"""ProviderClient — typed live-events and odds operations.

Each operation goes EdgeCache → (miss) RateLimitedFetcher → EdgeCache.put.
The demo credential bypasses both and serves canned payloads.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from livewager_core.config.schema import AppConfig, ProviderConfig
from livewager_core.models import MatchSnapshot, OddsMarketSet
from livewager_core.provider.cache import EdgeCache, cache_key
from livewager_core.provider.demo import demo_events, demo_odds
from livewager_core.provider.fetcher import RateLimitedFetcher, decode_payload
from livewager_core.provider.gate import RateGate
from livewager_core.provider.parsing import is_failure, parse_events, parse_odds

log = structlog.get_logger("provider")


class ProviderClient:
    """Async client for the live match and odds upstream."""

    def __init__(
        self,
        config: ProviderConfig,
        fetcher: RateLimitedFetcher,
        cache: EdgeCache,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.cache = cache
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: AppConfig, http: httpx.AsyncClient | None = None) -> "ProviderClient":
        """Wire a client with its own gate, fetcher and cache from config."""
        gate = RateGate(config.fetcher.min_interval_s)
        fetcher = RateLimitedFetcher(
            gate,
            proxy_url=config.provider.proxy_url,
            max_retries=config.fetcher.max_retries,
            backoff_base_s=config.fetcher.backoff_base_s,
            timeout_s=config.fetcher.timeout_s,
            http=http,
        )
        return cls(config.provider, fetcher, EdgeCache(ttl_seconds=config.cache.ttl_s))

    async def close(self) -> None:
        await self.fetcher.close()

    def is_demo(self, credential: str | None) -> bool:
        return credential == self.config.demo_credential

    # ── Transport composition ─────────────────────────────────

    async def _get_payload(self, url: str, params: dict[str, Any]) -> Any | None:
        target = httpx.URL(url, params=params)
        key = cache_key(target)
        body = self.cache.get(key)
        if body is not None:
            log.debug("cache_hit", endpoint=target.path)
            return decode_payload(body)

        log.debug("cache_miss", endpoint=target.path)
        body = await self.fetcher.fetch(target)
        payload = decode_payload(body)
        # Failure payloads are answered again by the upstream, never from cache.
        if payload is not None and not is_failure(payload):
            self.cache.put(key, body)
        return payload

    def _inplay_params(self, credential: str) -> dict[str, Any]:
        return {"sport_id": self.config.sport_id, "token": credential}

    # ── Operations ────────────────────────────────────────────

    async def list_live_events(self, credential: str | None) -> list[MatchSnapshot]:
        """Live matches, excluding leagues matching ``excluded_leagues``.

        Raises UpstreamRejectedError on an explicit failure flag and
        FetchError subclasses on transport failures.
        """
        if self.is_demo(credential):
            await self._sleep(self.config.demo_delay_s)
            return parse_events(demo_events(), self.config.excluded_leagues)
        if not credential:
            log.warning("no_credential")
            return []

        payload = await self._get_payload(self.config.inplay_url, self._inplay_params(credential))
        if payload is None:
            log.warning("live_events_empty")
            return []
        events = parse_events(payload, self.config.excluded_leagues)
        log.info("live_events_loaded", count=len(events))
        return events

    async def get_event_detail(self, credential: str | None, match_id: str) -> MatchSnapshot | None:
        """Look a match up in the live listing (the upstream has no detail endpoint)."""
        if not match_id:
            return None
        if self.is_demo(credential):
            await self._sleep(self.config.demo_delay_s * 0.4)
            events = parse_events(demo_events(), self.config.excluded_leagues)
        else:
            events = await self.list_live_events(credential)
        # Excluded leagues were already dropped by parse_events.
        return next((snap for snap in events if snap.id == match_id), None)

    async def get_event_odds(self, credential: str | None, match_id: str) -> OddsMarketSet | None:
        """Odds for a match, or ``None`` when the market is absent or suspended."""
        if self.is_demo(credential):
            await self._sleep(self.config.demo_delay_s * 0.2)
            return parse_odds(demo_odds())
        if not credential or not match_id:
            return None

        payload = await self._get_payload(
            self.config.odds_url, {"token": credential, "event_id": match_id},
        )
        odds = parse_odds(payload)
        if odds is None:
            log.info("odds_absent", match_id=match_id)
        return odds
