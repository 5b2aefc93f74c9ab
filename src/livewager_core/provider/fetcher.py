"""RateLimitedFetcher — gated GETs with 429 backoff and failure classification.

Every attempt, retries included, passes through the shared RateGate first.
A 429 answer is retried up to ``max_retries`` times with a doubling delay
starting at ``backoff_base_s``; a 403 fails immediately. Transport failures
are classified as NetworkError, with a hint pointing at the proxy when one
is configured.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from livewager_core.errors import (
    FetchTimeoutError,
    ForbiddenError,
    InvalidPayloadError,
    NetworkError,
    RateLimitedError,
)
from livewager_core.provider.gate import RateGate

log = structlog.get_logger("fetcher")


class RateLimitedFetcher:
    """Async fetcher for one upstream, optionally routed through an edge proxy."""

    def __init__(
        self,
        gate: RateGate,
        *,
        proxy_url: str | None = None,
        max_retries: int = 3,
        backoff_base_s: float = 2.0,
        timeout_s: float = 15.0,
        http: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.gate = gate
        self.proxy_url = proxy_url
        self.max_retries = max_retries
        self.backoff_base_s = backoff_base_s
        self.timeout_s = timeout_s
        self._http = http
        self._sleep = sleep

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout_s)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    def _outbound(self, target: httpx.URL) -> tuple[str, dict[str, str] | None]:
        """Return (url, params) actually requested for *target*."""
        if self.proxy_url:
            return self.proxy_url, {"target": str(target)}
        return str(target), None

    async def fetch(self, target: str | httpx.URL) -> bytes | None:
        """GET *target* and return the raw body.

        Returns ``None`` for an empty body (no data). Raises a FetchError
        subclass for every failure.
        """
        target = httpx.URL(str(target))
        url, params = self._outbound(target)
        http = await self._get_http()
        hint = "proxy" if self.proxy_url else "network"
        retries = 0

        while True:
            await self.gate.acquire()
            try:
                resp = await http.get(url, params=params, timeout=self.timeout_s)
            except httpx.TimeoutException as exc:
                log.warning("fetch_timeout", endpoint=target.path, error=str(exc))
                raise FetchTimeoutError(f"request to {target.path} timed out") from exc
            except httpx.TransportError as exc:
                log.warning("fetch_transport_error", endpoint=target.path, hint=hint, error=str(exc))
                if self.proxy_url:
                    msg = f"could not reach proxy {self.proxy_url}; check it is deployed and forwards 'target'"
                else:
                    msg = f"network failure reaching {target.host}: {exc}"
                raise NetworkError(msg, hint=hint) from exc

            cache_status = resp.headers.get("X-Proxy-Cache")
            if resp.status_code == 403:
                log.warning("fetch_forbidden", endpoint=target.path)
                raise ForbiddenError("access denied (403); check the credential and proxy configuration")

            if resp.status_code == 429:
                if retries < self.max_retries:
                    delay = self.backoff_base_s * (2 ** retries)
                    retries += 1
                    log.warning(
                        "fetch_rate_limited",
                        endpoint=target.path,
                        retry_in_s=delay,
                        attempt=retries,
                        max_retries=self.max_retries,
                    )
                    await self._sleep(delay)
                    continue
                log.error("fetch_rate_limit_exhausted", endpoint=target.path, retries=retries)
                raise RateLimitedError(f"rate limited after {retries} retries; wait before retrying")

            if resp.is_error:
                raise NetworkError(
                    f"upstream answered {resp.status_code} {resp.reason_phrase}",
                    hint=hint,
                    status_code=resp.status_code,
                )

            body = resp.content
            log.debug("fetch_ok", endpoint=target.path, bytes=len(body), proxy_cache=cache_status)
            if not body.strip():
                log.warning("fetch_empty_body", endpoint=target.path)
                return None
            decode_payload(body)
            return body


def decode_payload(body: bytes | None) -> Any | None:
    """Decode a JSON body. ``None``/blank → ``None``; malformed → InvalidPayloadError."""
    if body is None or not body.strip():
        return None
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidPayloadError(f"response is not valid JSON ({len(body)} bytes)") from exc
