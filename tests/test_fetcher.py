"""Tests for the rate gate and the rate-limited fetcher."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from livewager_core.errors import (
    FetchTimeoutError,
    ForbiddenError,
    InvalidPayloadError,
    NetworkError,
    RateLimitedError,
)
from livewager_core.provider import RateGate, RateLimitedFetcher, decode_payload

TARGET = "https://api.example.test/v3/events/inplay?sport_id=1&token=tok"


def _fetcher(clock, handler, **kwargs) -> RateLimitedFetcher:
    gate = RateGate(65.0, clock=clock, sleep=clock.sleep)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RateLimitedFetcher(gate, http=http, sleep=clock.sleep, **kwargs)


class TestRateGate:
    def test_first_acquire_does_not_wait(self, clock):
        gate = RateGate(65.0, clock=clock, sleep=clock.sleep)
        assert asyncio.run(gate.acquire()) == 0.0
        assert gate.last_start == 1000.0

    def test_waits_out_the_remaining_interval(self, clock):
        gate = RateGate(65.0, clock=clock, sleep=clock.sleep)

        async def run():
            await gate.acquire()
            clock.now += 20
            return await gate.acquire()

        assert asyncio.run(run()) == 45.0
        assert clock.sleeps == [45.0]

    def test_no_wait_after_interval_elapsed(self, clock):
        gate = RateGate(65.0, clock=clock, sleep=clock.sleep)

        async def run():
            await gate.acquire()
            clock.now += 100
            return await gate.acquire()

        assert asyncio.run(run()) == 0.0
        assert clock.sleeps == []


class TestSpacing:
    def test_n_concurrent_calls_start_at_least_interval_apart(self, clock):
        starts: list[float] = []

        def handler(request):
            starts.append(clock.now)
            return httpx.Response(200, content=b'{"success": 1}')

        fetcher = _fetcher(clock, handler)

        async def run():
            await asyncio.gather(*(fetcher.fetch(f"{TARGET}&n={i}") for i in range(4)))

        asyncio.run(run())
        assert len(starts) == 4
        assert starts[-1] - starts[0] >= 3 * 65.0
        assert all(b - a >= 65.0 for a, b in zip(starts, starts[1:]))


class TestRetries:
    def test_429_retried_with_doubling_backoff(self, clock, make_upstream):
        upstream = make_upstream(
            httpx.Response(429),
            httpx.Response(429),
            httpx.Response(200, content=b'{"success": 1}'),
        )
        fetcher = _fetcher(clock, upstream)

        body = asyncio.run(fetcher.fetch(TARGET))

        assert body == b'{"success": 1}'
        assert len(upstream.requests) == 3
        # backoff 2s, gate wait, backoff 4s, gate wait
        assert clock.sleeps == [2.0, 63.0, 4.0, 61.0]

    def test_429_exhausted_raises_rate_limited(self, clock, make_upstream):
        upstream = make_upstream(httpx.Response(429))
        fetcher = _fetcher(clock, upstream, max_retries=3)

        with pytest.raises(RateLimitedError):
            asyncio.run(fetcher.fetch(TARGET))
        assert len(upstream.requests) == 4

    def test_zero_retries(self, clock, make_upstream):
        upstream = make_upstream(httpx.Response(429))
        fetcher = _fetcher(clock, upstream, max_retries=0)

        with pytest.raises(RateLimitedError):
            asyncio.run(fetcher.fetch(TARGET))
        assert len(upstream.requests) == 1

    def test_403_fails_immediately(self, clock, make_upstream):
        upstream = make_upstream(httpx.Response(403))
        fetcher = _fetcher(clock, upstream)

        with pytest.raises(ForbiddenError) as exc_info:
            asyncio.run(fetcher.fetch(TARGET))
        assert len(upstream.requests) == 1
        assert exc_info.value.kind == "forbidden"


class TestFailureClassification:
    def test_transport_error_without_proxy(self, clock):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = _fetcher(clock, handler)
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(fetcher.fetch(TARGET))
        assert exc_info.value.hint == "network"

    def test_transport_error_through_proxy_hints_at_proxy(self, clock):
        def handler(request):
            raise httpx.ConnectError("name resolution failed", request=request)

        fetcher = _fetcher(clock, handler, proxy_url="https://edge.example.test/")
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(fetcher.fetch(TARGET))
        assert exc_info.value.hint == "proxy"
        assert "edge.example.test" in str(exc_info.value)

    def test_timeout(self, clock):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        fetcher = _fetcher(clock, handler)
        with pytest.raises(FetchTimeoutError):
            asyncio.run(fetcher.fetch(TARGET))

    def test_unexpected_status_is_network_error(self, clock, make_upstream):
        fetcher = _fetcher(clock, make_upstream(httpx.Response(503)))
        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(fetcher.fetch(TARGET))
        assert exc_info.value.status_code == 503

    def test_empty_body_is_no_data(self, clock, make_upstream):
        fetcher = _fetcher(clock, make_upstream(httpx.Response(200, content=b"")))
        assert asyncio.run(fetcher.fetch(TARGET)) is None

    def test_blank_body_is_no_data(self, clock, make_upstream):
        fetcher = _fetcher(clock, make_upstream(httpx.Response(200, content=b"  \n")))
        assert asyncio.run(fetcher.fetch(TARGET)) is None

    def test_malformed_body_is_invalid_payload(self, clock, make_upstream):
        fetcher = _fetcher(clock, make_upstream(httpx.Response(200, content=b"<html>oops")))
        with pytest.raises(InvalidPayloadError):
            asyncio.run(fetcher.fetch(TARGET))


class TestProxyRouting:
    def test_target_passed_as_query_parameter(self, clock, make_upstream):
        upstream = make_upstream(httpx.Response(200, content=b"{}"))
        fetcher = _fetcher(clock, upstream, proxy_url="https://edge.example.test/")

        asyncio.run(fetcher.fetch(TARGET))

        sent = upstream.requests[0]
        assert sent.url.host == "edge.example.test"
        assert sent.url.params["target"] == TARGET


class TestDecodePayload:
    def test_none_and_blank(self):
        assert decode_payload(None) is None
        assert decode_payload(b"   ") is None

    def test_valid_json(self):
        assert decode_payload(b'{"success": 1}') == {"success": 1}

    def test_invalid_json(self):
        with pytest.raises(InvalidPayloadError):
            decode_payload(b"{not json")
