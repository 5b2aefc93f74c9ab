"""RateGate — process-wide minimum spacing between outbound call starts."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

log = structlog.get_logger("rate_gate")


class RateGate:
    """Single global gate: call starts are at least ``min_interval_s`` apart.

    The clock and sleep function are injectable so tests can drive the gate
    with a fake clock and assert exact waits.
    """

    def __init__(
        self,
        min_interval_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_start: float | None = None

    @property
    def last_start(self) -> float | None:
        return self._last_start

    async def acquire(self) -> float:
        """Wait for the next start slot and claim it. Returns seconds waited."""
        async with self._lock:
            waited = 0.0
            if self._last_start is not None:
                remaining = self._last_start + self.min_interval_s - self._clock()
                if remaining > 0:
                    log.info("rate_gate_wait", wait_s=round(remaining, 3))
                    await self._sleep(remaining)
                    waited = remaining
            self._last_start = self._clock()
            return waited
