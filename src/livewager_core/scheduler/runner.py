"""RefreshScheduler — periodic per-match refresh of live stats and odds.

Each tracked match owns a timer task that fires every ``interval_s``. A fire
starts one refresh cycle (event detail + odds → TimeSeriesStore) in its own
task; if the previous cycle for that match is still running the fire is
dropped, never queued. Cycle failures are recorded on the match status and
logged, and the timer keeps going.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from livewager_core.config.loader import load_config
from livewager_core.config.schema import AppConfig
from livewager_core.errors import FetchError, ProviderError
from livewager_core.logging.setup import match_context, setup_logging
from livewager_core.models import MatchSnapshot
from livewager_core.provider.client import ProviderClient
from livewager_core.storage.sql import SqlKeyValueStore
from livewager_core.timeseries.store import TimeSeriesStore

log = structlog.get_logger("scheduler")


@dataclass(frozen=True)
class RefreshError:
    kind: str
    message: str
    at: datetime


@dataclass
class RefreshStatus:
    """Per-match refresh state, visible to consumers."""

    match_id: str
    interval_s: float
    in_flight: bool = False
    cycles: int = 0
    skipped: int = 0
    last_refresh: datetime | None = None
    last_error: RefreshError | None = None
    last_snapshot: MatchSnapshot | None = None


@dataclass
class _Tracked:
    status: RefreshStatus
    timer: asyncio.Task | None = None


class RefreshScheduler:
    """Drives ProviderClient → TimeSeriesStore on a fixed cadence per match.

    ``start`` and ``stop`` must be called from inside the running event loop.
    """

    def __init__(
        self,
        client: ProviderClient,
        series: TimeSeriesStore,
        credential: str | None,
        interval_s: float = 45.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._client = client
        self._series = series
        self._credential = credential
        self.interval_s = interval_s
        self._sleep = sleep
        self._clock = clock
        self._tracked: dict[str, _Tracked] = {}
        # Outlives stop(): a restarted match must not overlap its previous cycle.
        self._cycles: dict[str, asyncio.Task] = {}

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self, match_id: str, interval_s: float | None = None) -> RefreshStatus:
        """Run one cycle now and arm the repeating timer.

        Starting a match that is already tracked is a no-op. If a cycle from
        before a stop is still running, the immediate fire is skipped.
        """
        tracked = self._tracked.get(match_id)
        if tracked is not None:
            log.warning("refresh_already_tracked", match_id=match_id)
            return tracked.status

        interval = interval_s if interval_s is not None else self.interval_s
        if interval <= 0:
            raise ValueError(f"interval_s must be positive, got {interval}")
        tracked = _Tracked(status=RefreshStatus(
            match_id=match_id, interval_s=interval, in_flight=match_id in self._cycles,
        ))
        self._tracked[match_id] = tracked
        self._fire(tracked)
        tracked.timer = asyncio.create_task(self._timer(tracked), name=f"refresh-timer-{match_id}")
        log.info("refresh_started", match_id=match_id, interval_s=interval)
        return tracked.status

    def stop(self, match_id: str) -> bool:
        """Cancel the timer for a match. Idempotent.

        An in-flight cycle is left to finish. Returns False if the match
        was not tracked.
        """
        tracked = self._tracked.pop(match_id, None)
        if tracked is None:
            return False
        if tracked.timer is not None:
            tracked.timer.cancel()
        log.info("refresh_stopped", match_id=match_id, in_flight=tracked.status.in_flight)
        return True

    def stop_all(self) -> None:
        for match_id in list(self._tracked):
            self.stop(match_id)

    def status(self, match_id: str) -> RefreshStatus | None:
        tracked = self._tracked.get(match_id)
        return tracked.status if tracked else None

    def tracked(self) -> list[str]:
        return sorted(self._tracked)

    async def wait_idle(self, match_id: str) -> None:
        """Wait for the in-flight cycle of *match_id*, if any."""
        cycle = self._cycles.get(match_id)
        if cycle is not None:
            await asyncio.shield(cycle)

    # ── Timer / cycles ────────────────────────────────────────

    async def _timer(self, tracked: _Tracked) -> None:
        while True:
            await self._sleep(tracked.status.interval_s)
            self._fire(tracked)

    def _fire(self, tracked: _Tracked) -> None:
        status = tracked.status
        if status.match_id in self._cycles:
            status.skipped += 1
            log.info("refresh_skipped_busy", match_id=status.match_id, skipped=status.skipped)
            return
        status.in_flight = True
        self._cycles[status.match_id] = asyncio.create_task(
            self._run_cycle(status), name=f"refresh-cycle-{status.match_id}"
        )

    async def _run_cycle(self, status: RefreshStatus) -> None:
        match_id = status.match_id
        with match_context(match_id):
            try:
                await self._refresh(status)
                status.last_refresh = self._clock()
                status.last_error = None
            except (FetchError, ProviderError) as exc:
                status.last_error = RefreshError(kind=exc.kind, message=str(exc), at=self._clock())
                log.warning("refresh_failed", kind=exc.kind, error=str(exc))
            except Exception as exc:
                status.last_error = RefreshError(kind="unexpected", message=str(exc), at=self._clock())
                log.exception("refresh_cycle_error")
            finally:
                status.cycles += 1
                status.in_flight = False
                self._cycles.pop(match_id, None)
                current = self._tracked.get(match_id)
                if current is not None:
                    current.status.in_flight = False

    async def _refresh(self, status: RefreshStatus) -> None:
        match_id = status.match_id
        snapshot = await self._client.get_event_detail(self._credential, match_id)
        if snapshot is None:
            log.info("refresh_match_absent")
        else:
            status.last_snapshot = snapshot
            if snapshot.minute > 0:
                self._series.record_stats(match_id, snapshot.minute, snapshot.stats)

        odds = await self._client.get_event_odds(self._credential, match_id)
        recorded = self._series.record_market_set(match_id, odds) if odds is not None else 0
        log.info(
            "refresh_completed",
            minute=snapshot.minute if snapshot else None,
            score=snapshot.score_string if snapshot else None,
            quotes=recorded,
        )


# ── CLI ───────────────────────────────────────────────────────


async def run_loop(config: AppConfig, match_ids: list[str]) -> None:
    """Track *match_ids* until cancelled."""
    store = SqlKeyValueStore.from_url(config.database.url)
    series = TimeSeriesStore(store)
    client = ProviderClient.from_config(config)
    scheduler = RefreshScheduler(
        client,
        series,
        credential=config.provider.credential,
        interval_s=config.scheduler.interval_s,
    )
    for match_id in match_ids:
        scheduler.start(match_id)

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop_all()
        await client.close()


def main(match_ids: list[str], config_path: str | None = None) -> None:
    """Entry point — load config, set up logging, run the async loop."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    try:
        asyncio.run(run_loop(config, match_ids))
    except KeyboardInterrupt:
        log.info("scheduler_interrupted")
