"""FastAPI application — edge cache proxy, match history and wager ledger API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from livewager_core.config.schema import AppConfig
from livewager_core.errors import (
    AlreadySettledError,
    FetchError,
    NotFoundError,
    ProviderError,
    ValidationError,
    WagerNotFoundError,
)
from livewager_core.ledger import WagerLedger
from livewager_core.models import MarketFamily, Wager
from livewager_core.oracle import GoalAdvisor, build_features
from livewager_core.provider import EdgeCache, ProviderClient, cache_key
from livewager_core.scheduler import RefreshScheduler, RefreshStatus
from livewager_core.storage import KeyValueStore, SqlKeyValueStore
from livewager_core.timeseries import TimeSeriesStore, api_score

logger = structlog.get_logger("api")

PROXY_CACHE_HEADER = "X-Proxy-Cache"


@dataclass
class Services:
    """Everything the routes need, shared for the lifetime of the app."""

    config: AppConfig
    client: ProviderClient
    series: TimeSeriesStore
    ledger: WagerLedger
    scheduler: RefreshScheduler
    advisor: GoalAdvisor
    proxy_cache: EdgeCache
    proxy_http: httpx.AsyncClient

    @classmethod
    def build(
        cls,
        config: AppConfig,
        store: KeyValueStore | None = None,
        client: ProviderClient | None = None,
        advisor: GoalAdvisor | None = None,
        proxy_http: httpx.AsyncClient | None = None,
    ) -> "Services":
        store = store if store is not None else SqlKeyValueStore.from_url(config.database.url)
        client = client or ProviderClient.from_config(config)
        series = TimeSeriesStore(store)
        return cls(
            config=config,
            client=client,
            series=series,
            ledger=WagerLedger(store),
            scheduler=RefreshScheduler(
                client,
                series,
                credential=config.provider.credential,
                interval_s=config.scheduler.interval_s,
            ),
            advisor=advisor or GoalAdvisor(config.oracle),
            proxy_cache=EdgeCache(ttl_seconds=config.cache.ttl_s),
            proxy_http=proxy_http or httpx.AsyncClient(timeout=config.fetcher.timeout_s),
        )

    async def aclose(self) -> None:
        self.scheduler.stop_all()
        await self.client.close()
        await self.proxy_http.aclose()


def get_services(request: Request) -> Services:
    return request.app.state.services


# ═══════════════════════════════════════════════════════════════
# Request / response shapes
# ═══════════════════════════════════════════════════════════════


class PlaceWagerRequest(BaseModel):
    market_type: str
    handicap_line: str | float
    price: str | float
    stake: str | float
    score_at_placement: str
    notes: str = ""


class PlaceFromLatestRequest(BaseModel):
    market_type: str
    stake: str | float
    score_at_placement: str
    notes: str = ""


class SettleWagerRequest(BaseModel):
    final_score: str


class TrackRequest(BaseModel):
    interval_s: Optional[float] = Field(default=None, gt=0)


def _wager_json(wager: Wager) -> dict:
    return wager.model_dump(mode="json")


def _status_json(status: RefreshStatus) -> dict:
    return {
        "match_id": status.match_id,
        "interval_s": status.interval_s,
        "in_flight": status.in_flight,
        "cycles": status.cycles,
        "skipped": status.skipped,
        "last_refresh": status.last_refresh.isoformat() if status.last_refresh else None,
        "last_error": (
            {**asdict(status.last_error), "at": status.last_error.at.isoformat()}
            if status.last_error
            else None
        ),
        "minute": status.last_snapshot.minute if status.last_snapshot else None,
        "score": status.last_snapshot.score_string if status.last_snapshot else None,
    }


_VALIDATION_STATUS = {
    WagerNotFoundError: 404,
    AlreadySettledError: 409,
}


# ═══════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════


def create_app(config: AppConfig | None = None, services: Services | None = None) -> FastAPI:
    """Build the API. Pass ``services`` to inject collaborators (tests)."""
    config = config or (services.config if services else AppConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("api_started", database=config.database.url.split("://")[0])
        yield
        await app.state.services.aclose()
        logger.info("api_stopped")

    app = FastAPI(
        title="Live Wager API",
        description="Live match history, edge cache proxy and wager settlement",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services or Services.build(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[PROXY_CACHE_HEADER],
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        status_code = next(
            (code for cls, code in _VALIDATION_STATUS.items() if isinstance(exc, cls)), 400,
        )
        return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": str(exc)})

    @app.exception_handler(FetchError)
    @app.exception_handler(ProviderError)
    async def _upstream_error(request: Request, exc: FetchError | ProviderError) -> JSONResponse:
        if isinstance(exc, NotFoundError):
            return JSONResponse(status_code=404, content={"error": exc.kind, "detail": str(exc)})
        logger.warning("upstream_error", path=request.url.path, kind=exc.kind, error=str(exc))
        return JSONResponse(status_code=502, content={"error": exc.kind, "detail": str(exc)})

    _register_proxy(app)
    _register_api(app)
    return app


# ═══════════════════════════════════════════════════════════════
# Edge cache proxy
# ═══════════════════════════════════════════════════════════════


def _register_proxy(app: FastAPI) -> None:
    @app.get("/proxy")
    async def proxy(
        target: Optional[str] = Query(default=None),
        svc: Services = Depends(get_services),
    ) -> Response:
        """Forward ``target`` verbatim, caching 2xx bodies for the cache TTL."""
        if not target:
            return JSONResponse(status_code=400, content={"error": "Missing 'target' URL parameter"})
        try:
            url = httpx.URL(target)
        except httpx.InvalidURL:
            return JSONResponse(status_code=400, content={"error": "Invalid 'target' URL"})
        if url.scheme not in ("http", "https"):
            return JSONResponse(status_code=400, content={"error": "Invalid 'target' URL"})

        key = cache_key(url)
        cached = svc.proxy_cache.get(key)
        if cached is not None:
            logger.debug("proxy_cache_hit", host=url.host, path=url.path)
            return Response(
                content=cached,
                media_type="application/json",
                headers={PROXY_CACHE_HEADER: "HIT"},
            )

        try:
            upstream = await svc.proxy_http.get(url)
        except httpx.HTTPError as exc:
            logger.warning("proxy_upstream_error", host=url.host, error=str(exc))
            return JSONResponse(
                status_code=502,
                content={"error": "Proxy error", "details": str(exc)},
            )

        if upstream.is_success:
            svc.proxy_cache.put(key, upstream.content)
        logger.info("proxy_cache_miss", host=url.host, path=url.path, status=upstream.status_code)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type", "application/json"),
            headers={PROXY_CACHE_HEADER: "MISS"},
        )


# ═══════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════


def _register_api(app: FastAPI) -> None:
    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/matches/{match_id}/history")
    async def match_history(match_id: str, svc: Services = Depends(get_services)):
        """Stats and odds history in ascending-minute order."""
        stats = [
            {
                "minute": minute,
                "stats": snap.model_dump(),
                "api_home": round(api_score(snap, 0), 1),
                "api_away": round(api_score(snap, 1), 1),
            }
            for minute, snap in svc.series.stats_history(match_id)
        ]
        families: tuple[MarketFamily, ...] = ("over_under", "handicap")
        return {
            "match_id": match_id,
            "stats": stats,
            **{
                family: [q.model_dump(mode="json") for q in svc.series.history(match_id, family)]
                for family in families
            },
        }

    # ── Wagers ────────────────────────────────────────────────

    @app.get("/api/matches/{match_id}/wagers")
    async def list_wagers(match_id: str, svc: Services = Depends(get_services)):
        return [_wager_json(w) for w in svc.ledger.wagers(match_id)]

    @app.post("/api/matches/{match_id}/wagers", status_code=201)
    async def place_wager(match_id: str, req: PlaceWagerRequest, svc: Services = Depends(get_services)):
        wager = svc.ledger.place(
            match_id,
            req.market_type,
            req.handicap_line,
            req.price,
            req.stake,
            req.score_at_placement,
            notes=req.notes,
        )
        return _wager_json(wager)

    @app.post("/api/matches/{match_id}/wagers/from-latest", status_code=201)
    async def place_wager_from_latest(
        match_id: str, req: PlaceFromLatestRequest, svc: Services = Depends(get_services),
    ):
        """Place at the latest recorded line and price of the wager's market."""
        wager = svc.ledger.place_from_latest(
            svc.series,
            match_id,
            req.market_type,
            req.stake,
            req.score_at_placement,
            notes=req.notes,
        )
        return _wager_json(wager)

    @app.post("/api/matches/{match_id}/wagers/{wager_id}/settle")
    async def settle_wager(
        match_id: str, wager_id: str, req: SettleWagerRequest, svc: Services = Depends(get_services),
    ):
        return _wager_json(svc.ledger.settle(wager_id, req.final_score, match_id=match_id))

    @app.delete("/api/matches/{match_id}/wagers/{wager_id}")
    async def delete_wager(match_id: str, wager_id: str, svc: Services = Depends(get_services)):
        if not svc.ledger.delete(wager_id, match_id=match_id):
            raise HTTPException(status_code=404, detail="Wager not found")
        return {"deleted": wager_id}

    @app.get("/api/matches/{match_id}/summary")
    async def wager_summary(match_id: str, svc: Services = Depends(get_services)):
        summary = svc.ledger.summary(match_id)
        return {
            "match_id": match_id,
            "wagers": summary.wagers,
            "pending": summary.pending,
            "total_staked": str(summary.total_staked),
            "pending_stake": str(summary.pending_stake),
            "total_profit": str(summary.settled_profit),
        }

    # ── Prediction ────────────────────────────────────────────

    @app.get("/api/matches/{match_id}/prediction")
    async def goal_prediction(match_id: str, svc: Services = Depends(get_services)):
        """Advisory goal probability; 204 when the oracle has no answer."""
        status = svc.scheduler.status(match_id)
        snapshot = status.last_snapshot if status else None
        if snapshot is None:
            snapshot = await svc.client.get_event_detail(svc.config.provider.credential, match_id)
        if snapshot is None:
            raise NotFoundError(f"match {match_id!r} is not live")
        prediction = await svc.advisor.predict(build_features(snapshot, svc.series))
        if prediction is None:
            return Response(status_code=204)
        return prediction.model_dump()

    # ── Tracking ──────────────────────────────────────────────

    @app.post("/api/matches/{match_id}/track", status_code=202)
    async def track_match(
        match_id: str,
        req: TrackRequest | None = None,
        svc: Services = Depends(get_services),
    ):
        status = svc.scheduler.start(match_id, interval_s=req.interval_s if req else None)
        return _status_json(status)

    @app.delete("/api/matches/{match_id}/track")
    async def untrack_match(match_id: str, svc: Services = Depends(get_services)):
        return {"match_id": match_id, "stopped": svc.scheduler.stop(match_id)}

    @app.get("/api/matches/{match_id}/status")
    async def match_status(match_id: str, svc: Services = Depends(get_services)):
        status = svc.scheduler.status(match_id)
        if status is None:
            raise HTTPException(status_code=404, detail="Match not tracked")
        return _status_json(status)
