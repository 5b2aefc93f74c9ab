"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ProviderConfig(BaseModel):
    inplay_url: str = "https://api.b365api.com/v3/events/inplay"
    odds_url: str = "https://api.b365api.com/v2/event/odds"
    sport_id: int = 1
    proxy_url: str | None = None
    credential: str | None = None
    demo_credential: str = "DEMO_MODE"
    excluded_leagues: list[str] = Field(default_factory=lambda: ["esoccer"])
    demo_delay_s: float = 0.5


class FetcherConfig(BaseModel):
    min_interval_s: float = 65.0
    max_retries: int = Field(default=3, ge=0)
    backoff_base_s: float = 2.0
    timeout_s: float = 15.0


class CacheConfig(BaseModel):
    ttl_s: float = 60.0


class SchedulerConfig(BaseModel):
    interval_s: float = Field(default=45.0, gt=0)


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///livewager.db"


class OracleConfig(BaseModel):
    enabled: bool = False
    api_key: str | None = None
    model: str = "gpt-4o-mini"
    timeout_s: float = 20.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @model_validator(mode="after")
    def _spacing_exceeds_cache_ttl(self) -> "AppConfig":
        # Spacing at or below the proxy TTL only re-reads the proxy cache.
        if self.fetcher.min_interval_s <= self.cache.ttl_s:
            raise ValueError(
                f"fetcher.min_interval_s ({self.fetcher.min_interval_s}) must be greater "
                f"than cache.ttl_s ({self.cache.ttl_s})"
            )
        return self
