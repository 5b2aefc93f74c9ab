"""Upstream provider access — rate gate, edge cache, fetcher, typed client."""

from livewager_core.provider.cache import CacheEntry, EdgeCache, cache_key
from livewager_core.provider.client import ProviderClient
from livewager_core.provider.fetcher import RateLimitedFetcher, decode_payload
from livewager_core.provider.gate import RateGate

__all__ = [
    "CacheEntry",
    "EdgeCache",
    "ProviderClient",
    "RateGate",
    "RateLimitedFetcher",
    "cache_key",
    "decode_payload",
]
