"""Upstream market-data provider settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_choice, optional_env_var
from .http_resilience import (
    CacheConfig,
    CachePredicate,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from .storage import get_storage_config

DEXSCREENER_BASE_URL = "https://api.dexscreener.com"
BIRDEYE_BASE_URL = "https://public-api.birdeye.so"
MORALIS_BASE_URL = "https://solana-gateway.moralis.io"
SOLSCAN_BASE_URL = "https://pro-api.solscan.io"
TRUSTWALLET_ASSETS_URL = "https://raw.githubusercontent.com/trustwallet/assets/master"

# Response cache lifetimes per feed, in seconds.
DEXSCREENER_CACHE_TTL = 60.0
BIRDEYE_CACHE_TTL = 120.0
MORALIS_CACHE_TTL = 300.0
SOLSCAN_CACHE_TTL = 300.0


def _reports_success(payload: object) -> bool:
    """Keep ``"success": false`` answers out of the cache so they are retried next cycle."""

    return not (isinstance(payload, dict) and payload.get("success") is False)


def _response_cache(
    ttl_seconds: float, *, should_cache: CachePredicate | None = None
) -> CacheConfig | None:
    mode = get_storage_config().http_cache
    if mode == "off":
        return None
    return CacheConfig(backend=mode, default_ttl_seconds=ttl_seconds, should_cache=should_cache)


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Settings for one upstream feed. ``api_key`` is ``None`` for keyless feeds."""

    resilience: ResilienceConfig
    api_key: str | None = None
    search_queries: tuple[str, ...] = ()
    limit: int = 100


def get_dexscreener_config() -> ProviderConfig:
    queries = optional_env_var("DEXSCREENER_QUERIES")
    return ProviderConfig(
        resilience=ResilienceConfig(
            name="dexscreener",
            base_url=DEXSCREENER_BASE_URL,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=_response_cache(DEXSCREENER_CACHE_TTL),
        ),
        search_queries=(
            tuple(part.strip() for part in queries.split(",") if part.strip())
            if queries
            else ("solana",)
        ),
    )


def get_birdeye_config() -> ProviderConfig | None:
    api_key = optional_env_var("BIRDEYE_API_KEY")
    if api_key is None:
        return None
    return ProviderConfig(
        api_key=api_key,
        resilience=ResilienceConfig(
            name="birdeye",
            base_url=BIRDEYE_BASE_URL,
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
            cache=_response_cache(BIRDEYE_CACHE_TTL, should_cache=_reports_success),
            default_headers={"X-API-KEY": api_key, "x-chain": "solana"},
        ),
        limit=50,
    )


def get_moralis_config() -> ProviderConfig | None:
    api_key = optional_env_var("MORALIS_API_KEY")
    if api_key is None:
        return None
    return ProviderConfig(
        api_key=api_key,
        resilience=ResilienceConfig(
            name="moralis",
            base_url=MORALIS_BASE_URL,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=_response_cache(MORALIS_CACHE_TTL),
            default_headers={"X-API-Key": api_key, "accept": "application/json"},
        ),
    )


def get_solscan_config() -> ProviderConfig | None:
    api_key = optional_env_var("SOLSCAN_API_KEY")
    if api_key is None:
        return None
    return ProviderConfig(
        api_key=api_key,
        resilience=ResilienceConfig(
            name="solscan",
            base_url=SOLSCAN_BASE_URL,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=_response_cache(SOLSCAN_CACHE_TTL, should_cache=_reports_success),
            default_headers={"token": api_key},
        ),
    )


def get_logo_lookup_config() -> ResilienceConfig | None:
    """TrustWallet asset lookups for tokens without an image; off when disabled."""

    if env_choice("TOKENROTOR_LOGO_LOOKUP", ("on", "off"), "on") == "off":
        return None
    return ResilienceConfig(
        name="trustwallet-assets",
        base_url=TRUSTWALLET_ASSETS_URL,
        timeout_seconds=5.0,
        retry=RetryPolicy(total=1),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
    )
