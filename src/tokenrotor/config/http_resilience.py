"""Configuration types for the resilient HTTP client used by feeds and webhooks."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

type CachePredicate = Callable[[object], bool]

READ_METHODS = frozenset({"GET", "HEAD"})
WEBHOOK_METHODS = frozenset({"GET", "HEAD", "POST"})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retries for transient upstream failures.

    Only idempotent reads are retried unless ``allowed_methods`` says otherwise.
    """

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = READ_METHODS
    status_forcelist: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Response cache for feed lookups.

    ``should_cache`` receives the decoded JSON body; a falsy answer keeps
    application-level errors out of the cache.
    """

    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    should_cache: CachePredicate | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 15.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
