"""Async HTTP client with retries, rate limiting and an optional response cache."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from tokenrotor.config.http_resilience import (
    CacheConfig,
    CachePredicate,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from tokenrotor.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
    "default_client_factory",
]


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """One session against one upstream; use it as an async context manager.

    Requests wait on the rate limiter before they are sent, so concurrent feeds
    sharing a provider never exceed its quota.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = self._build_client(config)

    @staticmethod
    def _build_client(config: ResilienceConfig) -> httpx.AsyncClient:
        transport = RetryTransport(retry=build_retry(config.retry))
        headers = dict(config.default_headers or {})
        base_url = config.base_url or ""
        if config.cache is None:
            return httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=config.timeout_seconds,
                transport=transport,
            )
        storage, policy = _cache_components(config.cache)
        return AsyncCacheClient(
            base_url=base_url,
            headers=headers,
            timeout=config.timeout_seconds,
            transport=transport,
            storage=storage,
            policy=policy,
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: QueryParamTypes | None = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        return await self._send("GET", url, params=params, headers=headers)

    async def head(self, url: str, *, headers: HeaderTypes | None = None) -> httpx.Response:
        return await self._send("HEAD", url, headers=headers)

    async def post(
        self,
        url: str,
        *,
        json: object = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        return await self._send("POST", url, json=json, headers=headers)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: QueryParamTypes | None = None,
        json: object = None,
        headers: HeaderTypes | None = None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        async with self._limiter:
            return await self._client.request(
                method, url, params=params, json=json, headers=headers
            )


class _PayloadFilter(BaseFilter[HishelCacheResponse]):
    """Cache only bodies the configured predicate accepts."""

    def __init__(self, predicate: CachePredicate) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body)
        except ValueError:
            return False
        return bool(self._predicate(payload))


def _cache_components(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    else:
        database_path = ":memory:"
    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
    )
    policy = (
        FilterPolicy(response_filters=[_PayloadFilter(config.should_cache)])
        if config.should_cache is not None
        else None
    )
    return storage, policy


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)
