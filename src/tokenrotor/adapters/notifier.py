"""Notifiers that push listing changes to realtime consumers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from tokenrotor.adapters.http_resilience import ResilienceConfig, ResilientClient
from tokenrotor.config import WEBHOOK_METHODS, NotifierConfig, RetryPolicy
from tokenrotor.domain.model import EventType

if TYPE_CHECKING:
    from tokenrotor.domain.model import TokenRecord

log = getLogger(__name__)

EVENT_NAMES: dict[EventType, str] = {
    EventType.NEW: "listing.new",
    EventType.UPDATE: "listing.update",
}


class ListingPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain: str
    address: str
    symbol: str | None
    name: str | None
    category: str
    price_usd: float | None
    liquidity_usd: float | None
    market_cap: float | None
    volume_24h: float | None
    price_change_h24: float | None
    tx_count_h24: int | None
    holders: int | None
    logo_url: str | None
    risk_score: float | None
    tier: str | None
    risk_level: str | None
    community_score: float | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: TokenRecord) -> ListingPayload:
        market = record.market
        return cls(
            chain=record.key.chain.value,
            address=record.key.address,
            symbol=record.symbol,
            name=record.name,
            category=record.category.value,
            price_usd=market.price_usd,
            liquidity_usd=market.liquidity_usd,
            market_cap=market.market_cap,
            volume_24h=market.volume_24h,
            price_change_h24=market.price_change_h24,
            tx_count_h24=market.tx_count_h24,
            holders=market.holders,
            logo_url=market.logo_url,
            risk_score=record.risk_score,
            tier=record.tier.value if record.tier is not None else None,
            risk_level=record.risk_level.value if record.risk_level is not None else None,
            community_score=record.community_score,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class ListingEvent(BaseModel):
    event: str
    token: ListingPayload


def build_event(event_type: EventType, record: TokenRecord) -> ListingEvent:
    return ListingEvent(event=EVENT_NAMES[event_type], token=ListingPayload.from_record(record))


@dataclass(slots=True)
class LoggingNotifier:
    """Writes every event to the log; the default when no webhook is configured."""

    def publish(self, event_type: EventType, record: TokenRecord) -> None:
        log.info("%s %s (%s)", EVENT_NAMES[event_type], record.key, record.symbol or "?")


def _webhook_resilience(config: NotifierConfig) -> ResilienceConfig:
    return ResilienceConfig(
        name="notifier",
        timeout_seconds=config.timeout_seconds,
        retry=RetryPolicy(total=2, allowed_methods=WEBHOOK_METHODS),
    )


@dataclass(slots=True)
class WebhookNotifier:
    """POSTs each event to a webhook without blocking the caller.

    ``publish`` must run inside an event loop; deliveries run as background tasks
    and are awaited by ``drain``.
    """

    config: NotifierConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=ResilientClient
    )
    delivered: int = 0
    failed: int = 0
    _client: ResilientClient | None = field(default=None, init=False, repr=False)
    _pending: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.config.webhook_url:
            raise ValueError("WebhookNotifier requires a webhook URL")

    def publish(self, event_type: EventType, record: TokenRecord) -> None:
        event = build_event(event_type, record)
        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every queued delivery to finish."""

        while self._pending:
            await asyncio.gather(*tuple(self._pending))

    async def aclose(self) -> None:
        await self.drain()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _deliver(self, event: ListingEvent) -> None:
        if self._client is None:
            self._client = self.client_factory(_webhook_resilience(self.config))
        try:
            response = await self._client.post(
                self.config.webhook_url or "", json=event.model_dump(mode="json")
            )
            response.raise_for_status()
        except Exception:  # noqa: BLE001
            self.failed += 1
            log.exception("Webhook delivery failed for %s %s", event.event, event.token.address)
            return
        self.delivered += 1
