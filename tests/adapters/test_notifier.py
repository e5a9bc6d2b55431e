from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from tokenrotor.adapters.notifier import (
    LoggingNotifier,
    WebhookNotifier,
    build_event,
)
from tokenrotor.config import NotifierConfig
from tokenrotor.domain.model import EventType, Tier
from tests.support.http import failing_handler, make_client_factory
from tests.support.tokens import MINT_A, MINT_B, make_record, solana_key

WEBHOOK = "https://hooks.example/listings"


def test_build_event_serialises_record() -> None:
    record = make_record(risk_score=66.0, tier=Tier.SEED, symbol="AAA")

    event = build_event(EventType.NEW, record)
    payload = event.model_dump(mode="json")

    assert payload["event"] == "listing.new"
    token = payload["token"]
    assert token["chain"] == "SOLANA"
    assert token["address"] == MINT_A
    assert token["tier"] == "seed"
    assert token["tx_count_h24"] == 8
    assert token["created_at"].startswith("2025-03-01T12:00:00")


def test_logging_notifier_logs_events(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="tokenrotor.adapters.notifier")

    LoggingNotifier().publish(EventType.UPDATE, make_record(symbol="AAA"))

    assert "listing.update" in caplog.text
    assert "AAA" in caplog.text


def test_webhook_notifier_posts_events_in_background() -> None:
    received: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(202)

    notifier = WebhookNotifier(
        config=NotifierConfig(webhook_url=WEBHOOK),
        client_factory=make_client_factory(handler),
    )

    async def scenario() -> None:
        notifier.publish(EventType.NEW, make_record(solana_key(MINT_A)))
        notifier.publish(EventType.UPDATE, make_record(solana_key(MINT_B)))
        await notifier.aclose()

    asyncio.run(scenario())

    assert notifier.delivered == 2
    assert notifier.failed == 0
    assert sorted(str(event["event"]) for event in received) == ["listing.new", "listing.update"]


def test_webhook_failures_are_counted_not_raised() -> None:
    notifier = WebhookNotifier(
        config=NotifierConfig(webhook_url=WEBHOOK),
        client_factory=make_client_factory(failing_handler(502)),
    )

    async def scenario() -> None:
        notifier.publish(EventType.NEW, make_record())
        await notifier.drain()

    asyncio.run(scenario())

    assert notifier.delivered == 0
    assert notifier.failed == 1


def test_webhook_notifier_requires_url() -> None:
    with pytest.raises(ValueError, match="webhook URL"):
        WebhookNotifier(config=NotifierConfig())
