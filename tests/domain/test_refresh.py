from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tokenrotor.domain.model import PartialTokenRecord, ProviderId, Tier, placeholder_logo_url
from tokenrotor.domain.normalization import Normalizer
from tokenrotor.domain.ports import VettingError, VettingResult
from tokenrotor.domain.reconciliation import GateOutcome, Reconciler
from tokenrotor.domain.refresh import CycleStatus, RefreshCycle
from tokenrotor.domain.rotation import RotationStore
from tokenrotor.domain.vetting import DispatchOutcome, VettingDispatcher
from tests.support.tokens import (
    MINT_A,
    MINT_B,
    MINT_C,
    NOW,
    FakeTokenStore,
    GatedCollaborator,
    RecordingNotifier,
    StaticFeed,
    StubCollaborator,
    make_partial,
    make_raw,
    make_record,
    solana_key,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tokenrotor.domain.model import RawProviderRecord, TokenKey
    from tokenrotor.domain.ports import FeedAdapter, LogoResolver, Notifier, TokenLookup

DEX = ProviderId.DEXSCREENER
BIRD = ProviderId.BIRDEYE


def _passthrough(record: RawProviderRecord) -> PartialTokenRecord | None:
    payload = record.payload
    return payload if isinstance(payload, PartialTokenRecord) else None


def _complete(address: str, provider: ProviderId = DEX) -> RawProviderRecord:
    partial = make_partial(
        provider,
        key=solana_key(address),
        symbol="TKN",
        name="Token",
        price_usd=1.0,
        liquidity_usd=50_000.0,
        volume_24h=20_000.0,
        tx_count_h24=8,
    )
    return make_raw(provider, partial, address=address)


def _cycle(
    fake_store: FakeTokenStore,
    feeds: list[FeedAdapter],
    *,
    notifier: Notifier | None = None,
    dispatcher: VettingDispatcher | None = None,
    capacity: int = 10,
    pinned: frozenset[TokenKey] = frozenset(),
    pinned_lookup: TokenLookup | None = None,
    logo_resolver: LogoResolver | None = None,
) -> RefreshCycle:
    return RefreshCycle(
        feeds=feeds,
        normalizer=Normalizer(projections={DEX: _passthrough, BIRD: _passthrough}),
        reconciler=Reconciler(),
        store=RotationStore(
            unit_of_work_factory=fake_store.unit_of_work, capacity=capacity, pinned=pinned
        ),
        notifier=notifier or RecordingNotifier(),
        dispatcher=dispatcher,
        pinned_lookup=pinned_lookup,
        logo_resolver=logo_resolver,
    )


@dataclass
class BlockingFeed:
    provider: ProviderId = DEX
    records: list[RawProviderRecord] = field(default_factory=list)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    async def fetch(self) -> list[RawProviderRecord] | None:
        await self.release.wait()
        return self.records


@dataclass
class RecordingLookup:
    provider: ProviderId = DEX
    records: list[RawProviderRecord] = field(default_factory=list)
    calls: list[tuple[TokenKey, ...]] = field(default_factory=list)

    async def lookup(self, keys: Sequence[TokenKey]) -> list[RawProviderRecord] | None:
        self.calls.append(tuple(keys))
        wanted = {key.address for key in keys}
        return [record for record in self.records if record.address in wanted]


@dataclass
class MappedLogos:
    logos: dict[TokenKey, str] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[TokenKey] = field(default_factory=list)

    async def resolve(self, key: TokenKey) -> str | None:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        return self.logos.get(key)


def test_cycle_publishes_new_then_updates(fake_store: FakeTokenStore) -> None:
    feed = StaticFeed(DEX, records=[_complete(MINT_A), _complete(MINT_B)])
    notifier = RecordingNotifier()
    cycle = _cycle(fake_store, [feed], notifier=notifier)

    first = asyncio.run(cycle.run(now=NOW))
    second = asyncio.run(cycle.run(now=NOW))

    assert first.status is CycleStatus.COMPLETED
    assert first.fetched == {DEX: 2}
    assert len(first.delta.new) == 2
    assert second.delta.is_empty
    assert notifier.events == [
        ("new", solana_key(MINT_A)),
        ("new", solana_key(MINT_B)),
    ]
    assert cycle.stats.cycles == 2


def test_trigger_while_active_is_skipped(fake_store: FakeTokenStore) -> None:
    feed = BlockingFeed(records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed])

    async def scenario() -> tuple[CycleStatus, CycleStatus, CycleStatus]:
        running = asyncio.create_task(cycle.run(now=NOW))
        await asyncio.sleep(0)
        skipped = await cycle.run(now=NOW)
        rotation = await cycle.rotate(now=NOW)
        feed.release.set()
        return (await running).status, skipped.status, rotation.status

    completed, skipped, rotation = asyncio.run(scenario())

    assert completed is CycleStatus.COMPLETED
    assert skipped is CycleStatus.SKIPPED
    assert rotation is CycleStatus.SKIPPED
    assert cycle.stats.skipped == 2
    assert not cycle.active


def test_no_data_fails_without_touching_the_store(fake_store: FakeTokenStore) -> None:
    existing = make_record(solana_key(MINT_C))
    fake_store.seed(existing)
    feeds: list[FeedAdapter] = [
        StaticFeed(DEX, records=None),
        StaticFeed(BIRD, error=RuntimeError("boom")),
    ]
    cycle = _cycle(fake_store, feeds)

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.FAILED
    assert set(result.provider_failures) == {DEX, BIRD}
    assert fake_store.records == {existing.key: existing}
    assert fake_store.commits == 0


def test_failing_feed_is_isolated(fake_store: FakeTokenStore) -> None:
    feeds: list[FeedAdapter] = [
        StaticFeed(DEX, records=[_complete(MINT_A)]),
        StaticFeed(BIRD, error=RuntimeError("rate limited")),
    ]
    cycle = _cycle(fake_store, feeds)

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.COMPLETED
    assert result.provider_failures == (BIRD,)
    assert set(fake_store.records) == {solana_key(MINT_A)}


def test_gated_and_rejected_records_are_counted(fake_store: FakeTokenStore) -> None:
    incomplete = make_raw(
        DEX,
        make_partial(DEX, key=solana_key(MINT_B), price_usd=1.0, liquidity_usd=10.0),
        address=MINT_B,
    )
    unattributed = make_raw(DEX, {"unexpected": True})
    feed = StaticFeed(DEX, records=[_complete(MINT_A), incomplete, unattributed])
    cycle = _cycle(fake_store, [feed])

    result = asyncio.run(cycle.run(now=NOW))

    assert result.rejected == 1
    assert result.outcomes[GateOutcome.PASSED] == 1
    assert result.outcomes[GateOutcome.MISSING_VOLUME] == 1
    assert cycle.stats.gated == 1


def test_notifier_failures_do_not_abort_the_cycle(fake_store: FakeTokenStore) -> None:
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed], notifier=RecordingNotifier(fail=True))

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.COMPLETED
    assert result.notify_failures == 1
    assert solana_key(MINT_A) in fake_store.records


def test_cycle_dispatches_vetting(fake_store: FakeTokenStore) -> None:
    collaborator = StubCollaborator(result=VettingResult(risk_score=66.0, tier=Tier.SEED))
    dispatcher = VettingDispatcher(
        unit_of_work_factory=fake_store.unit_of_work, collaborator=collaborator
    )
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed], dispatcher=dispatcher)

    result = asyncio.run(cycle.run(now=NOW))

    assert result.vetting is not None
    assert result.vetting.outcomes == {solana_key(MINT_A): DispatchOutcome.VETTED}
    assert fake_store.records[solana_key(MINT_A)].tier is Tier.SEED


def test_rotate_wipes_then_repopulates(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record(solana_key(MINT_B)), make_record(solana_key(MINT_C)))
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed])

    result = asyncio.run(cycle.rotate(now=NOW))

    assert result.status is CycleStatus.COMPLETED
    assert result.wiped == 2
    assert set(fake_store.records) == {solana_key(MINT_A)}


def test_every_record_rejected_fails_without_touching_the_store(
    fake_store: FakeTokenStore,
) -> None:
    existing = make_record(solana_key(MINT_C))
    fake_store.seed(existing)
    feed = StaticFeed(DEX, records=[make_raw(DEX, {"bogus": 1})])
    notifier = RecordingNotifier()
    cycle = _cycle(fake_store, [feed], notifier=notifier)

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.FAILED
    assert result.rejected == 1
    assert result.delta.is_empty
    assert cycle.stats.failures == 1
    assert fake_store.commits == 0
    assert fake_store.records == {existing.key: existing}
    assert notifier.events == []


def test_rotation_runs_while_the_previous_cycle_is_still_vetting(
    fake_store: FakeTokenStore,
) -> None:
    collaborator = GatedCollaborator(result=VettingResult(risk_score=66.0, tier=Tier.SEED))
    dispatcher = VettingDispatcher(
        unit_of_work_factory=fake_store.unit_of_work, collaborator=collaborator
    )
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(
        fake_store, [feed], dispatcher=dispatcher, pinned=frozenset({solana_key(MINT_A)})
    )

    async def scenario() -> tuple[CycleStatus, bool, CycleStatus]:
        running = asyncio.create_task(cycle.run(now=NOW))
        await collaborator.started()
        active_while_vetting = cycle.active
        rotation = await cycle.rotate(now=NOW)
        collaborator.release.set()
        return (await running).status, active_while_vetting, rotation.status

    completed, active_while_vetting, rotation = asyncio.run(scenario())

    assert active_while_vetting is False
    assert rotation is CycleStatus.COMPLETED
    assert completed is CycleStatus.COMPLETED
    assert collaborator.calls == [solana_key(MINT_A)]
    assert fake_store.records[solana_key(MINT_A)].tier is Tier.SEED


def test_collaborator_errors_leave_the_record_unvetted(fake_store: FakeTokenStore) -> None:
    collaborator = StubCollaborator(error=VettingError("scoring service down"))
    dispatcher = VettingDispatcher(
        unit_of_work_factory=fake_store.unit_of_work, collaborator=collaborator
    )
    notifier = RecordingNotifier()
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed], notifier=notifier, dispatcher=dispatcher)

    result = asyncio.run(cycle.run(now=NOW))

    stored = fake_store.records[solana_key(MINT_A)]
    assert result.status is CycleStatus.COMPLETED
    assert notifier.events == [("new", solana_key(MINT_A))]
    assert result.vetting is not None
    assert result.vetting.outcomes == {solana_key(MINT_A): DispatchOutcome.FAILED}
    assert stored.tier is None
    assert stored.vetting_in_flight is False
    assert stored.vetting_attempts == 1


def test_missing_pinned_tokens_are_looked_up(fake_store: FakeTokenStore) -> None:
    pinned = frozenset({solana_key(MINT_A)})
    lookup = RecordingLookup(records=[_complete(MINT_A)])
    feed = StaticFeed(DEX, records=[_complete(MINT_B)])
    cycle = _cycle(fake_store, [feed], pinned=pinned, pinned_lookup=lookup)

    first = asyncio.run(cycle.run(now=NOW))
    second = asyncio.run(cycle.run(now=NOW))

    assert first.status is CycleStatus.COMPLETED
    assert first.seeded == 1
    assert set(fake_store.records) == {solana_key(MINT_A), solana_key(MINT_B)}
    assert lookup.calls == [(solana_key(MINT_A),)]
    assert second.seeded == 0
    assert cycle.stats.provider_calls == 3


def test_pinned_lookup_alone_can_populate_the_store(fake_store: FakeTokenStore) -> None:
    pinned = frozenset({solana_key(MINT_A)})
    lookup = RecordingLookup(records=[_complete(MINT_A)])
    cycle = _cycle(
        fake_store, [StaticFeed(DEX, records=None)], pinned=pinned, pinned_lookup=lookup
    )

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.COMPLETED
    assert result.provider_failures == (DEX,)
    assert set(fake_store.records) == {solana_key(MINT_A)}


def test_logo_resolver_fills_missing_logos(fake_store: FakeTokenStore) -> None:
    with_logo = make_raw(
        DEX,
        make_partial(
            DEX,
            key=solana_key(MINT_B),
            symbol="TKN",
            name="Token",
            price_usd=1.0,
            liquidity_usd=50_000.0,
            volume_24h=20_000.0,
            tx_count_h24=8,
            logo_url="https://cdn.example/b.png",
        ),
        address=MINT_B,
    )
    resolver = MappedLogos(logos={solana_key(MINT_A): "https://assets.example/a.png"})
    feed = StaticFeed(DEX, records=[_complete(MINT_A), with_logo, _complete(MINT_C)])
    cycle = _cycle(fake_store, [feed], logo_resolver=resolver)

    result = asyncio.run(cycle.run(now=NOW))

    logos = {key: record.market.logo_url for key, record in fake_store.records.items()}
    assert result.logos_resolved == 1
    assert set(resolver.calls) == {solana_key(MINT_A), solana_key(MINT_C)}
    assert logos[solana_key(MINT_A)] == "https://assets.example/a.png"
    assert logos[solana_key(MINT_B)] == "https://cdn.example/b.png"
    assert logos[solana_key(MINT_C)] == placeholder_logo_url(MINT_C)


def test_logo_resolver_errors_fall_back_to_the_placeholder(
    fake_store: FakeTokenStore,
) -> None:
    resolver = MappedLogos(error=RuntimeError("assets host down"))
    feed = StaticFeed(DEX, records=[_complete(MINT_A)])
    cycle = _cycle(fake_store, [feed], logo_resolver=resolver)

    result = asyncio.run(cycle.run(now=NOW))

    assert result.status is CycleStatus.COMPLETED
    assert result.logos_resolved == 0
    assert fake_store.records[solana_key(MINT_A)].market.logo_url == placeholder_logo_url(
        MINT_A
    )
