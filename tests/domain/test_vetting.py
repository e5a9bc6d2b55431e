from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from tokenrotor.domain.model import RiskLevel, ScoreOrigin, Tier, VettingState
from tokenrotor.domain.ports import VettingError, VettingResult
from tokenrotor.domain.vetting import (
    DispatchOutcome,
    VettingDispatcher,
    eligible_tier,
    overall_score,
    risk_level_for,
)
from tests.support.tokens import (
    MINT_A,
    MINT_B,
    MINT_C,
    NOW,
    FakeTokenStore,
    GatedCollaborator,
    StubCollaborator,
    make_record,
    solana_key,
)

RESULT = VettingResult(
    risk_score=72.5,
    tier=Tier.SPROUT,
    component_scores={"liquidity": 80.0},
    flags=("lp_unlocked",),
)


def _dispatcher(
    fake_store: FakeTokenStore, collaborator: object, **kwargs: object
) -> VettingDispatcher:
    return VettingDispatcher(
        unit_of_work_factory=fake_store.unit_of_work,
        collaborator=collaborator,  # type: ignore[arg-type]
        **kwargs,  # type: ignore[arg-type]
    )


def test_concurrent_dispatches_vet_once(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record())
    collaborator = GatedCollaborator(result=RESULT)
    dispatcher = _dispatcher(fake_store, collaborator)

    async def scenario() -> tuple[DispatchOutcome, DispatchOutcome, VettingState]:
        first = asyncio.create_task(dispatcher.dispatch(solana_key(), now=NOW))
        await asyncio.sleep(0)
        in_flight = fake_store.records[solana_key()].vetting_state
        second = await dispatcher.dispatch(solana_key(), now=NOW)
        collaborator.release.set()
        return await first, second, in_flight

    first, second, in_flight = asyncio.run(scenario())

    assert in_flight is VettingState.VETTING_IN_FLIGHT
    assert first is DispatchOutcome.VETTED
    assert second is DispatchOutcome.SKIPPED
    assert collaborator.calls == [solana_key()]


def test_success_stores_result(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record())
    dispatcher = _dispatcher(fake_store, StubCollaborator(result=RESULT))

    outcome = asyncio.run(dispatcher.dispatch(solana_key(), now=NOW))

    stored = fake_store.records[solana_key()]
    assert outcome is DispatchOutcome.VETTED
    assert stored.vetting_state is VettingState.VETTED
    assert stored.risk_score == 72.5
    assert stored.tier is Tier.SPROUT
    assert stored.risk_level is RiskLevel.LOW
    assert stored.flags == ("lp_unlocked",)
    assert stored.vetting_attempts == 1
    assert stored.last_scanned_at is not None
    assert stored.community_score_origin is ScoreOrigin.AUTOMATIC


def test_failure_returns_record_to_unvetted(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record())
    dispatcher = _dispatcher(fake_store, StubCollaborator(error=VettingError("timeout")))

    outcome = asyncio.run(dispatcher.dispatch(solana_key(), now=NOW))

    stored = fake_store.records[solana_key()]
    assert outcome is DispatchOutcome.FAILED
    assert stored.vetting_state is VettingState.UNVETTED
    assert stored.risk_score is None
    assert stored.vetting_attempts == 1


def test_out_of_range_score_is_a_failure(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record())
    bogus = VettingResult(risk_score=140.0, tier=Tier.SEED)
    dispatcher = _dispatcher(fake_store, StubCollaborator(result=bogus))

    outcome = asyncio.run(dispatcher.dispatch(solana_key(), now=NOW))

    assert outcome is DispatchOutcome.FAILED
    assert fake_store.records[solana_key()].tier is None


def test_vetted_records_are_skipped(fake_store: FakeTokenStore) -> None:
    fake_store.seed(make_record(risk_score=40.0, tier=Tier.NONE))
    collaborator = StubCollaborator(result=RESULT)

    outcome = asyncio.run(_dispatcher(fake_store, collaborator).dispatch(solana_key()))

    assert outcome is DispatchOutcome.SKIPPED
    assert collaborator.calls == []


def test_dispatch_pending_respects_attempt_cap(fake_store: FakeTokenStore) -> None:
    fake_store.seed(
        make_record(solana_key(MINT_A)),
        make_record(solana_key(MINT_B), vetting_attempts=3),
        make_record(solana_key(MINT_C), risk_score=55.0, tier=Tier.SEED),
    )
    collaborator = StubCollaborator(result=RESULT)
    dispatcher = _dispatcher(fake_store, collaborator, max_attempts=3)

    summary = asyncio.run(dispatcher.dispatch_pending(now=NOW))

    assert summary.outcomes == {solana_key(MINT_A): DispatchOutcome.VETTED}
    assert summary.dispatched == 1
    assert collaborator.calls == [solana_key(MINT_A)]


def test_dispatch_pending_honours_limit(fake_store: FakeTokenStore) -> None:
    fake_store.seed(
        make_record(solana_key(MINT_A), created_at=NOW - timedelta(hours=2)),
        make_record(solana_key(MINT_B), created_at=NOW - timedelta(hours=1)),
    )
    collaborator = StubCollaborator(result=RESULT)

    asyncio.run(_dispatcher(fake_store, collaborator).dispatch_pending(limit=1, now=NOW))

    assert collaborator.calls == [solana_key(MINT_A)]


def test_release_stale_claims(fake_store: FakeTokenStore) -> None:
    fake_store.seed(
        make_record(
            solana_key(MINT_A),
            vetting_in_flight=True,
            last_vetting_attempt_at=NOW - timedelta(hours=2),
        ),
        make_record(
            solana_key(MINT_B),
            vetting_in_flight=True,
            last_vetting_attempt_at=NOW - timedelta(minutes=5),
        ),
    )
    dispatcher = _dispatcher(fake_store, StubCollaborator(result=RESULT))

    released = dispatcher.release_stale_claims(max_age=timedelta(minutes=30), now=NOW)

    assert released == 1
    assert fake_store.records[solana_key(MINT_A)].vetting_state is VettingState.UNVETTED
    assert fake_store.records[solana_key(MINT_B)].vetting_in_flight


def test_overall_score_needs_every_component() -> None:
    components = {
        "distribution": 80.0,
        "liquidity": 60.0,
        "dev_abandonment": 100.0,
        "technical": 40.0,
    }

    assert overall_score(components) == 69.0
    assert overall_score({"liquidity": 60.0}) is None


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (None, RiskLevel.INSUFFICIENT_DATA),
        (70.0, RiskLevel.LOW),
        (50.0, RiskLevel.MEDIUM),
        (49.9, RiskLevel.HIGH),
    ],
)
def test_risk_level_for(score: float | None, expected: RiskLevel) -> None:
    assert risk_level_for(score) is expected


@pytest.mark.parametrize(
    ("age", "liquidity", "locked", "score", "expected"),
    [
        (90, 200_000, 100, 80, Tier.STELLAR),
        (45, 200_000, 95, 80, Tier.BLOOM),
        (25, 30_000, 90, 61, Tier.SPROUT),
        (15, 12_000, 85, 50, Tier.SEED),
        (10, 500_000, 100, 95, Tier.NONE),
        (90, 200_000, None, 95, Tier.NONE),
    ],
)
def test_eligible_tier(
    age: float, liquidity: float, locked: float | None, score: float, expected: Tier
) -> None:
    tier = eligible_tier(
        score=score, age_days=age, liquidity_usd=liquidity, lp_locked_percent=locked
    )

    assert tier is expected
