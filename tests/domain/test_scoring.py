from __future__ import annotations

import pytest

from tokenrotor.domain.model import CanonicalMarketFields, Category, ScoreOrigin
from tokenrotor.domain.scoring import (
    MAX_SCORE,
    MIN_SCORE,
    Scorer,
    classify_category,
    community_score,
)
from tests.support.tokens import make_record


def test_empty_market_scores_zero() -> None:
    assert community_score(CanonicalMarketFields(), risk_score=None) == 0.0


def test_saturated_market_scores_maximum() -> None:
    market = CanonicalMarketFields(
        holders=50_000,
        tx_count_h24=10_000,
        price_change_h24=500.0,
        liquidity_usd=5_000_000.0,
        age_days=30.0,
    )

    assert community_score(market, risk_score=0.0) == MAX_SCORE


def test_partial_components_are_linear() -> None:
    market = CanonicalMarketFields(holders=5_000, tx_count_h24=500)

    assert community_score(market, risk_score=None) == 27.5


def test_losses_and_high_risk_add_nothing() -> None:
    market = CanonicalMarketFields(price_change_h24=-80.0)

    assert community_score(market, risk_score=100.0) == 0.0


@pytest.mark.parametrize(
    "market",
    [
        CanonicalMarketFields(holders=-5, tx_count_h24=-1, liquidity_usd=-1.0),
        CanonicalMarketFields(holders=10**9, price_change_h24=10**6, age_days=10**4),
        CanonicalMarketFields(liquidity_usd=123.45, price_change_h24=0.0, age_days=0.99),
    ],
)
def test_score_is_bounded_and_deterministic(market: CanonicalMarketFields) -> None:
    first = community_score(market, risk_score=42.0)
    second = community_score(market, risk_score=42.0)

    assert MIN_SCORE <= first <= MAX_SCORE
    assert first == second


def test_classify_category() -> None:
    empty = CanonicalMarketFields()
    small = CanonicalMarketFields(market_cap=1_000_000.0, liquidity_usd=100_000.0)
    large = CanonicalMarketFields(market_cap=900_000_000.0, liquidity_usd=50_000_000.0)

    assert classify_category(None, None, empty) is Category.UNKNOWN
    assert classify_category("PEPE2", "Pepe Two", large) is Category.MEME
    assert classify_category("XYZ", "Xyz Protocol", small) is Category.MEME
    assert classify_category("XYZ", "Xyz Protocol", large) is Category.OTHER


def test_scorer_sets_automatic_score_and_category() -> None:
    record = Scorer().annotate(make_record(symbol="BONK"))

    assert record.category is Category.MEME
    assert record.community_score_origin is ScoreOrigin.AUTOMATIC
    assert record.community_score == community_score(record.market, risk_score=None)


def test_scorer_keeps_vote_score() -> None:
    voted = make_record(community_score=77.0, community_score_origin=ScoreOrigin.VOTES)

    annotated = Scorer().annotate(voted)

    assert annotated.community_score == 77.0
    assert annotated.community_score_origin is ScoreOrigin.VOTES
