"""Risk level and tier eligibility rules for vetting results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from tokenrotor.domain.model import RiskLevel, Tier

if TYPE_CHECKING:
    from collections.abc import Mapping

COMPONENT_WEIGHTS: Final[Mapping[str, float]] = {
    "distribution": 0.25,
    "liquidity": 0.35,
    "dev_abandonment": 0.20,
    "technical": 0.20,
}
LOW_RISK_THRESHOLD: Final = 70.0
MEDIUM_RISK_THRESHOLD: Final = 50.0


@dataclass(slots=True, frozen=True, kw_only=True)
class TierRule:
    tier: Tier
    min_age_days: float
    min_liquidity_usd: float
    min_lp_locked_percent: float
    min_score: float

    def admits(
        self,
        *,
        age_days: float,
        liquidity_usd: float,
        lp_locked_percent: float,
        score: float,
    ) -> bool:
        return (
            age_days >= self.min_age_days
            and liquidity_usd >= self.min_liquidity_usd
            and lp_locked_percent >= self.min_lp_locked_percent
            and score >= self.min_score
        )


# Best tier first.
TIER_RULES: Final[tuple[TierRule, ...]] = (
    TierRule(
        tier=Tier.STELLAR,
        min_age_days=60,
        min_liquidity_usd=100_000,
        min_lp_locked_percent=99,
        min_score=70,
    ),
    TierRule(
        tier=Tier.BLOOM,
        min_age_days=30,
        min_liquidity_usd=50_000,
        min_lp_locked_percent=90,
        min_score=65,
    ),
    TierRule(
        tier=Tier.SPROUT,
        min_age_days=21,
        min_liquidity_usd=20_000,
        min_lp_locked_percent=90,
        min_score=60,
    ),
    TierRule(
        tier=Tier.SEED,
        min_age_days=14,
        min_liquidity_usd=10_000,
        min_lp_locked_percent=80,
        min_score=50,
    ),
)


def overall_score(component_scores: Mapping[str, float]) -> float | None:
    """Weighted component score; ``None`` unless every weighted component is present."""

    if any(name not in component_scores for name in COMPONENT_WEIGHTS):
        return None
    total = sum(component_scores[name] * weight for name, weight in COMPONENT_WEIGHTS.items())
    return round(total, 2)


def risk_level_for(score: float | None) -> RiskLevel:
    if score is None:
        return RiskLevel.INSUFFICIENT_DATA
    if score >= LOW_RISK_THRESHOLD:
        return RiskLevel.LOW
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def eligible_tier(
    *,
    score: float | None,
    age_days: float | None,
    liquidity_usd: float | None,
    lp_locked_percent: float | None,
) -> Tier:
    """Best tier whose every threshold is met; unknown inputs never qualify."""

    if score is None or age_days is None or liquidity_usd is None or lp_locked_percent is None:
        return Tier.NONE
    for rule in TIER_RULES:
        if rule.admits(
            age_days=age_days,
            liquidity_usd=liquidity_usd,
            lp_locked_percent=lp_locked_percent,
            score=score,
        ):
            return rule.tier
    return Tier.NONE
