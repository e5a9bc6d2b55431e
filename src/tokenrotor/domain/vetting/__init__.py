"""Secondary risk evaluation of listed tokens."""

from __future__ import annotations

from .dispatcher import DispatchOutcome, DispatchSummary, VettingDispatcher
from .rules import (
    COMPONENT_WEIGHTS,
    TIER_RULES,
    TierRule,
    eligible_tier,
    overall_score,
    risk_level_for,
)

__all__ = [
    "COMPONENT_WEIGHTS",
    "TIER_RULES",
    "DispatchOutcome",
    "DispatchSummary",
    "TierRule",
    "VettingDispatcher",
    "eligible_tier",
    "overall_score",
    "risk_level_for",
]
