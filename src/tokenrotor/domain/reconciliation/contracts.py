"""Shared reconciliation contract components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tokenrotor.domain.model import Candidate, TokenKey


class GateOutcome(StrEnum):
    """Why a merged candidate was, or was not, published this cycle."""

    PASSED = "passed"
    MISSING_PRICE = "missing_price"
    MISSING_LIQUIDITY = "missing_liquidity"
    MISSING_VOLUME = "missing_volume"
    MISSING_TXNS = "missing_txns"
    FILTERED_NATIVE = "filtered_native"
    FILTERED_AGE = "filtered_age"


@dataclass(slots=True, frozen=True, kw_only=True)
class DroppedCandidate:
    key: TokenKey
    outcome: GateOutcome


@dataclass(slots=True, kw_only=True)
class ReconcileResult:
    """Publishable candidates plus a countable record of everything filtered out."""

    candidates: list[Candidate] = field(default_factory=list)
    dropped: list[DroppedCandidate] = field(default_factory=list)

    @property
    def outcomes(self) -> Counter[GateOutcome]:
        counts: Counter[GateOutcome] = Counter({GateOutcome.PASSED: len(self.candidates)})
        counts.update(item.outcome for item in self.dropped)
        return counts

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)
