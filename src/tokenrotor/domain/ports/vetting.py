"""Port for the secondary risk evaluation of a token."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tokenrotor.domain.model import RiskLevel, Tier, TokenKey, TokenRecord


class VettingError(RuntimeError):
    """Raised by collaborators when an evaluation could not be produced."""


@dataclass(slots=True, frozen=True, kw_only=True)
class VettingResult:
    risk_score: float
    tier: Tier
    risk_level: RiskLevel | None = None
    component_scores: Mapping[str, float] = field(default_factory=dict)
    flags: tuple[str, ...] = ()


@runtime_checkable
class VettingCollaborator(Protocol):
    """Evaluates one token; may be slow. Timeouts are the collaborator's concern."""

    async def vet(self, key: TokenKey, snapshot: TokenRecord) -> VettingResult: ...


__all__ = ["VettingCollaborator", "VettingError", "VettingResult"]
