"""Merge same-token partial records from all providers of one cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from tokenrotor.domain.model import MARKET_FIELD_NAMES, Candidate, CanonicalMarketFields

from .contracts import DroppedCandidate, GateOutcome, ReconcileResult
from .gate import PublicationPolicy, check_completeness
from .precedence import DEFAULT_PRECEDENCE, PrecedenceTable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tokenrotor.domain.model import PartialTokenRecord, ProviderId, TokenKey

log = getLogger(__name__)


def group_by_key(
    partials: Iterable[PartialTokenRecord],
) -> dict[TokenKey, list[PartialTokenRecord]]:
    """Group partial records by token key, preserving arrival order within and across keys."""

    groups: dict[TokenKey, list[PartialTokenRecord]] = {}
    for partial in partials:
        groups.setdefault(partial.key, []).append(partial)
    return groups


def merge_partials(
    partials: Sequence[PartialTokenRecord],
    *,
    precedence: PrecedenceTable = DEFAULT_PRECEDENCE,
) -> Candidate:
    """Fold partial records for one key into a candidate using ``precedence``."""

    if not partials:
        raise ValueError("Cannot merge an empty group of partial records")
    key = partials[0].key
    values: dict[str, object] = {}
    sources: dict[str, ProviderId] = {}
    providers: list[ProviderId] = []

    for partial in partials:
        if partial.key != key:
            raise ValueError(f"Partial record for {partial.key} merged into group {key}")
        if partial.provider not in providers:
            providers.append(partial.provider)
        incoming: dict[str, object] = {"symbol": partial.symbol, "name": partial.name}
        incoming.update(partial.market.present_fields())
        for field_name, value in incoming.items():
            if precedence.accepts(
                field_name,
                incoming=partial.provider,
                incoming_value=value,
                current=sources.get(field_name),
                current_value=values.get(field_name),
            ):
                values[field_name] = value
                sources[field_name] = partial.provider

    market_values = {name: values[name] for name in MARKET_FIELD_NAMES if name in values}
    return Candidate(
        key=key,
        symbol=_as_text(values.get("symbol")),
        name=_as_text(values.get("name")),
        market=CanonicalMarketFields(**market_values),  # type: ignore[arg-type]
        field_sources=sources,
        providers=tuple(providers),
    )


def _as_text(value: object) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(slots=True)
class Reconciler:
    """Merge, gate and filter one cycle's partial records."""

    precedence: PrecedenceTable = DEFAULT_PRECEDENCE
    policy: PublicationPolicy = field(default_factory=PublicationPolicy)

    def reconcile(self, partials: Iterable[PartialTokenRecord]) -> ReconcileResult:
        result = ReconcileResult()
        for key, group in group_by_key(partials).items():
            candidate = merge_partials(group, precedence=self.precedence)
            outcome = check_completeness(candidate)
            if outcome is GateOutcome.PASSED:
                outcome = self.policy.check(candidate)
            if outcome is GateOutcome.PASSED:
                result.candidates.append(candidate)
            else:
                log.debug("Candidate %s not published: %s", key, outcome)
                result.dropped.append(DroppedCandidate(key=key, outcome=outcome))
        log.info(
            "Reconciled %d candidates (precedence v%s), dropped %d",
            len(result.candidates),
            self.precedence.version,
            result.dropped_count,
        )
        return result
