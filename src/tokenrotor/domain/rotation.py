"""Capacity-bounded store of presentable token records.

The store owns every write the refresh cycle makes: it upserts published candidates,
evicts the lowest-quality records once capacity is exceeded and reports what changed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from tokenrotor.domain.model import (
    Delta,
    ScoreOrigin,
    TokenKey,
    TokenRecord,
    placeholder_logo_url,
)
from tokenrotor.domain.scoring import MAX_SCORE, MIN_SCORE, Scorer

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tokenrotor.domain.model import Candidate
    from tokenrotor.domain.ports import TokenUnitOfWork

log = getLogger(__name__)

type UnitOfWorkFactory = Callable[[], TokenUnitOfWork]


class UnknownTokenError(LookupError):
    """Raised when an operation targets a key the store does not hold."""


@dataclass(slots=True, frozen=True, kw_only=True)
class RotationResult:
    delta: Delta
    evicted: tuple[TokenKey, ...] = ()
    size: int = 0


def eviction_order(record: TokenRecord) -> tuple[int, float, datetime, str, str]:
    """Sort key placing the first record to evict first.

    Lowest risk score goes first. Unvetted records (``risk_score is None``) sort after
    every scored record, as in ``ORDER BY risk_score ASC NULLS LAST``. Ties fall back
    to the oldest ``created_at``, then chain and address.
    """

    unscored = record.risk_score is None
    return (
        1 if unscored else 0,
        record.risk_score if record.risk_score is not None else 0.0,
        record.created_at,
        record.key.chain.value,
        record.key.address,
    )


def select_evictions(
    records: Sequence[TokenRecord],
    *,
    capacity: int,
    pinned: frozenset[TokenKey] = frozenset(),
) -> list[TokenRecord]:
    """Pick the records to remove so that at most ``capacity`` remain."""

    excess = len(records) - capacity
    if excess <= 0:
        return []
    evictable = sorted((r for r in records if r.key not in pinned), key=eviction_order)
    return evictable[:excess]


def merge_candidate(
    existing: TokenRecord | None,
    candidate: Candidate,
    *,
    now: datetime,
) -> TokenRecord:
    """Apply a candidate on top of the stored record without touching vetting state."""

    if existing is None:
        market = candidate.market
        if market.logo_url is None:
            market = replace(market, logo_url=placeholder_logo_url(candidate.key.address))
        return TokenRecord(
            key=candidate.key,
            symbol=candidate.symbol,
            name=candidate.name,
            market=market,
            created_at=now,
            updated_at=now,
        )
    return replace(
        existing,
        symbol=candidate.symbol or existing.symbol,
        name=candidate.name or existing.name,
        market=existing.market.overlay(candidate.market),
    )


@dataclass(slots=True)
class RotationStore:
    unit_of_work_factory: UnitOfWorkFactory
    capacity: int
    scorer: Scorer = field(default_factory=Scorer)
    pinned: frozenset[TokenKey] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("Rotation capacity must be at least 1")
        if len(self.pinned) > self.capacity:
            raise ValueError(
                f"{len(self.pinned)} pinned tokens do not fit a capacity of {self.capacity}"
            )

    def missing_pinned(self) -> list[TokenKey]:
        """Pinned keys the store does not hold yet, in a stable order."""

        if not self.pinned:
            return []
        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            missing = [key for key in self.pinned if tokens.find_one(key) is None]
        return sorted(missing, key=lambda key: (key.chain.value, key.address))

    def apply(
        self,
        candidates: Iterable[Candidate],
        *,
        now: datetime | None = None,
    ) -> RotationResult:
        """Upsert candidates, enforce capacity and compute the delta in one transaction."""

        timestamp = now or datetime.now(UTC)
        new: dict[TokenKey, TokenRecord] = {}
        updated: dict[TokenKey, TokenRecord] = {}

        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            for candidate in candidates:
                existing = tokens.find_one(candidate.key)
                record = self.scorer.annotate(merge_candidate(existing, candidate, now=timestamp))
                if existing is None:
                    new[record.key] = record
                elif record.content_differs(existing):
                    record = replace(record, updated_at=timestamp)
                    updated[record.key] = record
                else:
                    continue
                tokens.upsert(record)

            victims = select_evictions(
                tokens.find_many(), capacity=self.capacity, pinned=self.pinned
            )
            evicted = tuple(victim.key for victim in victims)
            if evicted:
                tokens.delete_many(evicted)
                log.info(
                    "Rotation evicted %d tokens: %s", len(evicted), ", ".join(map(str, evicted))
                )
            size = tokens.count()
            uow.commit()

        for key in evicted:
            new.pop(key, None)
            updated.pop(key, None)
        delta = Delta(new=tuple(new.values()), updated=tuple(updated.values()))
        return RotationResult(delta=delta, evicted=evicted, size=size)

    def wipe(self) -> int:
        """Delete every non-pinned record in one transaction."""

        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            keys = [record.key for record in tokens.find_many() if record.key not in self.pinned]
            removed = tokens.delete_many(keys) if keys else 0
            uow.commit()
        log.info("Full-wipe rotation removed %d tokens (%d pinned kept)", removed, len(self.pinned))
        return removed

    def record_vote(
        self, key: TokenKey, score: float, *, now: datetime | None = None
    ) -> TokenRecord:
        """Store an externally supplied community score; automatic scoring never replaces it."""

        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValueError(f"Community score must be within [{MIN_SCORE}, {MAX_SCORE}]")
        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            existing = tokens.find_one(key)
            if existing is None:
                raise UnknownTokenError(str(key))
            record = replace(
                existing,
                community_score=score,
                community_score_origin=ScoreOrigin.VOTES,
                updated_at=now or datetime.now(UTC),
            )
            tokens.upsert(record)
            uow.commit()
        return record

    def size(self) -> int:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.tokens.count()
