"""Exclusive dispatch of vetting evaluations.

Per record the state machine is ``UNVETTED -> VETTING_IN_FLIGHT -> VETTED``; a failed
evaluation returns the record to ``UNVETTED`` so the next scheduled run retries it.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from tokenrotor.domain.ports import TokenFilter, VettingError
from tokenrotor.domain.scoring import Scorer

from .rules import risk_level_for

if TYPE_CHECKING:
    from tokenrotor.domain.model import TokenKey, TokenRecord
    from tokenrotor.domain.ports import TokenUnitOfWork, VettingCollaborator, VettingResult

log = getLogger(__name__)

type UnitOfWorkFactory = Callable[[], TokenUnitOfWork]
type Sleep = Callable[[float], Awaitable[None]]


class DispatchOutcome(StrEnum):
    VETTED = "vetted"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True, kw_only=True)
class DispatchSummary:
    outcomes: dict[TokenKey, DispatchOutcome] = field(default_factory=dict)

    @property
    def counts(self) -> Counter[DispatchOutcome]:
        return Counter(self.outcomes.values())

    @property
    def dispatched(self) -> int:
        skipped = DispatchOutcome.SKIPPED
        return sum(1 for outcome in self.outcomes.values() if outcome is not skipped)


@dataclass(slots=True)
class VettingDispatcher:
    unit_of_work_factory: UnitOfWorkFactory
    collaborator: VettingCollaborator
    scorer: Scorer = field(default_factory=Scorer)
    batch_size: int = 20
    dispatch_delay: float = 0.0
    max_attempts: int | None = None
    sleep: Sleep = asyncio.sleep

    async def dispatch(self, key: TokenKey, *, now: datetime | None = None) -> DispatchOutcome:
        """Vet one token unless it is vetted already or another dispatch owns it."""

        snapshot = self._claim(key, now=now or datetime.now(UTC))
        if snapshot is None:
            return DispatchOutcome.SKIPPED

        try:
            result = await self.collaborator.vet(snapshot.key, snapshot)
            _validate(result)
        except Exception:  # noqa: BLE001
            log.exception("Vetting failed for %s; will retry on a later run", key)
            self._finish(key, None, now=datetime.now(UTC))
            return DispatchOutcome.FAILED

        self._finish(key, result, now=datetime.now(UTC))
        log.info(
            "Vetted %s: risk_score=%s tier=%s", key, result.risk_score, result.tier.value
        )
        return DispatchOutcome.VETTED

    async def dispatch_pending(
        self,
        *,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> DispatchSummary:
        """Dispatch every unvetted, unclaimed record, oldest first, concurrently."""

        timestamp = now or datetime.now(UTC)
        with self.unit_of_work_factory() as uow:
            pending = uow.repositories.tokens.find_many(
                TokenFilter(
                    unvetted=True,
                    in_flight=False,
                    attempts_below=self.max_attempts,
                    limit=limit or self.batch_size,
                )
            )

        summary = DispatchSummary()
        if not pending:
            log.debug("No unvetted tokens to dispatch")
            return summary

        tasks: dict[TokenKey, asyncio.Task[DispatchOutcome]] = {}
        for index, record in enumerate(pending):
            if index and self.dispatch_delay > 0:
                await self.sleep(self.dispatch_delay)
            tasks[record.key] = asyncio.create_task(self.dispatch(record.key, now=timestamp))
        await asyncio.gather(*tasks.values())
        summary.outcomes = {key: task.result() for key, task in tasks.items()}

        counts = summary.counts
        log.info(
            "Vetting run finished: vetted=%d failed=%d skipped=%d",
            counts[DispatchOutcome.VETTED],
            counts[DispatchOutcome.FAILED],
            counts[DispatchOutcome.SKIPPED],
        )
        return summary

    def release_stale_claims(self, *, max_age: timedelta, now: datetime | None = None) -> int:
        """Return records stuck in flight longer than ``max_age`` to the unvetted state."""

        cutoff = (now or datetime.now(UTC)) - max_age
        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            stale = tokens.find_many(TokenFilter(in_flight=True, claimed_before=cutoff))
            for record in stale:
                tokens.release_claim(record.key)
            uow.commit()
        if stale:
            log.warning("Released %d stale vetting claims", len(stale))
        return len(stale)

    def _claim(self, key: TokenKey, *, now: datetime) -> TokenRecord | None:
        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            record = tokens.find_one(key)
            if record is None or record.tier is not None or record.vetting_in_flight:
                return None
            if self.max_attempts is not None and record.vetting_attempts >= self.max_attempts:
                log.debug("Vetting attempt cap reached for %s", key)
                return None
            if not tokens.claim_for_vetting(key, now=now):
                return None
            uow.commit()
        return replace(record, vetting_in_flight=True, last_vetting_attempt_at=now)

    def _finish(self, key: TokenKey, result: VettingResult | None, *, now: datetime) -> None:
        with self.unit_of_work_factory() as uow:
            tokens = uow.repositories.tokens
            current = tokens.find_one(key)
            if current is None:
                log.info("Discarding vetting outcome for %s: token left the store", key)
                return
            attempts = current.vetting_attempts + 1
            if result is None:
                record = replace(current, vetting_in_flight=False, vetting_attempts=attempts)
            else:
                record = self.scorer.annotate(
                    replace(
                        current,
                        risk_score=result.risk_score,
                        tier=result.tier,
                        risk_level=result.risk_level or risk_level_for(result.risk_score),
                        component_scores=dict(result.component_scores),
                        flags=tuple(result.flags),
                        last_scanned_at=now,
                        updated_at=now,
                        vetting_in_flight=False,
                        vetting_attempts=attempts,
                    )
                )
            tokens.upsert(record)
            uow.commit()


def _validate(result: VettingResult) -> None:
    if not 0.0 <= result.risk_score <= 100.0:
        raise VettingError(f"Risk score out of range: {result.risk_score}")
