"""One refresh cycle: fetch, normalize, reconcile, score, rotate, notify, then vet.

Only one cycle (or full-wipe rotation) runs at a time; a trigger that arrives while
another is active is dropped and reported as ``SKIPPED``. The guard covers the store
writes only. Vetting starts after it is released, since each record is claimed on its
own before a collaborator sees it.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from tokenrotor.domain.model import Delta, EventType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tokenrotor.domain.model import Candidate, ProviderId, RawProviderRecord, TokenKey
    from tokenrotor.domain.normalization import Normalizer
    from tokenrotor.domain.ports import FeedAdapter, LogoResolver, Notifier, TokenLookup
    from tokenrotor.domain.reconciliation import GateOutcome, Reconciler
    from tokenrotor.domain.rotation import RotationStore
    from tokenrotor.domain.vetting import DispatchSummary, VettingDispatcher

log = getLogger(__name__)


class CycleStatus(StrEnum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class CycleStats:
    """Running totals across cycles of one process."""

    cycles: int = 0
    refreshed: int = 0
    provider_calls: int = 0
    failures: int = 0
    gated: int = 0
    skipped: int = 0
    last_duration_ms: float | None = None


@dataclass(slots=True, kw_only=True)
class CycleResult:
    status: CycleStatus
    delta: Delta = field(default_factory=Delta)
    fetched: dict[ProviderId, int] = field(default_factory=dict)
    provider_failures: tuple[ProviderId, ...] = ()
    seeded: int = 0
    rejected: int = 0
    outcomes: Counter[GateOutcome] = field(default_factory=Counter)
    logos_resolved: int = 0
    evicted: tuple[TokenKey, ...] = ()
    wiped: int = 0
    notify_failures: int = 0
    vetting: DispatchSummary | None = None
    duration_ms: float = 0.0


@dataclass(slots=True)
class RefreshCycle:
    feeds: Sequence[FeedAdapter]
    normalizer: Normalizer
    reconciler: Reconciler
    store: RotationStore
    notifier: Notifier
    dispatcher: VettingDispatcher | None = None
    pinned_lookup: TokenLookup | None = None
    logo_resolver: LogoResolver | None = None
    stats: CycleStats = field(default_factory=CycleStats)
    _active: bool = field(default=False, init=False, repr=False)

    @property
    def active(self) -> bool:
        return self._active

    async def run(self, *, now: datetime | None = None) -> CycleResult:
        """Run one cycle unless another cycle or rotation is active."""

        if self._active:
            return self._skip("refresh")
        self._active = True
        try:
            result = await self._run_cycle(now=now)
        finally:
            self._active = False
        return await self._vet(result, now=now)

    async def rotate(self, *, now: datetime | None = None) -> CycleResult:
        """Wipe every non-pinned record, then repopulate with a fresh cycle."""

        if self._active:
            return self._skip("rotation")
        self._active = True
        try:
            wiped = self.store.wipe()
            result = await self._run_cycle(now=now)
            result.wiped = wiped
        finally:
            self._active = False
        return await self._vet(result, now=now)

    def _skip(self, trigger: str) -> CycleResult:
        self.stats.skipped += 1
        log.info("Skipping %s trigger: a cycle is already running", trigger)
        return CycleResult(status=CycleStatus.SKIPPED)

    async def _run_cycle(self, *, now: datetime | None) -> CycleResult:
        started = time.perf_counter()
        timestamp = now or datetime.now(UTC)
        result = CycleResult(status=CycleStatus.COMPLETED)

        records = await self._fetch_all(result)
        records += await self._seed_pinned(result)
        if not records:
            return self._fail(result, started, "no provider returned data")

        self.normalizer.reset()
        partials = self.normalizer.normalize_all(records)
        result.rejected = sum(self.normalizer.rejected.values())
        if not partials:
            return self._fail(
                result, started, f"all {len(records)} fetched records were rejected"
            )

        reconciled = self.reconciler.reconcile(partials)
        result.outcomes = reconciled.outcomes
        self.stats.gated += reconciled.dropped_count
        candidates = await self._resolve_logos(reconciled.candidates, result)

        rotation = self.store.apply(candidates, now=timestamp)
        result.delta = rotation.delta
        result.evicted = rotation.evicted
        self.stats.refreshed += len(rotation.delta.new) + len(rotation.delta.updated)

        result.notify_failures = self._publish(rotation.delta)

        log.info(
            "Refresh cycle complete: new=%d updated=%d evicted=%d dropped=%d rejected=%d size=%d",
            len(rotation.delta.new),
            len(rotation.delta.updated),
            len(rotation.evicted),
            reconciled.dropped_count,
            result.rejected,
            rotation.size,
        )
        return self._finish(result, started)

    def _fail(self, result: CycleResult, started: float, reason: str) -> CycleResult:
        result.status = CycleStatus.FAILED
        self.stats.failures += 1
        log.error("Refresh cycle failed: %s", reason)
        return self._finish(result, started)

    def _finish(self, result: CycleResult, started: float) -> CycleResult:
        result.duration_ms = (time.perf_counter() - started) * 1000
        self.stats.cycles += 1
        self.stats.last_duration_ms = result.duration_ms
        return result

    async def _vet(self, result: CycleResult, *, now: datetime | None) -> CycleResult:
        if self.dispatcher is None or result.status is not CycleStatus.COMPLETED:
            return result
        try:
            result.vetting = await self.dispatcher.dispatch_pending(now=now)
        except Exception:  # noqa: BLE001
            log.exception("Vetting dispatch failed; records stay unvetted")
        return result

    async def _fetch_all(self, result: CycleResult) -> list[RawProviderRecord]:
        self.stats.provider_calls += len(self.feeds)
        responses = await asyncio.gather(
            *(feed.fetch() for feed in self.feeds),
            return_exceptions=True,
        )
        records: list[RawProviderRecord] = []
        failures: list[ProviderId] = []
        for feed, response in zip(self.feeds, responses, strict=True):
            if isinstance(response, BaseException):
                if not isinstance(response, Exception):
                    raise response
                log.warning("Feed %s failed: %s", feed.provider, response)
                failures.append(feed.provider)
                continue
            if response is None:
                log.warning("Feed %s unavailable this cycle", feed.provider)
                failures.append(feed.provider)
                continue
            result.fetched[feed.provider] = len(response)
            records.extend(response)
        result.provider_failures = tuple(failures)
        return records

    async def _seed_pinned(self, result: CycleResult) -> list[RawProviderRecord]:
        """Look up pinned tokens the store lacks, so they do not depend on discovery."""

        if self.pinned_lookup is None:
            return []
        missing = self.store.missing_pinned()
        if not missing:
            return []
        self.stats.provider_calls += 1
        try:
            found = await self.pinned_lookup.lookup(missing)
        except Exception:  # noqa: BLE001
            log.exception("Pinned token lookup failed for %d tokens", len(missing))
            return []
        if found is None:
            log.warning("Pinned token lookup unavailable this cycle")
            return []
        result.seeded = len(found)
        log.info("Looked up %d of %d missing pinned tokens", len(found), len(missing))
        return list(found)

    async def _resolve_logos(
        self, candidates: Sequence[Candidate], result: CycleResult
    ) -> list[Candidate]:
        if self.logo_resolver is None:
            return list(candidates)
        bare = [candidate for candidate in candidates if candidate.market.logo_url is None]
        if not bare:
            return list(candidates)
        answers = await asyncio.gather(
            *(self.logo_resolver.resolve(candidate.key) for candidate in bare),
            return_exceptions=True,
        )
        logos: dict[TokenKey, str] = {}
        for candidate, answer in zip(bare, answers, strict=True):
            if isinstance(answer, BaseException):
                if not isinstance(answer, Exception):
                    raise answer
                log.warning("Logo lookup failed for %s: %s", candidate.key, answer)
            elif answer:
                logos[candidate.key] = answer
        result.logos_resolved = len(logos)
        return [
            replace(candidate, market=replace(candidate.market, logo_url=logos[candidate.key]))
            if candidate.key in logos
            else candidate
            for candidate in candidates
        ]

    def _publish(self, delta: Delta) -> int:
        failures = 0
        events = [(EventType.NEW, record) for record in delta.new]
        events += [(EventType.UPDATE, record) for record in delta.updated]
        for event_type, record in events:
            try:
                self.notifier.publish(event_type, record)
            except Exception:  # noqa: BLE001
                failures += 1
                log.exception("Notifier failed for %s %s", event_type, record.key)
        return failures
