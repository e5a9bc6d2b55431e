"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from tokenrotor.adapters.birdeye import BirdEyeFeed, project_birdeye
from tokenrotor.adapters.dexscreener import DexScreenerFeed, project_dexscreener
from tokenrotor.adapters.http_resilience import default_client_factory
from tokenrotor.adapters.logos import TrustWalletLogoResolver
from tokenrotor.adapters.moralis import MoralisFeed, project_moralis
from tokenrotor.adapters.notifier import LoggingNotifier, WebhookNotifier
from tokenrotor.adapters.solscan import SolscanFeed, project_solscan
from tokenrotor.adapters.sqlalchemy import SqlAlchemyTokenUnitOfWork, is_started, startup
from tokenrotor.adapters.vetting import WebhookVettingCollaborator
from tokenrotor.config import (
    MissingConfigurationError,
    NotifierConfig,
    RotationConfig,
    ScheduleConfig,
    VettingConfig,
    get_birdeye_config,
    get_dexscreener_config,
    get_logo_lookup_config,
    get_moralis_config,
    get_notifier_config,
    get_rotation_config,
    get_schedule_config,
    get_solscan_config,
    get_vetting_config,
)
from tokenrotor.domain.model import ProviderId
from tokenrotor.domain.normalization import Normalizer
from tokenrotor.domain.ports import TokenLookup
from tokenrotor.domain.reconciliation import PublicationPolicy, Reconciler
from tokenrotor.domain.refresh import RefreshCycle
from tokenrotor.domain.rotation import RotationStore
from tokenrotor.domain.scoring import Scorer
from tokenrotor.domain.vetting import VettingDispatcher
from tokenrotor.scheduler import PeriodicJob, Scheduler

if TYPE_CHECKING:
    from tokenrotor.adapters.http_resilience import ResilienceConfig, ResilientClient
    from tokenrotor.domain.model import TokenKey, TokenRecord
    from tokenrotor.domain.normalization import Projection
    from tokenrotor.domain.ports import (
        FeedAdapter,
        LogoResolver,
        Notifier,
        TokenUnitOfWork,
        VettingCollaborator,
    )
    from tokenrotor.domain.refresh import CycleResult
    from tokenrotor.domain.vetting import DispatchSummary

type UnitOfWorkFactory = Callable[[], TokenUnitOfWork]
type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)

PROJECTIONS: dict[ProviderId, Projection] = {
    ProviderId.DEXSCREENER: project_dexscreener,
    ProviderId.BIRDEYE: project_birdeye,
    ProviderId.MORALIS: project_moralis,
    ProviderId.SOLSCAN: project_solscan,
}


@dataclass(slots=True)
class Services:
    """The wired core services sharing one store and one single-active guard."""

    cycle: RefreshCycle
    store: RotationStore
    notifier: Notifier
    dispatcher: VettingDispatcher | None
    vetting: VettingConfig
    schedule: ScheduleConfig

    async def aclose(self) -> None:
        if isinstance(self.notifier, WebhookNotifier):
            await self.notifier.aclose()
        if isinstance(self.cycle.logo_resolver, TrustWalletLogoResolver):
            await self.cycle.logo_resolver.aclose()


def build_feeds(*, client_factory: ClientFactory = default_client_factory) -> list[FeedAdapter]:
    """DexScreener is always wired; keyed providers only when their key is set."""

    feeds: list[FeedAdapter] = [
        DexScreenerFeed(config=get_dexscreener_config(), client_factory=client_factory)
    ]
    if (birdeye := get_birdeye_config()) is not None:
        feeds.append(BirdEyeFeed(config=birdeye, client_factory=client_factory))
    if (moralis := get_moralis_config()) is not None:
        feeds.append(MoralisFeed(config=moralis, client_factory=client_factory))
    if (solscan := get_solscan_config()) is not None:
        feeds.append(SolscanFeed(config=solscan, client_factory=client_factory))
    log.info("Wired feeds: %s", ", ".join(feed.provider for feed in feeds))
    return feeds


def build_normalizer() -> Normalizer:
    return Normalizer(projections=PROJECTIONS)


def build_notifier(config: NotifierConfig | None = None) -> Notifier:
    resolved = config or get_notifier_config()
    if resolved.webhook_url:
        return WebhookNotifier(config=resolved)
    return LoggingNotifier()


def build_logo_resolver() -> LogoResolver | None:
    config = get_logo_lookup_config()
    return TrustWalletLogoResolver(config=config) if config is not None else None


def pinned_lookup_for(
    feeds: list[FeedAdapter], pinned: frozenset[TokenKey]
) -> TokenLookup | None:
    """The first feed able to look tokens up directly, when any token is pinned."""

    if not pinned:
        return None
    lookup = next((feed for feed in feeds if isinstance(feed, TokenLookup)), None)
    if lookup is None:
        log.warning("No feed supports token lookups; pinned tokens rely on discovery")
    return lookup


def build_collaborator(config: VettingConfig) -> VettingCollaborator | None:
    if not config.webhook_url:
        log.warning("VETTING_WEBHOOK_URL is not set; tokens stay unvetted")
        return None
    return WebhookVettingCollaborator(config=config)


def build_services(  # noqa: PLR0913
    *,
    feeds: list[FeedAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: Notifier | None = None,
    collaborator: VettingCollaborator | None = None,
    rotation: RotationConfig | None = None,
    vetting: VettingConfig | None = None,
    schedule: ScheduleConfig | None = None,
    logo_resolver: LogoResolver | None = None,
) -> Services:
    """Wire adapters into the core services from configuration."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyTokenUnitOfWork
    rotation_config = rotation or get_rotation_config()
    vetting_config = vetting or get_vetting_config()
    scorer = Scorer()

    store = RotationStore(
        unit_of_work_factory=unit_of_work_factory,
        capacity=rotation_config.capacity,
        scorer=scorer,
        pinned=rotation_config.pinned,
    )
    effective_collaborator = collaborator or build_collaborator(vetting_config)
    dispatcher = (
        VettingDispatcher(
            unit_of_work_factory=unit_of_work_factory,
            collaborator=effective_collaborator,
            scorer=scorer,
            batch_size=vetting_config.batch_size,
            dispatch_delay=vetting_config.dispatch_delay_seconds,
            max_attempts=vetting_config.max_attempts,
        )
        if effective_collaborator is not None
        else None
    )
    effective_notifier = notifier or build_notifier()
    effective_feeds = feeds if feeds is not None else build_feeds()
    cycle = RefreshCycle(
        feeds=effective_feeds,
        normalizer=build_normalizer(),
        reconciler=Reconciler(
            policy=PublicationPolicy(
                min_age_days=rotation_config.min_age_days,
                pinned=rotation_config.pinned,
            )
        ),
        store=store,
        notifier=effective_notifier,
        dispatcher=dispatcher,
        pinned_lookup=pinned_lookup_for(effective_feeds, rotation_config.pinned),
        logo_resolver=logo_resolver or build_logo_resolver(),
    )
    return Services(
        cycle=cycle,
        store=store,
        notifier=effective_notifier,
        dispatcher=dispatcher,
        vetting=vetting_config,
        schedule=schedule or get_schedule_config(),
    )


def _require_dispatcher(services: Services) -> VettingDispatcher:
    if services.dispatcher is None:
        raise MissingConfigurationError.for_names(["VETTING_WEBHOOK_URL"])
    return services.dispatcher


async def _refresh(services: Services) -> CycleResult:
    try:
        return await services.cycle.run()
    finally:
        await services.aclose()


async def _rotate(services: Services) -> CycleResult:
    try:
        return await services.cycle.rotate()
    finally:
        await services.aclose()


def refresh_listings(*, services: Services | None = None) -> CycleResult:
    """Run one refresh cycle."""

    effective = services or build_services()
    result = asyncio.run(_refresh(effective))
    log.info(
        "Refresh %s: new=%d updated=%d evicted=%d in %.0fms",
        result.status,
        len(result.delta.new),
        len(result.delta.updated),
        len(result.evicted),
        result.duration_ms,
    )
    return result


def rotate_listings(*, services: Services | None = None) -> CycleResult:
    """Wipe every non-pinned listing and repopulate it."""

    effective = services or build_services()
    result = asyncio.run(_rotate(effective))
    log.info("Rotation %s: wiped=%d new=%d", result.status, result.wiped, len(result.delta.new))
    return result


def vet_pending(*, limit: int | None = None, services: Services | None = None) -> DispatchSummary:
    """Dispatch vetting for unvetted tokens, releasing stale claims first."""

    effective = services or build_services()
    dispatcher = _require_dispatcher(effective)
    dispatcher.release_stale_claims(
        max_age=timedelta(seconds=effective.vetting.stale_claim_seconds)
    )
    return asyncio.run(dispatcher.dispatch_pending(limit=limit))


def record_vote(key: TokenKey, score: float, *, services: Services | None = None) -> TokenRecord:
    """Store a community score supplied by user votes."""

    effective = services or build_services()
    record = effective.store.record_vote(key, score)
    log.info("Recorded community score %.2f for %s", score, key)
    return record


def build_scheduler(services: Services) -> Scheduler:
    schedule = services.schedule
    scheduler = Scheduler()
    scheduler.add(PeriodicJob("refresh", schedule.refresh_seconds, services.cycle.run))
    scheduler.add(
        PeriodicJob(
            "rotation",
            schedule.rotation_seconds,
            services.cycle.rotate,
            run_immediately=False,
        )
    )
    dispatcher = services.dispatcher
    if dispatcher is not None:
        max_age = timedelta(seconds=services.vetting.stale_claim_seconds)

        async def release_stale() -> int:
            return dispatcher.release_stale_claims(max_age=max_age)

        scheduler.add(
            PeriodicJob("vetting", schedule.vetting_seconds, dispatcher.dispatch_pending)
        )
        scheduler.add(PeriodicJob("release-stale-claims", schedule.release_seconds, release_stale))
    return scheduler


async def _serve(services: Services, *, max_runs: int | None) -> None:
    try:
        await build_scheduler(services).run(max_runs=max_runs)
    finally:
        await services.aclose()


def serve(*, services: Services | None = None, max_runs: int | None = None) -> None:
    """Run the periodic jobs until interrupted."""

    effective = services or build_services()
    asyncio.run(_serve(effective, max_runs=max_runs))
