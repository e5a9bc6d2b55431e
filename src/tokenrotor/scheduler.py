"""Asyncio runner for the periodic refresh, vetting and rotation jobs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from logging import getLogger

log = getLogger(__name__)

type JobAction = Callable[[], Awaitable[object]]
type Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class PeriodicJob:
    """An async action repeated every ``interval`` seconds."""

    name: str
    interval: float
    action: JobAction
    run_immediately: bool = True
    runs: int = 0
    failures: int = 0

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"Job {self.name!r} needs a positive interval")


@dataclass(slots=True)
class Scheduler:
    """Runs every job on its own cadence until cancelled.

    A failing run is logged and the job simply waits for its next tick.
    """

    jobs: list[PeriodicJob] = field(default_factory=list)
    sleep: Sleep = asyncio.sleep

    def add(self, job: PeriodicJob) -> None:
        self.jobs.append(job)

    async def run(self, *, max_runs: int | None = None) -> None:
        if not self.jobs:
            log.warning("Scheduler started without jobs")
            return
        log.info(
            "Scheduler started: %s",
            ", ".join(f"{job.name} every {job.interval:.0f}s" for job in self.jobs),
        )
        await asyncio.gather(*(self._loop(job, max_runs=max_runs) for job in self.jobs))

    async def run_once(self, job: PeriodicJob) -> bool:
        """Execute one run of ``job``; return whether it succeeded."""

        job.runs += 1
        try:
            await job.action()
        except Exception:  # noqa: BLE001
            job.failures += 1
            log.exception("Scheduled job %s failed; retrying in %.0fs", job.name, job.interval)
            return False
        return True

    async def _loop(self, job: PeriodicJob, *, max_runs: int | None) -> None:
        if not job.run_immediately:
            await self.sleep(job.interval)
        while max_runs is None or job.runs < max_runs:
            await self.run_once(job)
            if max_runs is not None and job.runs >= max_runs:
                break
            await self.sleep(job.interval)
