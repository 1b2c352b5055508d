"""
In-process interval scheduler for sync jobs.

A SchedulerHandle is created once per process (the web app's lifespan)
and owns its tasks and last-run timestamps. On start it runs a job right
away when the last run is stale, then repeats it on a fixed interval:

- Incremental sync: immediately if the last one is over 1 hour old,
  then every 6 hours
- Rankings sync: immediately if the last one is over 24 hours old,
  then every 7 days

Production deployments trigger syncs through the cron route instead, so
several app instances don't each run their own scheduler.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Optional

from fightwatch.config import Settings, settings

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]
SleepFunc = Callable[[float], Awaitable[Any]]


def scheduler_allowed(config: Settings = settings) -> bool:
    """The scheduler only runs when enabled and outside production."""
    return config.scheduler_enabled and not config.is_production


@dataclass
class ScheduledJob:
    """One recurring job and its bookkeeping."""
    name: str
    func: JobFunc
    interval: timedelta
    stale_after: timedelta
    last_run_at: Optional[datetime] = None

    def is_stale(self, now: datetime) -> bool:
        return self.last_run_at is None or now - self.last_run_at > self.stale_after


class SchedulerHandle:
    """
    Owns the scheduler's tasks and last-run state.

    Usage:
        handle = SchedulerHandle.from_settings(run_incremental_sync, run_rankings_sync)
        handle.start()
        ...
        await handle.stop()
    """

    def __init__(
        self,
        jobs: list[ScheduledJob],
        clock: Callable[[], datetime] = datetime.utcnow,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.jobs = jobs
        self._clock = clock
        self._sleep = sleep
        self._tasks: list[asyncio.Task] = []

    @classmethod
    def from_settings(
        cls,
        sync_job: JobFunc,
        rankings_job: JobFunc,
        last_sync_at: Optional[datetime] = None,
        last_rankings_at: Optional[datetime] = None,
        config: Settings = settings,
    ) -> "SchedulerHandle":
        return cls([
            ScheduledJob(
                name="incremental sync",
                func=sync_job,
                interval=timedelta(hours=config.scheduler_sync_interval_hours),
                stale_after=timedelta(hours=config.scheduler_sync_stale_hours),
                last_run_at=last_sync_at,
            ),
            ScheduledJob(
                name="rankings sync",
                func=rankings_job,
                interval=timedelta(days=config.scheduler_rankings_interval_days),
                stale_after=timedelta(hours=config.scheduler_rankings_stale_hours),
                last_run_at=last_rankings_at,
            ),
        ])

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def last_run_at(self, name: str) -> Optional[datetime]:
        for job in self.jobs:
            if job.name == name:
                return job.last_run_at
        return None

    def start(self) -> bool:
        """
        Start one task per job. Must be called from a running event loop.

        Returns False (and starts nothing) if already running.
        """
        if self.is_running:
            logger.warning("Scheduler already running; not starting another")
            return False

        self._tasks = [
            asyncio.create_task(self._job_loop(job), name=f"scheduler:{job.name}")
            for job in self.jobs
        ]
        logger.info("Scheduler started with %d jobs", len(self._tasks))
        return True

    async def stop(self) -> None:
        """Cancel all job tasks and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Scheduler stopped")

    async def _job_loop(self, job: ScheduledJob) -> None:
        if job.is_stale(self._clock()):
            logger.info("Last %s is stale; running now", job.name)
            await self._run(job)

        while True:
            await self._sleep(job.interval.total_seconds())
            await self._run(job)

    async def _run(self, job: ScheduledJob) -> None:
        logger.info("Scheduled %s starting", job.name)
        try:
            result = await job.func()
        except Exception:
            logger.exception("Scheduled %s failed", job.name)
            return

        if getattr(result, "success", True):
            job.last_run_at = self._clock()
            logger.info("Scheduled %s finished", job.name)
        else:
            logger.warning("Scheduled %s reported failure: %s", job.name, getattr(result, "error", None))
