"""
Periodic maintenance jobs run inside the API process by APScheduler.

Usage
-----
    background_jobs = build_background_jobs([api_limiter, auth_limiter], login_tracker)

    background_jobs.start()          # in the lifespan startup
    ...
    await background_jobs.stop()     # on shutdown
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timezone
from typing import Any, Awaitable, Callable, Optional, Sequence

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from paperforum.config import settings
from paperforum.database import AsyncSessionLocal
from paperforum.services.analytics import update_trending_topics
from paperforum.services.notifications import cleanup_read_notifications
from paperforum.services.rate_limiter import FixedWindowRateLimiter
from paperforum.services.security import LoginAttemptTracker

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Individual jobs
# ---------------------------------------------------------------------------

async def sweep_rate_limiters(
    limiters: Sequence[FixedWindowRateLimiter],
    login_tracker: Optional[LoginAttemptTracker] = None,
) -> int:
    """Drop expired rate-limit windows and stale login-failure records."""
    removed = sum(limiter.sweep() for limiter in limiters)
    if login_tracker is not None:
        removed += login_tracker.sweep()
    if removed:
        logger.debug("In-memory sweep removed %d expired entries", removed)
    return removed


async def refresh_trending_topics() -> int:
    async with AsyncSessionLocal() as session:
        try:
            count = await update_trending_topics(session)
            await session.commit()
            return count
        except Exception:
            await session.rollback()
            raise


async def purge_old_notifications() -> int:
    async with AsyncSessionLocal() as session:
        try:
            removed = await cleanup_read_notifications(session, settings.NOTIFICATION_RETENTION_DAYS)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    logger.info("Removed %d read notifications", removed)
    return removed


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class BackgroundJobs:
    """
    Wraps an ``AsyncIOScheduler`` running interval jobs on the app's event
    loop.  Jobs may be added before ``start()``; a failing run is logged by
    APScheduler and the job keeps its schedule.
    """

    def __init__(self) -> None:
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)

    def add_interval_job(
        self,
        job_id: str,
        seconds: float,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Job:
        if seconds <= 0:
            raise ValueError("seconds must be positive")
        return self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds, timezone=timezone.utc),
            args=list(args),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def get(self, job_id: str) -> Optional[Job]:
        return self.scheduler.get_job(job_id)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Start the scheduler (idempotent).  Must be called from a running event loop."""
        if self.scheduler.running:
            return
        self.scheduler.start()
        for job in self.scheduler.get_jobs():
            logger.info("Background job %s scheduled (%s)", job.id, job.trigger)

    async def stop(self) -> None:
        if not self.scheduler.running:
            return
        self.scheduler.shutdown(wait=False)
        # AsyncIOScheduler hands shutdown to the event loop
        await asyncio.sleep(0)
        logger.info("Background jobs stopped")


def build_background_jobs(
    limiters: Sequence[FixedWindowRateLimiter],
    login_tracker: Optional[LoginAttemptTracker] = None,
) -> BackgroundJobs:
    jobs = BackgroundJobs()
    jobs.add_interval_job(
        "rate_limit_sweep",
        settings.RATE_LIMIT_SWEEP_SECONDS,
        sweep_rate_limiters,
        list(limiters),
        login_tracker,
    )
    jobs.add_interval_job("trending_topics", settings.TRENDING_REFRESH_SECONDS, refresh_trending_topics)
    jobs.add_interval_job(
        "notification_cleanup",
        settings.NOTIFICATION_CLEANUP_SECONDS,
        purge_old_notifications,
    )
    return jobs
