"""Scheduled TTL sweep for the match cache."""

import logging
import time
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .match_cache import MatchCache

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "cleanup_match_cache"


def run_cleanup(cache: MatchCache) -> int:
    """Run one sweep and log how long it took."""
    start = time.monotonic()
    deleted = cache.cleanup_expired_cache()
    duration_ms = (time.monotonic() - start) * 1000
    logger.info("cleanup_complete deleted=%d duration_ms=%.0f", deleted, duration_ms)
    return deleted


def start_cleanup_scheduler(
    cache: MatchCache,
    interval_minutes: int = 60,
    scheduler: Optional[AsyncIOScheduler] = None,
) -> AsyncIOScheduler:
    """Register the sweep job on an AsyncIOScheduler and start it.

    Must be called with a running event loop.
    """
    scheduler = scheduler or AsyncIOScheduler()
    scheduler.add_job(
        run_cleanup,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[cache],
        id=CLEANUP_JOB_ID,
        name="Delete expired match cache entries",
        replace_existing=True,
        max_instances=1,  # Prevent overlapping sweeps
    )
    if not scheduler.running:
        scheduler.start()
    logger.info("cleanup_scheduler_started interval_minutes=%d", interval_minutes)
    return scheduler
