from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime
from typing import Optional
import logging

from serilovers.config import settings

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

BACKFILL_JOB_ID = "serilovers_backfill"


def get_next_run_time() -> Optional[datetime]:
    """Get the next scheduled backfill time."""
    job = scheduler.get_job(BACKFILL_JOB_ID)
    if job:
        return getattr(job, "next_run_time", None)
    return None


async def scheduled_backfill():
    """Run the backfill job."""
    from serilovers.services.backfill import run_backfill
    logger.info("Starting scheduled backfill")
    await run_backfill(trigger="scheduled")


def update_schedule(interval_hours: int):
    """Replace the backfill job. Zero or less disables it."""
    if scheduler.get_job(BACKFILL_JOB_ID):
        scheduler.remove_job(BACKFILL_JOB_ID)

    if interval_hours <= 0:
        logger.info("Scheduled backfill disabled")
        return

    trigger = IntervalTrigger(hours=interval_hours)
    scheduler.add_job(scheduled_backfill, trigger, id=BACKFILL_JOB_ID)
    logger.info(f"Scheduled backfill every {interval_hours} hour(s)")


def start_scheduler():
    """Start the scheduler."""
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")
    update_schedule(settings.backfill_interval_hours)


def stop_scheduler():
    """Stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
