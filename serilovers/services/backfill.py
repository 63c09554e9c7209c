import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from serilovers.database import async_session
from serilovers.models import BackfillRun, Episode, EpisodeProgress, Season
from serilovers.progress import progress
from serilovers.services.watching_state import update_status

logger = logging.getLogger(__name__)

_lock = asyncio.Lock()

# Keeps background backfill tasks referenced until they finish
_background_tasks: set[asyncio.Task] = set()


def is_backfill_running() -> bool:
    return _lock.locked()


async def find_progress_pairs(session: AsyncSession) -> list[tuple[int, int]]:
    """Get every (user, series) pair that has episode progress."""
    result = await session.execute(
        select(EpisodeProgress.user_id, Season.series_id)
        .join(Episode, EpisodeProgress.episode_id == Episode.id)
        .join(Season, Episode.season_id == Season.id)
        .distinct()
        .order_by(EpisodeProgress.user_id, Season.series_id)
    )
    return [(row.user_id, row.series_id) for row in result.all()]


async def run_backfill(trigger: str = "manual") -> Optional[BackfillRun]:
    """
    Recompute the watching state of every pair with progress history.

    Pairs are processed one at a time, each in its own session. A failing
    pair is counted and skipped. Returns None if a backfill is already running.
    """
    if _lock.locked():
        logger.warning("Backfill already running, skipping")
        return None

    async with _lock:
        return await _backfill(trigger)


async def start_backfill(trigger: str = "manual") -> Optional[asyncio.Task]:
    """
    Start a backfill in the background.

    The lock is held before this returns, so a second call made before the
    task gets to run sees the backfill as running and gets None.
    """
    if _lock.locked():
        logger.warning("Backfill already running, not starting another")
        return None

    # An unlocked asyncio.Lock is acquired without yielding to the loop
    await _lock.acquire()
    try:
        task = asyncio.create_task(_backfill_and_release(trigger))
    except Exception:
        _lock.release()
        raise

    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def _backfill_and_release(trigger: str) -> BackfillRun:
    try:
        return await _backfill(trigger)
    finally:
        _lock.release()


async def _backfill(trigger: str) -> BackfillRun:
    async with async_session() as session:
        pairs = await find_progress_pairs(session)

        run = BackfillRun(
            trigger=trigger,
            status="running",
            pairs_total=len(pairs)
        )
        session.add(run)
        await session.commit()
        await session.refresh(run)

        progress.start(run.id, len(pairs))
        logger.info(f"Starting {trigger} backfill of {len(pairs)} user/series pairs")

        processed = 0
        failed = 0

        try:
            for user_id, series_id in pairs:
                try:
                    async with async_session() as pair_session:
                        await update_status(pair_session, user_id, series_id)
                    processed += 1
                    progress.update(user_id, series_id, True)
                except Exception as e:
                    failed += 1
                    progress.update(user_id, series_id, False)
                    logger.warning(f"Backfill failed for user {user_id}, series {series_id}: {e}")

            run.status = "completed"
            logger.info(f"Backfill complete: {processed} processed, {failed} errors, {len(pairs)} total")

        except Exception as e:
            run.status = "failed"
            run.error_message = str(e)
            logger.error(f"Backfill failed: {e}")

        finally:
            progress.finish()

        run.completed_at = datetime.now()
        run.pairs_processed = processed
        run.pairs_failed = failed
        await session.commit()

        return run
