"""
Series watching state.

Classifies a user's relationship to a series (ToWatch, InProgress, Finished)
from completed-episode counts, stores the result per (user, series) and
gates review creation on the Finished state.

The status is always recomputed from the counts, so a Finished series
drops back to InProgress when an episode is un-marked.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from serilovers.exceptions import InvalidArgumentError, ReviewNotAllowedError
from serilovers.models import Series, Season, Episode, EpisodeProgress, SeriesWatchingState, WatchingStatus

logger = logging.getLogger(__name__)


REVIEW_ALLOWED = {
    WatchingStatus.TO_WATCH: False,
    WatchingStatus.IN_PROGRESS: False,
    WatchingStatus.FINISHED: True,
}

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def next_status(total_episodes: int, watched_episodes: int) -> WatchingStatus:
    """Status for the given counts. Ignores whatever was stored before."""
    if total_episodes <= 0 or watched_episodes <= 0:
        return WatchingStatus.TO_WATCH
    if watched_episodes >= total_episodes:
        return WatchingStatus.FINISHED
    return WatchingStatus.IN_PROGRESS


@dataclass(frozen=True)
class WatchingStateHandler:
    """Behaviour attached to a single watching status."""
    status: WatchingStatus
    allows_review: bool

    def update_state(self, total_episodes: int, watched_episodes: int) -> WatchingStatus:
        return next_status(total_episodes, watched_episodes)

    def validate_review_creation(self):
        if not self.allows_review:
            raise ReviewNotAllowedError(self.status)


_HANDLERS = {
    status: WatchingStateHandler(status, REVIEW_ALLOWED[status])
    for status in WatchingStatus
}


def get_handler(status: WatchingStatus) -> WatchingStateHandler:
    """Get the handler for a status."""
    return _HANDLERS[WatchingStatus(status)]


def _validate_ids(user_id: int, series_id: int):
    if not isinstance(user_id, int) or user_id <= 0:
        raise InvalidArgumentError(f"Invalid user ID: {user_id}")
    if not isinstance(series_id, int) or series_id <= 0:
        raise InvalidArgumentError(f"Invalid series ID: {series_id}")


async def _require_series(session: AsyncSession, series_id: int):
    result = await session.execute(
        select(Series.id).where(Series.id == series_id)
    )
    if result.scalar_one_or_none() is None:
        logger.error(f"Series not found: {series_id}")
        raise InvalidArgumentError(f"Series with ID {series_id} not found")


def _series_episode_ids(series_id: int):
    return (
        select(Episode.id)
        .join(Season, Episode.season_id == Season.id)
        .where(Season.series_id == series_id)
    )


async def count_total_episodes(session: AsyncSession, series_id: int) -> int:
    """Count episodes across all seasons of a series."""
    await _require_series(session, series_id)
    result = await session.execute(
        select(func.count(Episode.id))
        .join(Season, Episode.season_id == Season.id)
        .where(Season.series_id == series_id)
    )
    return result.scalar_one()


async def count_watched_episodes(session: AsyncSession, user_id: int, series_id: int) -> int:
    """Count distinct completed episodes of a series for a user."""
    result = await session.execute(
        select(EpisodeProgress.episode_id, EpisodeProgress.is_completed).where(
            EpisodeProgress.user_id == user_id,
            EpisodeProgress.episode_id.in_(_series_episode_ids(series_id))
        )
    )
    rows = result.all()

    completed = {row.episode_id for row in rows if row.is_completed}
    incomplete = {row.episode_id for row in rows if not row.is_completed} - completed
    if incomplete:
        logger.debug(
            f"Ignoring {len(incomplete)} incomplete episodes for user {user_id}, "
            f"series {series_id}: {sorted(incomplete)}"
        )

    return len(completed)


async def _get_state(
    session: AsyncSession,
    user_id: int,
    series_id: int
) -> Optional[SeriesWatchingState]:
    result = await session.execute(
        select(SeriesWatchingState)
        .where(
            SeriesWatchingState.user_id == user_id,
            SeriesWatchingState.series_id == series_id
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _ensure_state(session: AsyncSession, user_id: int, series_id: int):
    """Insert a default ToWatch row unless one already exists."""
    dialect = session.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect: {dialect}")

    now = datetime.now()
    stmt = insert(SeriesWatchingState).values(
        user_id=user_id,
        series_id=series_id,
        status=WatchingStatus.TO_WATCH,
        watched_episodes_count=0,
        total_episodes_count=0,
        created_at=now,
        last_updated=now
    ).on_conflict_do_nothing(index_elements=["user_id", "series_id"])
    await session.execute(stmt)


async def _persist_state(
    session: AsyncSession,
    user_id: int,
    series_id: int,
    status: WatchingStatus,
    watched_episodes: int,
    total_episodes: int
) -> SeriesWatchingState:
    await _ensure_state(session, user_id, series_id)

    state = await _get_state(session, user_id, series_id)
    state.status = status
    state.watched_episodes_count = watched_episodes
    state.total_episodes_count = total_episodes
    state.last_updated = datetime.now()
    await session.flush()
    return state


async def _calculate_and_persist(
    session: AsyncSession,
    user_id: int,
    series_id: int,
    total_episodes: int
) -> WatchingStatus:

    if total_episodes == 0:
        watched_episodes = 0
    else:
        watched_episodes = await count_watched_episodes(session, user_id, series_id)

    current = await _get_state(session, user_id, series_id)
    current_status = current.status if current else WatchingStatus.TO_WATCH

    new_status = get_handler(current_status).update_state(total_episodes, watched_episodes)
    await _persist_state(session, user_id, series_id, new_status, watched_episodes, total_episodes)

    if current is None or new_status != current_status:
        logger.info(
            f"Watching state for user {user_id}, series {series_id}: "
            f"{current_status.display_name} -> {new_status.display_name} "
            f"({watched_episodes}/{total_episodes})"
        )

    return new_status


async def get_status(session: AsyncSession, user_id: int, series_id: int) -> WatchingStatus:
    """
    Get the stored watching status for a user and series.

    Computes and stores it if no record exists yet.
    """
    _validate_ids(user_id, series_id)

    state = await _get_state(session, user_id, series_id)
    if state is not None:
        return state.status

    try:
        total_episodes = await count_total_episodes(session, series_id)
        status = await _calculate_and_persist(session, user_id, series_id, total_episodes)
        await session.commit()
    except InvalidArgumentError:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to persist watching state for user {user_id}, series {series_id}: {e}")
        raise

    return status


async def update_status(session: AsyncSession, user_id: int, series_id: int) -> WatchingStatus:
    """
    Recompute the watching status from completed episodes and store it.

    Creating the default row and recomputing happen in one transaction.
    """
    _validate_ids(user_id, series_id)

    try:
        total_episodes = await count_total_episodes(session, series_id)
        await _ensure_state(session, user_id, series_id)
        status = await _calculate_and_persist(session, user_id, series_id, total_episodes)
        await session.commit()
    except InvalidArgumentError:
        await session.rollback()
        raise
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Failed to update watching state for user {user_id}, series {series_id}: {e}")
        raise

    return status


async def validate_review_creation(session: AsyncSession, user_id: int, series_id: int):
    """Raise ReviewNotAllowedError unless the user has finished the series."""
    status = await get_status(session, user_id, series_id)
    get_handler(status).validate_review_creation()
    logger.debug(f"Review creation allowed for user {user_id}, series {series_id}")


async def list_states(session: AsyncSession) -> list[SeriesWatchingState]:
    """Get all stored watching states with their series."""
    result = await session.execute(
        select(SeriesWatchingState)
        .options(selectinload(SeriesWatchingState.series))
        .order_by(SeriesWatchingState.id)
    )
    return list(result.scalars().all())
