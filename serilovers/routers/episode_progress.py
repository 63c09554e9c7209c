from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from serilovers.database import get_session
from serilovers.models import Episode, EpisodeProgress, Season
from serilovers.routers.schemas import EpisodeProgressPayload
from serilovers.services.watching_state import update_status

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_episode_series_id(session: AsyncSession, episode_id: int) -> int:
    """Get the series an episode belongs to, or 404."""
    result = await session.execute(
        select(Season.series_id)
        .join(Episode, Episode.season_id == Season.id)
        .where(Episode.id == episode_id)
    )
    series_id = result.scalar_one_or_none()
    if series_id is None:
        raise HTTPException(status_code=404, detail=f"Episode {episode_id} not found")
    return series_id


@router.post("/")
async def mark_episode(
    payload: EpisodeProgressPayload,
    session: AsyncSession = Depends(get_session)
):
    """Mark an episode as watched (or started) and recompute the series status."""
    series_id = await get_episode_series_id(session, payload.episode_id)

    result = await session.execute(
        select(EpisodeProgress).where(
            EpisodeProgress.user_id == payload.user_id,
            EpisodeProgress.episode_id == payload.episode_id
        )
    )
    existing = result.scalars().all()

    if existing:
        for record in existing:
            record.is_completed = payload.is_completed
            record.watched_at = datetime.now()
    else:
        session.add(EpisodeProgress(
            user_id=payload.user_id,
            episode_id=payload.episode_id,
            is_completed=payload.is_completed,
            watched_at=datetime.now()
        ))

    await session.commit()
    logger.info(
        f"User {payload.user_id} marked episode {payload.episode_id} "
        f"{'completed' if payload.is_completed else 'started'}"
    )

    status = await update_status(session, payload.user_id, series_id)

    return {
        "userId": payload.user_id,
        "episodeId": payload.episode_id,
        "seriesId": series_id,
        "isCompleted": payload.is_completed,
        "status": status.display_name,
        "statusValue": int(status)
    }


@router.delete("/{episode_id}")
async def unmark_episode(
    episode_id: int,
    user_id: int = Query(..., alias="userId"),
    session: AsyncSession = Depends(get_session)
):
    """Remove episode progress (mark as unwatched) and recompute the series status."""
    series_id = await get_episode_series_id(session, episode_id)

    result = await session.execute(
        delete(EpisodeProgress).where(
            EpisodeProgress.user_id == user_id,
            EpisodeProgress.episode_id == episode_id
        )
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Episode progress not found")

    await session.commit()
    logger.info(f"User {user_id} unmarked episode {episode_id}")

    status = await update_status(session, user_id, series_id)

    return {
        "userId": user_id,
        "episodeId": episode_id,
        "seriesId": series_id,
        "status": status.display_name,
        "statusValue": int(status)
    }
