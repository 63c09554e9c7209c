import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from serilovers.database import get_session
from serilovers.models import SeriesReview
from serilovers.routers.schemas import ReviewPayload
from serilovers.services.watching_state import validate_review_creation

logger = logging.getLogger(__name__)

router = APIRouter()


def review_to_dict(review: SeriesReview) -> dict:
    return {
        "id": review.id,
        "userId": review.user_id,
        "seriesId": review.series_id,
        "rating": review.rating,
        "comment": review.comment,
        "createdAt": review.created_at.isoformat()
    }


@router.post("/", status_code=201)
async def create_review(
    payload: ReviewPayload,
    session: AsyncSession = Depends(get_session)
):
    """Create a review. Only allowed once the user has finished the series."""
    await validate_review_creation(session, payload.user_id, payload.series_id)

    review = SeriesReview(
        user_id=payload.user_id,
        series_id=payload.series_id,
        rating=payload.rating,
        comment=payload.comment
    )
    session.add(review)
    await session.commit()
    await session.refresh(review)

    logger.info(f"User {payload.user_id} reviewed series {payload.series_id}")
    return review_to_dict(review)


@router.get("/series/{series_id}")
async def get_series_reviews(
    series_id: int,
    session: AsyncSession = Depends(get_session)
):
    """Get reviews for a series, newest first."""
    result = await session.execute(
        select(SeriesReview)
        .where(SeriesReview.series_id == series_id)
        .order_by(desc(SeriesReview.created_at), desc(SeriesReview.id))
    )
    return [review_to_dict(r) for r in result.scalars().all()]
