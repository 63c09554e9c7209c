from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from serilovers.database import get_session
from serilovers.exceptions import ReviewNotAllowedError
from serilovers.models import BackfillRun, WatchingStatus
from serilovers.progress import progress
from serilovers.services.backfill import run_backfill, start_backfill
from serilovers.services.watching_state import (
    get_status, update_status, validate_review_creation, list_states
)

router = APIRouter()


def status_response(user_id: int, series_id: int, status: WatchingStatus) -> dict:
    return {
        "userId": user_id,
        "seriesId": series_id,
        "status": status.display_name,
        "statusValue": int(status)
    }


@router.get("/status")
async def get_watching_status(
    user_id: int = Query(..., alias="userId"),
    series_id: int = Query(..., alias="seriesId"),
    session: AsyncSession = Depends(get_session)
):
    """Get the current watching status for a user and series."""
    status = await get_status(session, user_id, series_id)
    return status_response(user_id, series_id, status)


@router.post("/update")
async def update_watching_status(
    user_id: int = Query(..., alias="userId"),
    series_id: int = Query(..., alias="seriesId"),
    session: AsyncSession = Depends(get_session)
):
    """Recompute the watching status from watched episodes."""
    status = await update_status(session, user_id, series_id)
    return {
        **status_response(user_id, series_id, status),
        "message": "Status updated successfully"
    }


@router.post("/validate-review")
async def validate_review(
    user_id: int = Query(..., alias="userId"),
    series_id: int = Query(..., alias="seriesId"),
    session: AsyncSession = Depends(get_session)
):
    """Check whether the user may review the series."""
    try:
        await validate_review_creation(session, user_id, series_id)
    except ReviewNotAllowedError as e:
        return JSONResponse({
            "userId": user_id,
            "seriesId": series_id,
            "canCreateReview": False,
            "message": str(e),
            "currentState": e.current_state.display_name
        }, status_code=400)

    return {
        "userId": user_id,
        "seriesId": series_id,
        "canCreateReview": True,
        "message": "Review creation is allowed"
    }


@router.post("/backfill")
async def trigger_backfill(wait: bool = Query(False)):
    """Recompute watching states for every pair with episode progress."""
    if not wait:
        if await start_backfill(trigger="manual") is None:
            return JSONResponse({"message": "Backfill already running"}, status_code=409)
        return {"status": "started"}

    run = await run_backfill(trigger="manual")
    if run is None:
        return JSONResponse({"message": "Backfill already running"}, status_code=409)

    return {
        "message": "Backfill completed",
        "processed": run.pairs_processed,
        "errors": run.pairs_failed,
        "total": run.pairs_total
    }


@router.get("/backfill/progress")
async def get_backfill_progress():
    """Get current backfill progress."""
    from serilovers.scheduler import get_next_run_time

    next_run = get_next_run_time()
    return JSONResponse({
        **progress.to_dict(),
        "nextScheduledRun": next_run.isoformat() if next_run else None
    })


@router.get("/backfill/last-run")
async def get_last_backfill(session: AsyncSession = Depends(get_session)):
    """Get the most recent backfill run."""
    result = await session.execute(
        select(BackfillRun).order_by(desc(BackfillRun.started_at), desc(BackfillRun.id)).limit(1)
    )
    run = result.scalar_one_or_none()

    if not run:
        return Response(status_code=204)

    return {
        "id": run.id,
        "trigger": run.trigger,
        "status": run.status,
        "startedAt": run.started_at.isoformat(),
        "completedAt": run.completed_at.isoformat() if run.completed_at else None,
        "processed": run.pairs_processed,
        "errors": run.pairs_failed,
        "total": run.pairs_total,
        "errorMessage": run.error_message
    }


@router.get("/all")
async def get_all_states(session: AsyncSession = Depends(get_session)):
    """Get every stored watching state."""
    states = await list_states(session)

    return {
        "count": len(states),
        "states": [
            {**state.to_dict(), "seriesTitle": state.series.title if state.series else "Unknown"}
            for state in states
        ]
    }
