from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from serilovers.config import settings, configure_logging
from serilovers.database import init_db
from serilovers.exceptions import InvalidArgumentError, ReviewNotAllowedError
from serilovers.routers import watching_state_router, episode_progress_router, reviews_router
from serilovers.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    if settings.create_tables:
        await init_db()
    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()


app = FastAPI(title="SeriLovers", lifespan=lifespan)

# Include routers
app.include_router(watching_state_router, prefix="/api/admin/watching-state", tags=["watching-state"])
app.include_router(episode_progress_router, prefix="/api/episode-progress", tags=["episode-progress"])
app.include_router(reviews_router, prefix="/api/reviews", tags=["reviews"])


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    logger.warning(f"Invalid argument: {exc}")
    return JSONResponse({"message": str(exc)}, status_code=400)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse({"message": message}, status_code=400)


@app.exception_handler(ReviewNotAllowedError)
async def review_not_allowed_handler(request: Request, exc: ReviewNotAllowedError):
    return JSONResponse({
        "canCreateReview": False,
        "message": str(exc),
        "currentState": exc.current_state.display_name
    }, status_code=400)


@app.get("/health")
async def health():
    return {"status": "ok"}
