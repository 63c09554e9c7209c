from serilovers.routers.watching_state import router as watching_state_router
from serilovers.routers.episode_progress import router as episode_progress_router
from serilovers.routers.reviews import router as reviews_router

__all__ = ["watching_state_router", "episode_progress_router", "reviews_router"]
