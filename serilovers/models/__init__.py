from serilovers.models.catalog import Series, Season, Episode
from serilovers.models.episode_progress import EpisodeProgress
from serilovers.models.watching_state import SeriesWatchingState, WatchingStatus
from serilovers.models.review import SeriesReview
from serilovers.models.backfill_run import BackfillRun

__all__ = [
    "Series",
    "Season",
    "Episode",
    "EpisodeProgress",
    "SeriesWatchingState",
    "WatchingStatus",
    "SeriesReview",
    "BackfillRun"
]
