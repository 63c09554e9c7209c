import enum

from sqlalchemy import Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from serilovers.database import Base
from serilovers.models.catalog import Series


class WatchingStatus(enum.IntEnum):
    """How far a user has got through a series."""

    TO_WATCH = 0
    IN_PROGRESS = 1
    FINISHED = 2

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    WatchingStatus.TO_WATCH: "ToWatch",
    WatchingStatus.IN_PROGRESS: "InProgress",
    WatchingStatus.FINISHED: "Finished",
}


class SeriesWatchingState(Base):
    """Stored watching status for one user and one series."""

    __tablename__ = "series_watching_states"
    __table_args__ = (
        UniqueConstraint("user_id", "series_id", name="uq_watching_state_user_series"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    series_id: Mapped[int] = mapped_column(ForeignKey("series.id", ondelete="CASCADE"), index=True)

    status: Mapped[WatchingStatus] = mapped_column(
        Enum(WatchingStatus, native_enum=False, length=20),
        default=WatchingStatus.TO_WATCH
    )
    watched_episodes_count: Mapped[int] = mapped_column(Integer, default=0)
    total_episodes_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    series: Mapped[Series] = relationship()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "seriesId": self.series_id,
            "status": self.status.display_name,
            "statusValue": int(self.status),
            "watchedEpisodesCount": self.watched_episodes_count,
            "totalEpisodesCount": self.total_episodes_count,
            "createdAt": self.created_at.isoformat(),
            "lastUpdated": self.last_updated.isoformat()
        }
