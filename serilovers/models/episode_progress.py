from sqlalchemy import Integer, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from serilovers.database import Base


class EpisodeProgress(Base):
    """Records that a user watched an episode."""

    __tablename__ = "episode_progress"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    episode_id: Mapped[int] = mapped_column(ForeignKey("episodes.id", ondelete="CASCADE"), index=True)
    watched_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    # False means started but not finished
    is_completed: Mapped[bool] = mapped_column(Boolean, default=True)
