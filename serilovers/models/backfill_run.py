from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from serilovers.database import Base


class BackfillRun(Base):
    """Logs each watching-state backfill run (scheduled or manual)."""

    __tablename__ = "backfill_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    trigger: Mapped[str] = mapped_column(String(50))

    pairs_total: Mapped[int] = mapped_column(Integer, default=0)
    pairs_processed: Mapped[int] = mapped_column(Integer, default=0)
    pairs_failed: Mapped[int] = mapped_column(Integer, default=0)

    status: Mapped[str] = mapped_column(String(50), default="running")
    error_message: Mapped[str] = mapped_column(Text, nullable=True)
