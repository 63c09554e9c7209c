from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass
class BackfillProgress:
    """Tracks current backfill progress."""
    is_running: bool = False
    run_id: Optional[int] = None
    current_user_id: Optional[int] = None
    current_series_id: Optional[int] = None
    processed_count: int = 0
    failed_count: int = 0
    total_count: int = 0
    started_at: Optional[datetime] = None

    def start(self, run_id: int, total: int):
        self.is_running = True
        self.run_id = run_id
        self.current_user_id = None
        self.current_series_id = None
        self.processed_count = 0
        self.failed_count = 0
        self.total_count = total
        self.started_at = datetime.now()

    def update(self, user_id: int, series_id: int, success: bool):
        self.current_user_id = user_id
        self.current_series_id = series_id
        if success:
            self.processed_count += 1
        else:
            self.failed_count += 1

    def finish(self):
        self.is_running = False
        self.current_user_id = None
        self.current_series_id = None

    def to_dict(self) -> dict:
        return {
            "isRunning": self.is_running,
            "runId": self.run_id,
            "currentUserId": self.current_user_id,
            "currentSeriesId": self.current_series_id,
            "processed": self.processed_count,
            "errors": self.failed_count,
            "total": self.total_count,
            "startedAt": self.started_at.isoformat() if self.started_at else None
        }


# Global progress instance
progress = BackfillProgress()
