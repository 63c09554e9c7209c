from serilovers.services.watching_state import (
    get_status,
    update_status,
    validate_review_creation,
    get_handler,
    next_status
)
from serilovers.services.backfill import run_backfill, start_backfill

__all__ = [
    "get_status",
    "update_status",
    "validate_review_creation",
    "get_handler",
    "next_status",
    "run_backfill",
    "start_backfill"
]
