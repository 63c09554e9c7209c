from serilovers.models.watching_state import WatchingStatus


class InvalidArgumentError(ValueError):
    """Raised for unknown series or malformed ids."""


class ReviewNotAllowedError(Exception):
    """Raised when a review is attempted before the series is finished."""

    def __init__(self, current_state: WatchingStatus):
        self.current_state = current_state
        super().__init__(
            "Review creation is not allowed. Series must be in Finished state, "
            f"but current state is {current_state.display_name}"
        )
