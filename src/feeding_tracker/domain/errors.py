"""Error taxonomy shared by the service, API and client layers."""


class FeedingTrackerError(Exception):
    """Base class for application errors."""


class AuthenticationError(FeedingTrackerError):
    """Raised when the caller has no valid identity."""


class FeedingNotFoundError(FeedingTrackerError):
    """Raised when a feeding is absent or owned by another user."""

    def __init__(self, message: str = "Feeding not found") -> None:
        super().__init__(message)


class FeedingValidationError(FeedingTrackerError):
    """Raised when feeding input is missing or malformed."""


class StorageError(FeedingTrackerError):
    """Raised when the storage backend fails unexpectedly."""


class TimerStateError(FeedingTrackerError):
    """Raised when a timer transition is not valid from the current state."""


class DraftValidationError(FeedingTrackerError):
    """Raised when a stopped timer draft cannot be saved yet."""
