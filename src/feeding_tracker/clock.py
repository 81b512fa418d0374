"""Clock used for elapsed-time and window-boundary computation."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current instant in UTC."""
    return datetime.now(tz=UTC)
