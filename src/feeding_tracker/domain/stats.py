"""Domain models for feeding statistics."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StatWindow:
    """Trailing calendar-day window used for statistics."""

    label: str
    days: int


STAT_WINDOWS: tuple[StatWindow, ...] = (
    StatWindow(label="Today", days=0),
    StatWindow(label="Last 3 Days", days=3),
    StatWindow(label="Last 7 Days", days=7),
    StatWindow(label="Last 30 Days", days=30),
)


@dataclass(frozen=True)
class WindowStats:
    """Aggregated feeding statistics for one window."""

    window: StatWindow
    sessions: int
    total_seconds: int
    average_seconds: int
    avg_sessions_per_day: float
    has_enough_data: bool
