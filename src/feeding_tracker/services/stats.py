"""Rolling feeding statistics over fixed calendar windows."""

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from feeding_tracker.clock import utc_now
from feeding_tracker.domain.feedings import FeedingFilter, FeedingSession
from feeding_tracker.domain.stats import STAT_WINDOWS, StatWindow, WindowStats
from feeding_tracker.services.feedings import FeedingService

SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


@dataclass
class StatsService:
    """Service computing per-window statistics in the caller's timezone."""

    feeding_service: FeedingService
    clock: Callable[[], datetime] = field(default=utc_now)
    history_limit: int = 1000

    def get_window_stats(
        self, owner_id: UUID, timezone_name: str
    ) -> list[WindowStats]:
        """Return statistics for every window, in display order."""
        tz = ZoneInfo(timezone_name)
        now = self.clock().astimezone(tz)
        feedings = self.feeding_service.list_feedings(
            owner_id, FeedingFilter(limit=self.history_limit)
        )
        earliest = self.feeding_service.earliest_started_at(owner_id)
        return summarize_windows(feedings, now, earliest=earliest)


def summarize_windows(
    feedings: Sequence[FeedingSession],
    now: datetime,
    earliest: datetime | None = None,
    windows: Sequence[StatWindow] = STAT_WINDOWS,
) -> list[WindowStats]:
    """Aggregate feedings into each window relative to local ``now``.

    ``now`` must be timezone-aware; its zone defines calendar days. When
    ``earliest`` is omitted the oldest start among ``feedings`` is used.
    """
    if earliest is None and feedings:
        earliest = min(feeding.started_at for feeding in feedings)
    return [_summarize_window(window, feedings, now, earliest) for window in windows]


def window_bounds(window: StatWindow, now: datetime) -> tuple[datetime, datetime]:
    """Return the inclusive local start and end instants of a window."""
    tz = now.tzinfo
    today = now.date()
    start = datetime.combine(today - timedelta(days=window.days), time.min, tzinfo=tz)
    end = datetime.combine(today, time.max, tzinfo=tz)
    return start, end


def has_enough_history(
    window: StatWindow, now: datetime, earliest: datetime | None
) -> bool:
    """Return True when history is long enough for the window to be meaningful."""
    if window.days == 0:
        return True
    if earliest is None:
        return False
    return earliest <= now - timedelta(days=window.days)


def format_duration(seconds: int) -> str:
    """Format a duration as ``1h 5m``, ``4m 10s`` or ``12s``."""
    hours, remainder = divmod(seconds, SECONDS_PER_HOUR)
    minutes, secs = divmod(remainder, SECONDS_PER_MINUTE)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _summarize_window(
    window: StatWindow,
    feedings: Sequence[FeedingSession],
    now: datetime,
    earliest: datetime | None,
) -> WindowStats:
    start, end = window_bounds(window, now)
    matching = [feeding for feeding in feedings if start <= feeding.started_at <= end]
    sessions = len(matching)
    total_seconds = sum(feeding.duration_seconds for feeding in matching)
    days_in_period = max(window.days, 1)
    return WindowStats(
        window=window,
        sessions=sessions,
        total_seconds=total_seconds,
        average_seconds=_round_half_up(total_seconds / sessions) if sessions else 0,
        avg_sessions_per_day=(
            _round_half_up(sessions / days_in_period * 10) / 10 if sessions else 0.0
        ),
        has_enough_data=has_enough_history(window, now, earliest),
    )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
