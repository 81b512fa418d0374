"""Domain models for feeding sessions."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from feeding_tracker.domain.errors import FeedingValidationError

DEFAULT_LIST_LIMIT = 100


class Side(StrEnum):
    """Breast side used for a feeding."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"


class FeedingTag(StrEnum):
    """Qualitative labels a caregiver can attach to a feeding."""

    GOOD = "GOOD"
    MEDIUM = "MEDIUM"
    BAD = "BAD"
    CLUSTER = "CLUSTER"
    SLEEPY = "SLEEPY"


@dataclass(frozen=True)
class FeedingTagRecord:
    """Persisted tag row attached to a feeding."""

    id: UUID
    tag: FeedingTag


@dataclass(frozen=True)
class FeedingSession:
    """Represents a persisted feeding session."""

    id: UUID
    owner_id: UUID
    side: Side
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    notes: str | None
    tags: list[FeedingTagRecord] = field(default_factory=list)

    @property
    def tag_values(self) -> set[FeedingTag]:
        """Return the tag set without row identifiers."""
        return {record.tag for record in self.tags}


@dataclass(frozen=True)
class FeedingFilter:
    """Query descriptor for listing feedings."""

    limit: int = DEFAULT_LIST_LIMIT
    tag: FeedingTag | None = None


def parse_side(value: object) -> Side:
    """Parse a side value, raising a validation error for unknown input."""
    try:
        return Side(str(value).upper())
    except ValueError as exc:
        raise FeedingValidationError(f"Invalid side: {value}") from exc


def parse_tag(value: object) -> FeedingTag:
    """Parse a tag value, raising a validation error for unknown input."""
    try:
        return FeedingTag(str(value).upper())
    except ValueError as exc:
        raise FeedingValidationError(f"Invalid tag: {value}") from exc


def compute_duration_seconds(started_at: datetime, ended_at: datetime) -> int:
    """Return whole elapsed seconds between two instants."""
    return math.floor((ended_at - started_at).total_seconds())
