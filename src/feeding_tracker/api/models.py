"""Pydantic models for the feedings HTTP API."""

from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from feeding_tracker.domain.feedings import (
    FeedingSession,
    FeedingTag,
    FeedingTagRecord,
    Side,
)
from feeding_tracker.domain.stats import StatWindow, WindowStats


class ApiModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedingTagBody(ApiModel):
    """Tag row as returned by the API."""

    id: UUID
    tag: FeedingTag


class FeedingBody(ApiModel):
    """Feeding session as returned by the API."""

    id: UUID
    owner_id: UUID = Field(alias="userId")
    side: Side
    started_at: AwareDatetime
    ended_at: AwareDatetime
    duration_seconds: int
    notes: str | None = None
    tags: list[FeedingTagBody] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, feeding: FeedingSession) -> "FeedingBody":
        """Build a response body from a domain feeding."""
        return cls(
            id=feeding.id,
            owner_id=feeding.owner_id,
            side=feeding.side,
            started_at=feeding.started_at,
            ended_at=feeding.ended_at,
            duration_seconds=feeding.duration_seconds,
            notes=feeding.notes,
            tags=[
                FeedingTagBody(id=record.id, tag=record.tag) for record in feeding.tags
            ],
        )

    def to_domain(self) -> FeedingSession:
        """Convert a response body back into a domain feeding."""
        return FeedingSession(
            id=self.id,
            owner_id=self.owner_id,
            side=self.side,
            started_at=self.started_at,
            ended_at=self.ended_at,
            duration_seconds=self.duration_seconds,
            notes=self.notes,
            tags=[FeedingTagRecord(id=tag.id, tag=tag.tag) for tag in self.tags],
        )


class FeedingCreateBody(ApiModel):
    """Create request; required fields are checked by the service."""

    side: Side | None = None
    started_at: AwareDatetime | None = None
    ended_at: AwareDatetime | None = None
    notes: str | None = None
    tags: list[FeedingTag] | None = None


class FeedingUpdateBody(ApiModel):
    """Partial update request; only fields present in the JSON are applied."""

    side: Side | None = None
    started_at: AwareDatetime | None = None
    ended_at: AwareDatetime | None = None
    notes: str | None = None
    tags: list[FeedingTag] | None = None

    def changes(self) -> dict[str, object]:
        """Return the supplied fields keyed by domain name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class WindowStatsBody(ApiModel):
    """Statistics for one window as returned by the API."""

    label: str
    days: int
    sessions: int
    total_seconds: int
    average_seconds: int
    avg_sessions_per_day: float
    has_enough_data: bool

    @classmethod
    def from_domain(cls, stats: WindowStats) -> "WindowStatsBody":
        """Build a response body from computed window statistics."""
        return cls(
            label=stats.window.label,
            days=stats.window.days,
            sessions=stats.sessions,
            total_seconds=stats.total_seconds,
            average_seconds=stats.average_seconds,
            avg_sessions_per_day=stats.avg_sessions_per_day,
            has_enough_data=stats.has_enough_data,
        )

    def to_domain(self) -> WindowStats:
        """Convert a response body back into window statistics."""
        return WindowStats(
            window=StatWindow(label=self.label, days=self.days),
            sessions=self.sessions,
            total_seconds=self.total_seconds,
            average_seconds=self.average_seconds,
            avg_sessions_per_day=self.avg_sessions_per_day,
            has_enough_data=self.has_enough_data,
        )
