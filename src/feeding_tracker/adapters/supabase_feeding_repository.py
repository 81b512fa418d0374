"""Supabase-backed feeding repository."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from supabase import Client

from feeding_tracker.domain.errors import StorageError
from feeding_tracker.domain.feedings import (
    FeedingFilter,
    FeedingSession,
    FeedingTag,
    FeedingTagRecord,
    Side,
)
from feeding_tracker.services.feedings import FeedingRepository

_FEEDING_COLUMNS = (
    "id, user_id, side, started_at, ended_at, duration_seconds, notes, "
    "feeding_tags(id, tag)"
)
# Inner-joined alias used only for filtering, so the plain embed keeps every tag.
_TAG_FILTER_COLUMNS = f"{_FEEDING_COLUMNS}, tag_filter:feeding_tags!inner(tag)"
_REPLACE_TAGS_FUNCTION = "replace_feeding_tags"


@dataclass
class SupabaseFeedingRepository(FeedingRepository):
    """Supabase implementation for feedings and feeding tags."""

    client: Client

    def list_feedings(
        self, owner_id: UUID, feeding_filter: FeedingFilter
    ) -> list[FeedingSession]:
        """Return an owner's feedings ordered by start time descending."""
        if feeding_filter.tag is None:
            query = (
                self.client.table("feedings")
                .select(_FEEDING_COLUMNS)
                .eq("user_id", str(owner_id))
            )
        else:
            query = (
                self.client.table("feedings")
                .select(_TAG_FILTER_COLUMNS)
                .eq("user_id", str(owner_id))
                .eq("tag_filter.tag", feeding_filter.tag.value)
            )
        response = (
            query.order("started_at", desc=True).limit(feeding_filter.limit).execute()
        )
        return [_parse_feeding(row) for row in response.data or []]

    def get_feeding(self, feeding_id: UUID) -> FeedingSession | None:
        """Return a feeding by id, if present."""
        response = (
            self.client.table("feedings")
            .select(_FEEDING_COLUMNS)
            .eq("id", str(feeding_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_feeding(response.data[0])

    def earliest_started_at(self, owner_id: UUID) -> datetime | None:
        """Return the start of the owner's oldest feeding."""
        response = (
            self.client.table("feedings")
            .select("started_at")
            .eq("user_id", str(owner_id))
            .order("started_at", desc=False)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return datetime.fromisoformat(response.data[0]["started_at"])

    def create_feeding(
        self, owner_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        """Insert a feeding row and return it."""
        response = (
            self.client.table("feedings")
            .insert({"user_id": str(owner_id), **_serialize(payload)})
            .execute()
        )
        if not response.data:
            raise StorageError("Failed to create feeding")
        return _parse_feeding(response.data[0])

    def add_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        """Insert tag rows for a feeding."""
        response = (
            self.client.table("feeding_tags")
            .insert([{"feeding_id": str(feeding_id), "tag": tag.value} for tag in tags])
            .execute()
        )
        if len(response.data or []) != len(tags):
            raise StorageError("Failed to tag feeding")
        return [_parse_tag(row) for row in response.data]

    def update_feeding(
        self, feeding_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        """Update feeding columns and return the row."""
        response = (
            self.client.table("feedings")
            .update(_serialize(payload))
            .eq("id", str(feeding_id))
            .execute()
        )
        if not response.data:
            raise StorageError("Failed to update feeding")
        return _parse_feeding(response.data[0])

    def replace_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        """Replace the tag set in one transaction via a database function."""
        response = self.client.rpc(
            _REPLACE_TAGS_FUNCTION,
            {
                "p_feeding_id": str(feeding_id),
                "p_tags": [tag.value for tag in tags],
            },
        ).execute()
        return [_parse_tag(row) for row in response.data or []]

    def delete_feeding(self, feeding_id: UUID) -> None:
        """Delete a feeding; tag rows cascade."""
        self.client.table("feedings").delete().eq("id", str(feeding_id)).execute()


def _serialize(payload: dict[str, object]) -> dict[str, object]:
    serialized: dict[str, object] = {}
    for key, value in payload.items():
        if isinstance(value, datetime):
            serialized[key] = value.isoformat()
        elif isinstance(value, Enum):
            serialized[key] = value.value
        else:
            serialized[key] = value
    return serialized


def _parse_tag(row: dict[str, object]) -> FeedingTagRecord:
    return FeedingTagRecord(id=UUID(str(row["id"])), tag=FeedingTag(row["tag"]))


def _parse_feeding(row: dict[str, object]) -> FeedingSession:
    """Parse a feeding row, with optional embedded tags, into a domain model."""
    notes = row.get("notes")
    return FeedingSession(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        side=Side(row["side"]),
        started_at=datetime.fromisoformat(str(row["started_at"])),
        ended_at=datetime.fromisoformat(str(row["ended_at"])),
        duration_seconds=int(row.get("duration_seconds", 0)),
        notes=str(notes) if notes else None,
        tags=[_parse_tag(tag_row) for tag_row in row.get("feeding_tags") or []],
    )
