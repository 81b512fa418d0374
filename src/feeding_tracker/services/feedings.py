"""Owner-scoped record store for feeding sessions."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from feeding_tracker.domain.errors import (
    FeedingNotFoundError,
    FeedingValidationError,
    StorageError,
)
from feeding_tracker.domain.feedings import (
    FeedingFilter,
    FeedingSession,
    FeedingTag,
    FeedingTagRecord,
    compute_duration_seconds,
    parse_side,
)
from feeding_tracker.domain.tags import TagSet

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"side", "started_at", "ended_at", "notes", "tags"}


class FeedingRepository(Protocol):
    """Persistence interface for feeding sessions and their tags."""

    def list_feedings(
        self, owner_id: UUID, feeding_filter: FeedingFilter
    ) -> list[FeedingSession]:
        """Return an owner's feedings, newest first, with their tags."""

    def get_feeding(self, feeding_id: UUID) -> FeedingSession | None:
        """Return a feeding by id regardless of owner, if present."""

    def earliest_started_at(self, owner_id: UUID) -> datetime | None:
        """Return the start of the owner's oldest feeding, if any."""

    def create_feeding(
        self, owner_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        """Insert a feeding row and return it without tags."""

    def add_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        """Attach tags to a freshly created feeding."""

    def update_feeding(
        self, feeding_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        """Update scalar columns of a feeding and return it."""

    def replace_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        """Atomically replace the whole tag set of a feeding."""

    def delete_feeding(self, feeding_id: UUID) -> None:
        """Delete a feeding and its tags."""


@dataclass
class FeedingService:
    """Application service enforcing ownership and duration rules."""

    repository: FeedingRepository

    def list_feedings(
        self, owner_id: UUID, feeding_filter: FeedingFilter | None = None
    ) -> list[FeedingSession]:
        """Return the caller's feedings ordered by start time descending."""
        resolved = feeding_filter or FeedingFilter()
        if resolved.limit < 1:
            raise FeedingValidationError("limit must be a positive integer")
        return self.repository.list_feedings(owner_id, resolved)

    def earliest_started_at(self, owner_id: UUID) -> datetime | None:
        """Return when the caller's history begins."""
        return self.repository.earliest_started_at(owner_id)

    def create_feeding(  # noqa: PLR0913
        self,
        owner_id: UUID,
        side: object,
        started_at: datetime | None,
        ended_at: datetime | None,
        notes: str | None = None,
        tags: Iterable[FeedingTag | str] | None = None,
    ) -> FeedingSession:
        """Create a feeding for the caller from explicit start and end."""
        if not side or started_at is None or ended_at is None:
            raise FeedingValidationError("Missing required fields")
        resolved_side = parse_side(side)
        _ensure_ordered(started_at, ended_at)
        tag_list = TagSet(tags or ()).to_list()

        created = self.repository.create_feeding(
            owner_id,
            {
                "side": resolved_side,
                "started_at": started_at,
                "ended_at": ended_at,
                "duration_seconds": compute_duration_seconds(started_at, ended_at),
                "notes": notes or None,
            },
        )
        records: list[FeedingTagRecord] = []
        if tag_list:
            try:
                records = self.repository.add_tags(created.id, tag_list)
            except Exception as exc:
                logger.exception(
                    "Failed to tag feeding, removing it",
                    extra={"feeding_id": str(created.id)},
                )
                self.repository.delete_feeding(created.id)
                raise StorageError("Failed to create feeding") from exc

        logger.info(
            "Feeding created",
            extra={"feeding_id": str(created.id), "owner_id": str(owner_id)},
        )
        return replace(created, tags=records)

    def update_feeding(
        self, owner_id: UUID, feeding_id: UUID, changes: dict[str, object]
    ) -> FeedingSession:
        """Apply a partial update; keys absent from ``changes`` are kept."""
        current = self._get_owned(owner_id, feeding_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise FeedingValidationError(
                f"Unknown fields: {', '.join(sorted(unknown))}"
            )

        payload = _build_update_payload(current, changes)
        new_tags: list[FeedingTag] | None = None
        if "tags" in changes:
            new_tags = TagSet(changes["tags"] or ()).to_list()

        updated = (
            self.repository.update_feeding(feeding_id, payload) if payload else current
        )
        records = current.tags
        if new_tags is not None:
            try:
                records = self.repository.replace_tags(feeding_id, new_tags)
            except Exception as exc:
                logger.exception(
                    "Failed to replace feeding tags",
                    extra={"feeding_id": str(feeding_id)},
                )
                if payload:
                    self.repository.update_feeding(
                        feeding_id, _snapshot(current, payload)
                    )
                raise StorageError("Failed to update feeding") from exc

        logger.info(
            "Feeding updated",
            extra={"feeding_id": str(feeding_id), "fields": sorted(changes)},
        )
        return replace(updated, tags=list(records))

    def delete_feeding(self, owner_id: UUID, feeding_id: UUID) -> None:
        """Delete one of the caller's feedings."""
        self._get_owned(owner_id, feeding_id)
        self.repository.delete_feeding(feeding_id)
        logger.info("Feeding deleted", extra={"feeding_id": str(feeding_id)})

    def _get_owned(self, owner_id: UUID, feeding_id: UUID) -> FeedingSession:
        feeding = self.repository.get_feeding(feeding_id)
        # Foreign rows must look exactly like missing ones.
        if feeding is None or feeding.owner_id != owner_id:
            raise FeedingNotFoundError()
        return feeding


def _ensure_ordered(started_at: datetime, ended_at: datetime) -> None:
    if ended_at < started_at:
        raise FeedingValidationError("endedAt must not be before startedAt")


def _build_update_payload(
    current: FeedingSession, changes: dict[str, object]
) -> dict[str, object]:
    """Return the columns that change, recomputing duration when needed."""
    payload: dict[str, object] = {}
    if changes.get("side"):
        payload["side"] = parse_side(changes["side"])

    started_at = changes.get("started_at") or current.started_at
    ended_at = changes.get("ended_at") or current.ended_at
    if not isinstance(started_at, datetime) or not isinstance(ended_at, datetime):
        raise FeedingValidationError("startedAt and endedAt must be timestamps")
    if started_at != current.started_at or ended_at != current.ended_at:
        _ensure_ordered(started_at, ended_at)
        payload["started_at"] = started_at
        payload["ended_at"] = ended_at
        payload["duration_seconds"] = compute_duration_seconds(started_at, ended_at)

    if "notes" in changes:
        notes = changes["notes"]
        payload["notes"] = str(notes) if notes else None
    return payload


def _snapshot(current: FeedingSession, payload: dict[str, object]) -> dict[str, object]:
    """Return the prior values of the columns named in ``payload``."""
    return {key: getattr(current, key) for key in payload}
