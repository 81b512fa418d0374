"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from feeding_tracker.config import Settings
from feeding_tracker.containers import AppContainer
from feeding_tracker.domain.errors import StorageError
from feeding_tracker.domain.feedings import (
    FeedingFilter,
    FeedingSession,
    FeedingTag,
    FeedingTagRecord,
    Side,
)
from feeding_tracker.services.feedings import FeedingRepository, FeedingService
from feeding_tracker.services.identity import IdentityProvider
from feeding_tracker.services.stats import StatsService

OWNER_ID = UUID("11111111-1111-1111-1111-111111111111")
OTHER_OWNER_ID = UUID("22222222-2222-2222-2222-222222222222")
OWNER_TOKEN = "owner-token"
OTHER_TOKEN = "other-token"
FIXED_NOW = datetime(2024, 5, 10, 15, 0, tzinfo=UTC)


@dataclass
class InMemoryFeedingRepository(FeedingRepository):
    """In-memory feeding repository for tests."""

    feedings: dict[UUID, FeedingSession] = field(default_factory=dict)
    fail_add_tags: bool = False
    fail_replace_tags: bool = False
    update_payloads: list[dict[str, object]] = field(default_factory=list)

    def list_feedings(
        self, owner_id: UUID, feeding_filter: FeedingFilter
    ) -> list[FeedingSession]:
        rows = [
            feeding
            for feeding in self.feedings.values()
            if feeding.owner_id == owner_id
            and (
                feeding_filter.tag is None or feeding_filter.tag in feeding.tag_values
            )
        ]
        rows.sort(key=lambda feeding: feeding.started_at, reverse=True)
        return rows[: feeding_filter.limit]

    def get_feeding(self, feeding_id: UUID) -> FeedingSession | None:
        return self.feedings.get(feeding_id)

    def earliest_started_at(self, owner_id: UUID) -> datetime | None:
        starts = [
            feeding.started_at
            for feeding in self.feedings.values()
            if feeding.owner_id == owner_id
        ]
        return min(starts) if starts else None

    def create_feeding(
        self, owner_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        feeding = FeedingSession(
            id=uuid4(),
            owner_id=owner_id,
            side=payload["side"],
            started_at=payload["started_at"],
            ended_at=payload["ended_at"],
            duration_seconds=payload["duration_seconds"],
            notes=payload.get("notes"),
        )
        self.feedings[feeding.id] = feeding
        return feeding

    def add_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        if self.fail_add_tags:
            raise StorageError("tag insert failed")
        records = [FeedingTagRecord(id=uuid4(), tag=tag) for tag in tags]
        self.feedings[feeding_id] = replace(self.feedings[feeding_id], tags=records)
        return records

    def update_feeding(
        self, feeding_id: UUID, payload: dict[str, object]
    ) -> FeedingSession:
        self.update_payloads.append(payload)
        updated = replace(self.feedings[feeding_id], **payload)
        self.feedings[feeding_id] = updated
        return updated

    def replace_tags(
        self, feeding_id: UUID, tags: list[FeedingTag]
    ) -> list[FeedingTagRecord]:
        if self.fail_replace_tags:
            raise StorageError("tag replace failed")
        records = [FeedingTagRecord(id=uuid4(), tag=tag) for tag in tags]
        self.feedings[feeding_id] = replace(self.feedings[feeding_id], tags=records)
        return records

    def delete_feeding(self, feeding_id: UUID) -> None:
        self.feedings.pop(feeding_id, None)

    def seed(  # noqa: PLR0913
        self,
        owner_id: UUID,
        started_at: datetime,
        duration_seconds: int,
        side: Side = Side.LEFT,
        notes: str | None = None,
        tags: list[FeedingTag] | None = None,
    ) -> FeedingSession:
        """Store a feeding directly, bypassing service validation."""
        feeding = FeedingSession(
            id=uuid4(),
            owner_id=owner_id,
            side=side,
            started_at=started_at,
            ended_at=started_at + timedelta(seconds=duration_seconds),
            duration_seconds=duration_seconds,
            notes=notes,
            tags=[FeedingTagRecord(id=uuid4(), tag=tag) for tag in tags or []],
        )
        self.feedings[feeding.id] = feeding
        return feeding


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider backed by a static token map."""

    owners: dict[str, UUID] = field(
        default_factory=lambda: {OWNER_TOKEN: OWNER_ID, OTHER_TOKEN: OTHER_OWNER_ID}
    )

    def resolve_owner(self, access_token: str) -> UUID | None:
        return self.owners.get(access_token)


@dataclass
class FixedClock:
    """Clock returning a settable instant."""

    now: datetime = FIXED_NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class RecordingCreator:
    """Feeding creator that records calls and can be told to fail."""

    calls: list[dict[str, object]] = field(default_factory=list)
    error: Exception | None = None
    delay: float = 0.0

    async def create_feeding(  # noqa: PLR0913
        self,
        side: Side,
        started_at: datetime,
        ended_at: datetime,
        notes: str | None = None,
        tags: list[FeedingTag] | None = None,
    ) -> FeedingSession:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.calls.append(
            {
                "side": side,
                "started_at": started_at,
                "ended_at": ended_at,
                "notes": notes,
                "tags": tags,
            }
        )
        return FeedingSession(
            id=uuid4(),
            owner_id=OWNER_ID,
            side=side,
            started_at=started_at,
            ended_at=ended_at,
            duration_seconds=int((ended_at - started_at).total_seconds()),
            notes=notes,
            tags=[FeedingTagRecord(id=uuid4(), tag=tag) for tag in tags or []],
        )


def auth_headers(token: str = OWNER_TOKEN) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        default_timezone="UTC",
    )


@pytest.fixture
def feeding_repository() -> InMemoryFeedingRepository:
    return InMemoryFeedingRepository()


@pytest.fixture
def feeding_service(feeding_repository: InMemoryFeedingRepository) -> FeedingService:
    return FeedingService(feeding_repository)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def container(
    settings: Settings,
    feeding_service: FeedingService,
    clock: FixedClock,
) -> AppContainer:
    stats_service = StatsService(
        feeding_service=feeding_service,
        clock=clock,
        history_limit=settings.stats_history_limit,
    )
    return AppContainer(
        settings=settings,
        identity_provider=FakeIdentityProvider(),
        feeding_service=feeding_service,
        stats_service=stats_service,
    )
