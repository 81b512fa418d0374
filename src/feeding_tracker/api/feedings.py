"""Feeding endpoints scoped to the authenticated caller."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Header, Query, Request, status

from feeding_tracker.api.models import (
    FeedingBody,
    FeedingCreateBody,
    FeedingUpdateBody,
    WindowStatsBody,
)
from feeding_tracker.config import parse_bearer_token
from feeding_tracker.domain.errors import AuthenticationError, FeedingValidationError
from feeding_tracker.domain.feedings import (
    DEFAULT_LIST_LIMIT,
    FeedingFilter,
    FeedingTag,
)

if TYPE_CHECKING:
    from feeding_tracker.containers import AppContainer

router = APIRouter(prefix="/feedings", tags=["feedings"])


async def require_owner(
    request: Request, authorization: str | None = Header(default=None)
) -> UUID:
    """Resolve the caller's user id from a bearer token."""
    container: AppContainer = request.app.state.container
    token = parse_bearer_token(authorization)
    owner_id = container.identity_provider.resolve_owner(token) if token else None
    if owner_id is None:
        raise AuthenticationError("Unauthorized")
    return owner_id


@router.get("")
async def list_feedings(
    request: Request,
    owner_id: UUID = Depends(require_owner),
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1),
    tag: FeedingTag | None = None,
) -> list[dict[str, object]]:
    """Return the caller's feedings, newest first."""
    container: AppContainer = request.app.state.container
    feedings = container.feeding_service.list_feedings(
        owner_id, FeedingFilter(limit=limit, tag=tag)
    )
    return [_dump(FeedingBody.from_domain(feeding)) for feeding in feedings]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_feeding(
    body: FeedingCreateBody,
    request: Request,
    owner_id: UUID = Depends(require_owner),
) -> dict[str, object]:
    """Create a feeding from explicit start and end instants."""
    container: AppContainer = request.app.state.container
    feeding = container.feeding_service.create_feeding(
        owner_id,
        side=body.side,
        started_at=body.started_at,
        ended_at=body.ended_at,
        notes=body.notes,
        tags=body.tags,
    )
    return _dump(FeedingBody.from_domain(feeding))


@router.get("/stats")
async def feeding_stats(
    request: Request,
    owner_id: UUID = Depends(require_owner),
    tz: str | None = None,
) -> list[dict[str, object]]:
    """Return rolling statistics for the fixed calendar windows."""
    container: AppContainer = request.app.state.container
    timezone_name = tz or container.settings.default_timezone
    if not _is_valid_timezone(timezone_name):
        raise FeedingValidationError(f"Unknown timezone: {timezone_name}")
    windows = container.stats_service.get_window_stats(owner_id, timezone_name)
    return [_dump(WindowStatsBody.from_domain(window)) for window in windows]


@router.patch("/{feeding_id}")
async def update_feeding(
    feeding_id: UUID,
    body: FeedingUpdateBody,
    request: Request,
    owner_id: UUID = Depends(require_owner),
) -> dict[str, object]:
    """Apply a partial update to one of the caller's feedings."""
    container: AppContainer = request.app.state.container
    feeding = container.feeding_service.update_feeding(
        owner_id, feeding_id, body.changes()
    )
    return _dump(FeedingBody.from_domain(feeding))


@router.delete("/{feeding_id}")
async def delete_feeding(
    feeding_id: UUID,
    request: Request,
    owner_id: UUID = Depends(require_owner),
) -> dict[str, bool]:
    """Delete one of the caller's feedings."""
    container: AppContainer = request.app.state.container
    container.feeding_service.delete_feeding(owner_id, feeding_id)
    return {"success": True}


def _dump(body: FeedingBody | WindowStatsBody) -> dict[str, object]:
    return body.model_dump(mode="json", by_alias=True)


def _is_valid_timezone(value: str) -> bool:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True
