"""HTTP client for the feedings API."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

import httpx
from pydantic.alias_generators import to_camel

from feeding_tracker.api.models import FeedingBody, WindowStatsBody
from feeding_tracker.domain.errors import (
    AuthenticationError,
    FeedingNotFoundError,
    FeedingValidationError,
)
from feeding_tracker.domain.feedings import (
    FeedingFilter,
    FeedingSession,
    FeedingTag,
    Side,
)
from feeding_tracker.domain.stats import WindowStats


class FeedingClient(Protocol):
    """Client-side view of the owner-scoped record store."""

    async def list_feedings(
        self, feeding_filter: FeedingFilter | None = None
    ) -> list[FeedingSession]:
        """Return the caller's feedings, newest first."""

    async def create_feeding(
        self,
        side: Side,
        started_at: datetime,
        ended_at: datetime,
        notes: str | None = None,
        tags: list[FeedingTag] | None = None,
    ) -> FeedingSession:
        """Create a feeding and return it."""

    async def update_feeding(
        self, feeding_id: UUID, changes: dict[str, object]
    ) -> FeedingSession:
        """Apply a partial update and return the feeding."""

    async def delete_feeding(self, feeding_id: UUID) -> None:
        """Delete a feeding."""


@dataclass
class HttpxFeedingClient(FeedingClient):
    """Feedings API client implemented with httpx."""

    base_url: str
    access_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, access_token: str) -> "HttpxFeedingClient":
        """Create a feedings client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            access_token=access_token,
            http_client=httpx.AsyncClient(),
        )

    async def list_feedings(
        self, feeding_filter: FeedingFilter | None = None
    ) -> list[FeedingSession]:
        """Fetch feedings with an optional tag filter."""
        resolved = feeding_filter or FeedingFilter()
        params: dict[str, object] = {"limit": resolved.limit}
        if resolved.tag is not None:
            params["tag"] = resolved.tag.value
        response = await self.http_client.get(
            f"{self.base_url}/feedings",
            params=params,
            headers=self._headers(),
            timeout=10,
        )
        _raise_for_status(response)
        return [FeedingBody.model_validate(row).to_domain() for row in response.json()]

    async def create_feeding(
        self,
        side: Side,
        started_at: datetime,
        ended_at: datetime,
        notes: str | None = None,
        tags: list[FeedingTag] | None = None,
    ) -> FeedingSession:
        """Create a feeding using POST /feedings."""
        payload = _encode(
            {
                "side": side,
                "started_at": started_at,
                "ended_at": ended_at,
                "notes": notes,
            }
        )
        if tags:
            payload["tags"] = [tag.value for tag in tags]
        response = await self.http_client.post(
            f"{self.base_url}/feedings",
            json=payload,
            headers=self._headers(),
            timeout=10,
        )
        _raise_for_status(response)
        return FeedingBody.model_validate(response.json()).to_domain()

    async def update_feeding(
        self, feeding_id: UUID, changes: dict[str, object]
    ) -> FeedingSession:
        """Send only the supplied fields using PATCH /feedings/{id}."""
        response = await self.http_client.patch(
            f"{self.base_url}/feedings/{feeding_id}",
            json=_encode(changes),
            headers=self._headers(),
            timeout=10,
        )
        _raise_for_status(response)
        return FeedingBody.model_validate(response.json()).to_domain()

    async def delete_feeding(self, feeding_id: UUID) -> None:
        """Delete a feeding using DELETE /feedings/{id}."""
        response = await self.http_client.delete(
            f"{self.base_url}/feedings/{feeding_id}",
            headers=self._headers(),
            timeout=10,
        )
        _raise_for_status(response)

    async def get_window_stats(self, timezone_name: str) -> list[WindowStats]:
        """Fetch rolling statistics computed in the given timezone."""
        response = await self.http_client.get(
            f"{self.base_url}/feedings/stats",
            params={"tz": timezone_name},
            headers=self._headers(),
            timeout=10,
        )
        _raise_for_status(response)
        return [
            WindowStatsBody.model_validate(row).to_domain() for row in response.json()
        ]

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def _encode(fields: dict[str, object]) -> dict[str, object]:
    """Convert domain field names and values into the API's JSON shape."""
    encoded: dict[str, object] = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        elif isinstance(value, list | tuple | set):
            value = [item.value if isinstance(item, Enum) else item for item in value]
        encoded[to_camel(key)] = value
    return encoded


def _raise_for_status(response: httpx.Response) -> None:
    """Map API error statuses onto the shared error taxonomy."""
    if response.status_code == httpx.codes.UNAUTHORIZED:
        raise AuthenticationError("Not signed in")
    if response.status_code == httpx.codes.NOT_FOUND:
        raise FeedingNotFoundError()
    if response.status_code == httpx.codes.BAD_REQUEST:
        raise FeedingValidationError(_error_message(response))
    response.raise_for_status()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text
