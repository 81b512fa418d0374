"""Tests for the httpx-based feedings API client."""

import asyncio
import json
from datetime import UTC, datetime
from uuid import uuid4

import httpx
import pytest

from feeding_tracker.adapters.feeding_api_client import HttpxFeedingClient
from feeding_tracker.domain.errors import (
    AuthenticationError,
    FeedingNotFoundError,
    FeedingValidationError,
)
from feeding_tracker.domain.feedings import FeedingFilter, FeedingTag, Side
from feeding_tracker.services.timer import SessionTimer
from tests.conftest import FIXED_NOW, FixedClock

BASE_URL = "https://feedings.example.test"


def _feeding_json(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "id": str(uuid4()),
        "userId": str(uuid4()),
        "side": "LEFT",
        "startedAt": "2024-05-10T08:00:00Z",
        "endedAt": "2024-05-10T08:10:00Z",
        "durationSeconds": 600,
        "notes": None,
        "tags": [],
    }
    body.update(overrides)
    return body


def _client(handler) -> HttpxFeedingClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxFeedingClient(
        base_url=BASE_URL,
        access_token="token-123",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_feeding_client_lists_with_filter() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/feedings"
        assert request.url.params["limit"] == "5"
        assert request.url.params["tag"] == "GOOD"
        assert request.headers["Authorization"] == "Bearer token-123"
        return httpx.Response(
            200,
            json=[
                _feeding_json(tags=[{"id": str(uuid4()), "tag": "GOOD"}]),
            ],
        )

    client = _client(handler)

    feedings = asyncio.run(
        client.list_feedings(FeedingFilter(limit=5, tag=FeedingTag.GOOD))
    )

    assert feedings[0].tag_values == {FeedingTag.GOOD}
    assert feedings[0].started_at == datetime(2024, 5, 10, 8, 0, tzinfo=UTC)


def test_feeding_client_create_sends_camel_case_payload() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content.decode()))
        return httpx.Response(201, json=_feeding_json(notes="calm"))

    client = _client(handler)

    feeding = asyncio.run(
        client.create_feeding(
            side=Side.LEFT,
            started_at=datetime(2024, 5, 10, 8, 0, tzinfo=UTC),
            ended_at=datetime(2024, 5, 10, 8, 10, tzinfo=UTC),
            notes="calm",
            tags=[FeedingTag.GOOD, FeedingTag.CLUSTER],
        )
    )

    assert seen == {
        "side": "LEFT",
        "startedAt": "2024-05-10T08:00:00+00:00",
        "endedAt": "2024-05-10T08:10:00+00:00",
        "notes": "calm",
        "tags": ["GOOD", "CLUSTER"],
    }
    assert feeding.notes == "calm"


def test_feeding_client_update_sends_only_supplied_fields() -> None:
    feeding_id = uuid4()
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        assert request.url.path == f"/feedings/{feeding_id}"
        seen.update(json.loads(request.content.decode()))
        return httpx.Response(200, json=_feeding_json(id=str(feeding_id)))

    client = _client(handler)

    asyncio.run(
        client.update_feeding(
            feeding_id,
            {"ended_at": datetime(2024, 5, 10, 8, 20, tzinfo=UTC), "tags": []},
        )
    )

    assert seen == {"endedAt": "2024-05-10T08:20:00+00:00", "tags": []}


def test_feeding_client_maps_error_statuses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(404, json={"error": "Feeding not found"})
        if request.method == "POST":
            return httpx.Response(400, json={"error": "Missing required fields"})
        return httpx.Response(401, json={"detail": "Unauthorized"})

    client = _client(handler)

    with pytest.raises(FeedingNotFoundError):
        asyncio.run(client.delete_feeding(uuid4()))
    with pytest.raises(FeedingValidationError, match="Missing required fields"):
        asyncio.run(
            client.create_feeding(
                side=Side.RIGHT, started_at=FIXED_NOW, ended_at=FIXED_NOW
            )
        )
    with pytest.raises(AuthenticationError):
        asyncio.run(client.list_feedings())


def test_feeding_client_server_error_raises_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Internal server error"})

    client = _client(handler)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_window_stats("UTC"))


def test_feeding_client_window_stats() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/feedings/stats"
        assert request.url.params["tz"] == "Europe/London"
        return httpx.Response(
            200,
            json=[
                {
                    "label": "Today",
                    "days": 0,
                    "sessions": 3,
                    "totalSeconds": 1800,
                    "averageSeconds": 600,
                    "avgSessionsPerDay": 3.0,
                    "hasEnoughData": True,
                }
            ],
        )

    client = _client(handler)

    stats = asyncio.run(client.get_window_stats("Europe/London"))

    assert stats[0].window.label == "Today"
    assert stats[0].total_seconds == 1800
    assert stats[0].has_enough_data is True


def test_timer_saves_through_feeding_client() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content.decode()))
        return httpx.Response(
            201,
            json=_feeding_json(
                side="RIGHT",
                startedAt="2024-05-10T14:58:00Z",
                endedAt="2024-05-10T15:00:00Z",
                durationSeconds=120,
            ),
        )

    timer = SessionTimer(creator=_client(handler), clock=FixedClock())
    timer.start(Side.RIGHT)
    for _ in range(120):
        timer.tick()
    timer.stop()

    feeding = asyncio.run(timer.save())

    assert seen["startedAt"] == "2024-05-10T14:58:00+00:00"
    assert seen["endedAt"] == "2024-05-10T15:00:00+00:00"
    assert seen["notes"] is None
    assert "tags" not in seen
    assert feeding.duration_seconds == 120


def test_feeding_client_create_normalizes_base_url() -> None:
    client = HttpxFeedingClient.create(f"{BASE_URL}/", "token-123")

    assert client.base_url == BASE_URL
    asyncio.run(client.close())
