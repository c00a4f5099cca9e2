"""Tests for the FastAPI application."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from historic_detective import __version__
from historic_detective.app import app, get_service
from historic_detective.models import Candidate, Query, Resolution, ResolutionStatus, ToolResult


class FakeService:
    def __init__(self) -> None:
        self.queries: list[Query] = []
        self.reloads = 0

    async def resolve(self, query: Query) -> Resolution:
        self.queries.append(query)
        return Resolution(
            status=ResolutionStatus.SUCCESS,
            candidate=Candidate(id="P-200", lat=41.5089, lon=-81.6954, source="property"),
            report="# Historic Building Report\n",
            meta={"winner": "property"},
        )

    async def search_text(self, text: str) -> ToolResult:
        return ToolResult.ok([Candidate(id="a", source="text_index", score=0.9)])

    def reload_indexes(self) -> dict[str, int]:
        self.reloads += 1
        return {"image": 3, "text": 0}


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
async def client(service: FakeService) -> AsyncIterator[AsyncClient]:
    app.dependency_overrides[get_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def test_health() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


async def test_resolve_location(client: AsyncClient, service: FakeService) -> None:
    response = await client.post(
        "/resolve", json={"modality": "location", "lat": 41.5089, "lon": -81.6954}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    # Unknown optional fields are omitted, not null
    assert body["candidate"] == {
        "id": "P-200",
        "lat": 41.5089,
        "lon": -81.6954,
        "source": "property",
    }
    assert service.queries == [Query.for_location(41.5089, -81.6954)]


async def test_resolve_invalid_payload(client: AsyncClient, service: FakeService) -> None:
    response = await client.post("/resolve", json={"modality": "text"})
    assert response.status_code == 422
    assert service.queries == []


async def test_resolve_unknown_modality(client: AsyncClient, service: FakeService) -> None:
    response = await client.post("/resolve", json={"modality": "video"})
    assert response.status_code == 422
    assert "unsupported input mode" in response.json()["detail"]
    assert service.queries == []


async def test_search_text(client: AsyncClient) -> None:
    response = await client.post("/search/text", json={"query": "arcade"})
    assert response.status_code == 200
    assert response.json()["candidates"] == [{"id": "a", "source": "text_index", "score": 0.9}]


async def test_reload_indexes(client: AsyncClient, service: FakeService) -> None:
    response = await client.post("/indexes/reload")
    assert response.status_code == 200
    assert response.json() == {"reloaded": {"image": 3, "text": 0}}
    assert service.reloads == 1
