"""Tests for generator API endpoints."""

import asyncio
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from deckbuilder.api.generator import get_generator_service
from deckbuilder.config import settings
from deckbuilder.db.operations import create_card, create_collection, create_deck, create_game
from deckbuilder.main import app
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.generator import GeneratorService
from deckbuilder.services.output import OutputSink


class GatedProvider(ContentProvider):
    """Holds every run at its first deck until the gate opens."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.gate = asyncio.Event()
        self.gate.set()

    async def get_deck(self, game_id, collection_id, deck_id):
        await self.gate.wait()
        return await super().get_deck(game_id, collection_id, deck_id)


@pytest.fixture
def provider(session_factory) -> GatedProvider:
    return GatedProvider(session_factory)


@pytest.fixture
def service(provider, tmp_path) -> GeneratorService:
    return GeneratorService(
        provider=provider,
        sink=OutputSink(tmp_path / "result"),
    )


@pytest.fixture
async def client(service):
    app.dependency_overrides[get_generator_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def game(session_factory, png_bytes: bytes) -> None:
    async with session_factory() as session:
        await create_game(session, name="Test Game")
        await create_collection(session, "test_game", name="Base")
        await create_deck(session, "test_game", "base", name="Loot", image_data=png_bytes)
        for title in ["Sword", "Shield"]:
            await create_card(
                session, "test_game", "base", "loot", title=title, image_data=png_bytes
            )
        await session.commit()


class TestGenerate:
    async def test_idle_status(self, client: AsyncClient) -> None:
        response = await client.get("/api/generator/status")

        assert response.status_code == 200
        assert response.json() == {
            "phase": "",
            "status": "NotStarted",
            "message": "",
            "percent": 0.0,
        }

    async def test_generate_then_poll(
        self, client: AsyncClient, service: GeneratorService, game
    ) -> None:
        response = await client.post("/api/games/test_game/generate", json={"sort_order": "name"})

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "InProgress"
        assert data["phase"] == "Image generation"

        await service.current_run.wait()

        status = (await client.get("/api/generator/status")).json()
        assert status["status"] == "Done"
        assert status["percent"] == 100
        assert status["message"] == "All image pages were successfully generated!"

    async def test_generate_without_body(
        self, client: AsyncClient, service: GeneratorService, game
    ) -> None:
        response = await client.post("/api/games/test_game/generate")

        assert response.status_code == 202
        await service.current_run.wait()

    @pytest.mark.parametrize("body", [None, {}, {"sort_order": None}])
    async def test_configured_default_sort(
        self, client: AsyncClient, service: GeneratorService, game, monkeypatch, body
    ) -> None:
        monkeypatch.setattr(settings, "default_sort", "name_desc")

        with patch.object(service, "start", wraps=service.start) as start:
            response = await client.post("/api/games/test_game/generate", json=body)

        assert response.status_code == 202
        start.assert_awaited_once_with("test_game", "name_desc")
        await service.current_run.wait()

    async def test_explicit_sort_wins(
        self, client: AsyncClient, service: GeneratorService, game, monkeypatch
    ) -> None:
        monkeypatch.setattr(settings, "default_sort", "name_desc")

        with patch.object(service, "start", wraps=service.start) as start:
            await client.post("/api/games/test_game/generate", json={"sort_order": ""})

        start.assert_awaited_once_with("test_game", "")
        await service.current_run.wait()

    async def test_missing_game(self, client: AsyncClient) -> None:
        response = await client.post("/api/games/nope/generate")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
        assert (await client.get("/api/generator/status")).json()["status"] == "NotStarted"

    async def test_already_running(
        self, client: AsyncClient, service: GeneratorService, provider: GatedProvider, game
    ) -> None:
        provider.gate.clear()
        await client.post("/api/games/test_game/generate")
        response = await client.post("/api/games/test_game/generate")

        assert response.status_code == 409
        assert response.json()["kind"] == "generation_in_progress"

        provider.gate.set()
        assert (await service.current_run.wait()).status.value == "Done"

    async def test_invalid_sort(self, client: AsyncClient, game) -> None:
        response = await client.post(
            "/api/games/test_game/generate", json={"sort_order": "random"}
        )

        assert response.status_code == 422


class TestCancel:
    async def test_cancel_without_run(self, client: AsyncClient) -> None:
        response = await client.post("/api/generator/cancel")

        assert response.json() == {"cancelled": False}

    async def test_cancel_running(
        self, client: AsyncClient, service: GeneratorService, provider: GatedProvider, game
    ) -> None:
        provider.gate.clear()
        await client.post("/api/games/test_game/generate")

        response = await client.post("/api/generator/cancel")
        assert response.json() == {"cancelled": True}
        provider.gate.set()

        final = await service.current_run.wait()
        assert final.status.value == "Error"
        status = (await client.get("/api/generator/status")).json()
        assert status["message"] == "Generation cancelled"
