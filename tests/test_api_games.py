"""Tests for content API endpoints."""

import base64

import pytest
from httpx import ASGITransport, AsyncClient

from deckbuilder.db.database import get_session
from deckbuilder.main import app

DECK_URL = "/api/games/test_game/collections/base/decks"
CARDS_URL = DECK_URL + "/loot/cards"


@pytest.fixture
async def client(session_factory):
    """Provide an async test client with overridden database session."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def deck(client: AsyncClient, png_bytes: bytes) -> None:
    """Create game "test_game" / collection "base" / deck "loot"."""
    encoded = base64.b64encode(png_bytes).decode()
    await client.post("/api/games", json={"name": "Test Game"})
    await client.post("/api/games/test_game/collections", json={"name": "Base"})
    response = await client.post(
        DECK_URL, json={"name": "Loot", "image": "back.png", "image_file": encoded}
    )
    assert response.status_code == 201


class TestGames:
    async def test_create_game(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/games", json={"name": "Test Game", "description": "A game"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == "test_game"
        assert data["description"] == "A game"
        assert data["created_at"] is not None

    async def test_duplicate_game(self, client: AsyncClient) -> None:
        await client.post("/api/games", json={"name": "Test Game"})
        response = await client.post("/api/games", json={"name": "Test Game"})

        assert response.status_code == 409
        assert response.json()["kind"] == "already_exists"

    async def test_empty_name_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/api/games", json={"name": ""})

        assert response.status_code == 422

    async def test_list_and_sort(self, client: AsyncClient) -> None:
        await client.post("/api/games", json={"name": "Bravo"})
        await client.post("/api/games", json={"name": "Alpha"})

        response = await client.get("/api/games", params={"sort": "name_desc"})

        assert [g["id"] for g in response.json()] == ["bravo", "alpha"]

    async def test_invalid_sort(self, client: AsyncClient) -> None:
        response = await client.get("/api/games", params={"sort": "random"})

        assert response.status_code == 422

    async def test_get_missing(self, client: AsyncClient) -> None:
        response = await client.get("/api/games/nope")

        assert response.status_code == 404
        data = response.json()
        assert data["kind"] == "not_found"
        assert data["message"] == "Game 'nope' not found"

    async def test_delete(self, client: AsyncClient, deck) -> None:
        response = await client.delete("/api/games/test_game")
        assert response.json() == {"deleted": True}

        assert (await client.get("/api/games/test_game")).status_code == 404
        assert (await client.delete("/api/games/test_game")).json() == {"deleted": False}

    async def test_game_without_image(self, client: AsyncClient) -> None:
        await client.post("/api/games", json={"name": "Test Game"})

        response = await client.get("/api/games/test_game/image")

        assert response.status_code == 404

    async def test_update_game(self, client: AsyncClient, deck) -> None:
        response = await client.patch(
            "/api/games/test_game", json={"name": "Renamed", "description": "Changed"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "renamed"
        assert data["description"] == "Changed"
        assert (await client.get("/api/games/test_game")).status_code == 404
        moved = await client.get("/api/games/renamed/collections/base/decks/loot")
        assert moved.status_code == 200

    async def test_update_game_clash(self, client: AsyncClient, deck) -> None:
        await client.post("/api/games", json={"name": "Other"})

        response = await client.patch("/api/games/test_game", json={"name": "Other"})

        assert response.status_code == 409
        assert response.json()["kind"] == "already_exists"

    async def test_update_missing_game(self, client: AsyncClient) -> None:
        response = await client.patch("/api/games/nope", json={"description": "x"})

        assert response.status_code == 404


class TestCollections:
    async def test_collection_image(self, client: AsyncClient, png_bytes: bytes) -> None:
        await client.post("/api/games", json={"name": "Test Game"})
        await client.post(
            "/api/games/test_game/collections",
            json={"name": "Base", "image_file": base64.b64encode(png_bytes).decode()},
        )

        response = await client.get("/api/games/test_game/collections/base/image")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == png_bytes

    async def test_collection_without_image(self, client: AsyncClient, deck) -> None:
        response = await client.get("/api/games/test_game/collections/base/image")

        assert response.status_code == 404
        assert response.json()["message"] == "Collection image 'base' not found"

    async def test_update_collection(self, client: AsyncClient, deck, png_bytes: bytes) -> None:
        response = await client.patch(
            "/api/games/test_game/collections/base",
            json={"name": "Core", "image_file": base64.b64encode(png_bytes).decode()},
        )

        assert response.status_code == 200
        assert response.json()["id"] == "core"
        image = await client.get("/api/games/test_game/collections/core/image")
        assert image.content == png_bytes


class TestDecks:
    async def test_get_deck(self, client: AsyncClient, deck) -> None:
        response = await client.get(DECK_URL + "/loot")

        assert response.status_code == 200
        data = response.json()
        assert data["game_id"] == "test_game"
        assert data["collection_id"] == "base"
        assert data["image"] == "back.png"

    async def test_deck_image(self, client: AsyncClient, deck, png_bytes: bytes) -> None:
        response = await client.get(DECK_URL + "/loot/image")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == png_bytes

    async def test_undecodable_upload(self, client: AsyncClient, deck) -> None:
        response = await client.post(
            DECK_URL,
            json={"name": "Broken", "image_file": base64.b64encode(b"junk").decode()},
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "decode_failure"

    async def test_missing_collection(self, client: AsyncClient, deck) -> None:
        response = await client.get("/api/games/test_game/collections/dlc/decks")

        assert response.status_code == 404

    async def test_update_deck(self, client: AsyncClient, deck) -> None:
        response = await client.patch(DECK_URL + "/loot", json={"description": "Treasure"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "loot"
        assert data["name"] == "Loot"
        assert data["description"] == "Treasure"
        assert data["image"] == "back.png"

    async def test_update_deck_undecodable_image(self, client: AsyncClient, deck) -> None:
        response = await client.patch(
            DECK_URL + "/loot", json={"image_file": base64.b64encode(b"junk").decode()}
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "decode_failure"


class TestCards:
    async def test_create_and_list(self, client: AsyncClient, deck, png_bytes: bytes) -> None:
        response = await client.post(
            CARDS_URL,
            json={
                "title": "Sword",
                "variables": {"power": "3"},
                "count": 2,
                "image_file": base64.b64encode(png_bytes).decode(),
            },
        )
        assert response.status_code == 201
        card_id = response.json()["id"]

        listed = (await client.get(CARDS_URL)).json()
        assert [c["title"] for c in listed] == ["Sword"]
        assert listed[0]["variables"] == {"power": "3"}
        assert listed[0]["count"] == 2

        image = await client.get(f"{CARDS_URL}/{card_id}/image")
        assert image.content == png_bytes

    async def test_count_must_be_positive(self, client: AsyncClient, deck) -> None:
        response = await client.post(CARDS_URL, json={"title": "Sword", "count": 0})

        assert response.status_code == 422

    async def test_missing_card(self, client: AsyncClient, deck) -> None:
        response = await client.get(CARDS_URL + "/999")

        assert response.status_code == 404
        assert response.json()["message"] == "Card '999' not found"

    async def test_card_without_image(self, client: AsyncClient, deck) -> None:
        card_id = (await client.post(CARDS_URL, json={"title": "Blank"})).json()["id"]

        response = await client.get(f"{CARDS_URL}/{card_id}/image")

        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient, deck) -> None:
        card_id = (await client.post(CARDS_URL, json={"title": "Sword"})).json()["id"]

        response = await client.delete(f"{CARDS_URL}/{card_id}")

        assert response.json() == {"deleted": True}
        assert (await client.get(CARDS_URL)).json() == []

    async def test_update(self, client: AsyncClient, deck) -> None:
        card_id = (
            await client.post(CARDS_URL, json={"title": "Sword", "variables": {"power": "3"}})
        ).json()["id"]

        response = await client.patch(
            f"{CARDS_URL}/{card_id}", json={"count": 4, "variables": {"power": "5"}}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Sword"
        assert data["count"] == 4
        assert data["variables"] == {"power": "5"}

    async def test_update_count_must_be_positive(self, client: AsyncClient, deck) -> None:
        card_id = (await client.post(CARDS_URL, json={"title": "Sword"})).json()["id"]

        response = await client.patch(f"{CARDS_URL}/{card_id}", json={"count": 0})

        assert response.status_code == 422

    async def test_update_missing_card(self, client: AsyncClient, deck) -> None:
        response = await client.patch(CARDS_URL + "/999", json={"title": "x"})

        assert response.status_code == 404
