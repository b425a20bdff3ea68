"""Tests for the deck file import job."""

import json
from pathlib import Path

import httpx
import pytest
import respx

from deckbuilder.db.operations import get_card, get_deck, list_cards, list_collections
from deckbuilder.jobs.import_decks import (
    collection_name,
    fetch_image,
    resolve_reference,
    run_import,
)
from deckbuilder.models.failure import AlreadyExistsError, ImageFetchError
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.generator import GeneratorService
from deckbuilder.services.output import OutputSink

BACK_URL = "https://cdn.example.com/back.png"


@pytest.fixture
def deck_tree(tmp_path: Path, make_png) -> Path:
    """
    root/
        base/loot.json      (reference deck, local images)
        base/files/*.png
        dlc/monster.json    (inline deck, remote back image)
    """
    root = tmp_path / "Test Game"
    files = root / "base" / "files"
    files.mkdir(parents=True)
    (root / "dlc").mkdir()

    (files / "back.png").write_bytes(make_png(color=(0, 0, 255, 255)))
    (files / "sword.png").write_bytes(make_png(color=(255, 0, 0, 255)))
    (files / "shield.png").write_bytes(make_png(color=(0, 255, 0, 255)))

    (root / "base" / "loot.json").write_text(
        json.dumps(
            {
                "deck": "files/back.png",
                "cards": {
                    "2": {"title": "Shield", "image": "files/shield.png"},
                    "1": {
                        "title": "Sword",
                        "image": "files/sword.png",
                        "variables": {"power": 3},
                        "count": 2,
                    },
                },
            }
        )
    )
    (root / "dlc" / "monster.json").write_text(
        json.dumps(
            {
                "deck": {"name": "Monsters", "description": "Scary", "image": BACK_URL},
                "cards": {"1": {"title": "Goblin", "image": "../base/files/sword.png"}},
            }
        )
    )
    return root


class TestFetchImage:
    async def test_empty_reference(self, tmp_path: Path) -> None:
        async with httpx.AsyncClient() as client:
            assert await fetch_image("", tmp_path, client) is None

    async def test_relative_path(self, tmp_path: Path) -> None:
        (tmp_path / "a.png").write_bytes(b"data")

        async with httpx.AsyncClient() as client:
            assert await fetch_image("a.png", tmp_path, client) == b"data"

    async def test_missing_file(self, tmp_path: Path) -> None:
        async with httpx.AsyncClient() as client:
            with pytest.raises(ImageFetchError):
                await fetch_image("missing.png", tmp_path, client)

    @respx.mock
    async def test_http_error(self, tmp_path: Path) -> None:
        respx.get(BACK_URL).mock(return_value=httpx.Response(404))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ImageFetchError) as exc_info:
                await fetch_image(BACK_URL, tmp_path, client)

        assert exc_info.value.status_code == 502


class TestResolveReference:
    def test_relative_path_is_made_absolute(self, tmp_path: Path) -> None:
        assert resolve_reference("files/back.png", tmp_path) == str(
            (tmp_path / "files" / "back.png").resolve()
        )

    def test_url_and_empty_unchanged(self, tmp_path: Path) -> None:
        assert resolve_reference(BACK_URL, tmp_path) == BACK_URL
        assert resolve_reference("", tmp_path) == ""


class TestCollectionName:
    def test_sub_directory(self, tmp_path: Path) -> None:
        assert collection_name(tmp_path, tmp_path / "base" / "loot.json") == "base"
        assert collection_name(tmp_path, tmp_path / "a" / "b" / "loot.json") == "a b"

    def test_top_level_uses_root_name(self, tmp_path: Path) -> None:
        assert collection_name(tmp_path, tmp_path / "loot.json") == tmp_path.name


class TestRunImport:
    @respx.mock
    async def test_imports_tree(self, deck_tree: Path, session_factory, make_png) -> None:
        remote_back = make_png(color=(9, 9, 9, 255))
        route = respx.get(BACK_URL).mock(return_value=httpx.Response(200, content=remote_back))

        summary = await run_import(deck_tree, session_factory=session_factory)

        assert summary.game_id == "test_game"
        assert (summary.collections, summary.decks, summary.cards) == (2, 2, 3)
        assert route.called

        async with session_factory() as session:
            collections = await list_collections(session, "test_game")
            assert [c.slug for c in collections] == ["base", "dlc"]

            loot = await get_deck(session, "test_game", "base", "loot")
            assert loot.image == str((deck_tree / "base" / "files" / "back.png").resolve())
            assert loot.image_data == (deck_tree / "base" / "files" / "back.png").read_bytes()

            cards = await list_cards(session, "test_game", "base", "loot")
            assert [c.title for c in cards] == ["Sword", "Shield"]
            assert cards[0].variables == {"power": "3"}
            assert cards[0].count == 2

            monsters = await get_deck(session, "test_game", "dlc", "monsters")
            assert monsters.description == "Scary"
            assert monsters.image_data == remote_back

            (goblin,) = await list_cards(session, "test_game", "dlc", "monsters")
            fetched = await get_card(session, "test_game", "dlc", "monsters", goblin.id)
            assert fetched.image_data == (deck_tree / "base" / "files" / "sword.png").read_bytes()

    @respx.mock
    async def test_custom_game_name(self, deck_tree: Path, session_factory) -> None:
        respx.get(BACK_URL).mock(return_value=httpx.Response(200, content=b"img"))

        summary = await run_import(
            deck_tree, game_name="Renamed", description="d", session_factory=session_factory
        )

        assert summary.game_id == "renamed"

    @respx.mock
    async def test_second_import_conflicts(self, deck_tree: Path, session_factory) -> None:
        respx.get(BACK_URL).mock(return_value=httpx.Response(200, content=b"img"))
        await run_import(deck_tree, session_factory=session_factory)

        with pytest.raises(AlreadyExistsError):
            await run_import(deck_tree, session_factory=session_factory)

    @respx.mock
    async def test_failed_fetch_stores_nothing(self, deck_tree: Path, session_factory) -> None:
        respx.get(BACK_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(ImageFetchError):
            await run_import(deck_tree, session_factory=session_factory)

        async with session_factory() as session:
            assert await get_deck(session, "test_game", "base", "loot") is None

    async def test_same_deck_name_in_two_collections(
        self, tmp_path: Path, session_factory, make_png
    ) -> None:
        root = tmp_path / "Game"
        for collection, color in (("base", (0, 0, 255, 255)), ("dlc", (255, 0, 0, 255))):
            files = root / collection / "files"
            files.mkdir(parents=True)
            (files / "back.png").write_bytes(make_png(color=color))
            (files / "card.png").write_bytes(make_png(color=color))
            (root / collection / "loot.json").write_text(
                json.dumps(
                    {
                        "deck": "files/back.png",
                        "cards": {"1": {"title": "Card", "image": "files/card.png", "count": 2}},
                    }
                )
            )

        summary = await run_import(root, session_factory=session_factory)

        service = GeneratorService(
            provider=ContentProvider(session_factory),
            sink=OutputSink(tmp_path / "result"),
        )
        decks = await service.collect_cards(summary.game_id)

        assert len(decks) == 2
        assert [group.pages[0][0].collection_id for group in decks] == ["base", "dlc"]
