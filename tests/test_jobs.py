"""Tests for the command line jobs."""

from unittest.mock import AsyncMock, patch

import pytest

from deckbuilder.config import Settings
from deckbuilder.db.operations import create_card, create_collection, create_deck, create_game
from deckbuilder.jobs.generate import run_generate
from deckbuilder.models.failure import NotFoundError
from deckbuilder.models.progress import GenerationStatus


@pytest.fixture
def job_settings(tmp_path) -> Settings:
    return Settings(result_dir=tmp_path / "result", max_grid_width=4, max_grid_height=3)


class TestRunGenerate:
    async def test_generates_bundle(self, session_factory, job_settings, png_bytes) -> None:
        async with session_factory() as session:
            await create_game(session, name="Test Game")
            await create_collection(session, "test_game", name="Base")
            await create_deck(session, "test_game", "base", name="Loot", image_data=png_bytes)
            for i in range(12):
                await create_card(
                    session, "test_game", "base", "loot", title=f"Card {i}", image_data=png_bytes
                )
            await session.commit()

        with (
            patch("deckbuilder.jobs.generate.init_db", new_callable=AsyncMock),
            patch("deckbuilder.jobs.generate.async_session_factory", session_factory),
            patch("deckbuilder.jobs.generate.settings", job_settings),
        ):
            snapshot = await run_generate("test_game")

        assert snapshot.status is GenerationStatus.DONE
        # 4x3 bounds leave 11 card slots per page
        assert (job_settings.result_dir / "loot_1_11_4x3.png").exists()
        assert (job_settings.result_dir / "loot_2_1_2x2.png").exists()
        assert (job_settings.result_dir / "test_game.json").exists()

    async def test_missing_game(self, session_factory, job_settings) -> None:
        with (
            patch("deckbuilder.jobs.generate.init_db", new_callable=AsyncMock),
            patch("deckbuilder.jobs.generate.async_session_factory", session_factory),
            patch("deckbuilder.jobs.generate.settings", job_settings),
        ):
            with pytest.raises(NotFoundError):
                await run_generate("nope")
