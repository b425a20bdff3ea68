"""
Generate the bundle for a game from the command line.

Runs the same pipeline as the API and waits for it to finish.
"""

import argparse
import asyncio
import logging
import sys

from deckbuilder.config import GridBounds, settings
from deckbuilder.db.database import async_session_factory, init_db
from deckbuilder.models.progress import GenerationStatus, ProgressSnapshot
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.generator import GeneratorService
from deckbuilder.services.output import OutputSink

logger = logging.getLogger(__name__)


async def run_generate(game_id: str, sort_order: str = "") -> ProgressSnapshot:
    """Generate the bundle for `game_id` and return the final status."""
    await init_db()

    service = GeneratorService(
        provider=ContentProvider(async_session_factory),
        sink=OutputSink(settings.result_dir),
        bounds=GridBounds.from_settings(settings),
        brightness=settings.backside_brightness,
    )
    run = await service.start(game_id, sort_order)
    snapshot = await run.wait()

    if snapshot.status is GenerationStatus.DONE:
        logger.info("Bundle for %s written to %s", game_id, settings.result_dir)
    else:
        logger.error("Generation for %s failed: %s", game_id, snapshot.message)
    return snapshot


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Generate the tabletop bundle for a game")
    parser.add_argument("game_id", help="Id of the game to generate")
    parser.add_argument(
        "--sort",
        default=settings.default_sort,
        choices=["", "name", "name_desc", "created", "created_desc"],
        help="Order of collections, decks and cards",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    snapshot = asyncio.run(run_generate(args.game_id, args.sort))
    if snapshot.status is not GenerationStatus.DONE:
        sys.exit(1)


if __name__ == "__main__":
    main()
