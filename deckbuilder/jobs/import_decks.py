"""
Import a directory of deck files as a game.

Layout:
    <root>/<collection>/<deck>.json
    <root>/<collection>/files/...      (images, skipped by the crawler)

Each sub-directory becomes a collection, each JSON file a deck. Image
references are read relative to the deck file or fetched over HTTP.
The whole import is committed in one transaction.
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deckbuilder.db.database import async_session_factory, init_db
from deckbuilder.db.operations import (
    create_card,
    create_collection,
    create_deck,
    create_game,
    get_collection,
    name_to_id,
)
from deckbuilder.models.failure import ImageFetchError
from deckbuilder.parsers.deck_file import DeckFile, discover_deck_files, load_deck_file

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 30.0


@dataclass
class ImportSummary:
    game_id: str
    collections: int = 0
    decks: int = 0
    cards: int = 0


async def fetch_image(reference: str, base_dir: Path, client: httpx.AsyncClient) -> bytes | None:
    """
    Load the bytes behind an image reference.

    Returns None for an empty reference.

    Raises:
        ImageFetchError: If the file is unreadable or the request fails
    """
    if not reference:
        return None

    if reference.startswith(("http://", "https://")):
        try:
            response = await client.get(reference)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageFetchError(reference, detail=str(e)) from e
        return response.content

    path = Path(reference)
    if not path.is_absolute():
        path = base_dir / path
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageFetchError(reference, detail=str(e)) from e


def resolve_reference(reference: str, base_dir: Path) -> str:
    """
    Make a local image reference absolute.

    Generated decks are keyed by deck id and back image reference, so
    a relative "files/back.png" would match across collections. URLs and
    empty references are returned unchanged.
    """
    if not reference or reference.startswith(("http://", "https://")):
        return reference
    return str((base_dir / reference).resolve())


def collection_name(root: Path, deck_path: Path) -> str:
    """Collection a deck file belongs to: its directory below `root`."""
    parts = deck_path.parent.relative_to(root).parts
    return " ".join(parts) if parts else root.name


async def import_deck(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    path: Path,
    deck_file: DeckFile,
    client: httpx.AsyncClient,
) -> int:
    """
    Store one parsed deck file.

    Returns:
        Number of cards created
    """
    back_reference = resolve_reference(deck_file.deck.image, path.parent)
    back_image = await fetch_image(back_reference, path.parent, client)
    deck = await create_deck(
        session,
        game_id,
        collection_id,
        name=deck_file.deck_name(path.stem),
        description=deck_file.deck_description(),
        image=back_reference,
        image_data=back_image,
    )

    cards = deck_file.ordered_cards()
    for _, entry in cards:
        card_reference = resolve_reference(entry.image, path.parent)
        await create_card(
            session,
            game_id,
            collection_id,
            deck.slug,
            title=entry.title,
            description=entry.description,
            image=card_reference,
            image_data=await fetch_image(card_reference, path.parent, client),
            variables=entry.variables,
            count=entry.count,
        )

    logger.info("Imported deck %s (%d cards) from %s", deck.slug, len(cards), path)
    return len(cards)


async def run_import(
    root: Path,
    game_name: str | None = None,
    description: str = "",
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    client: httpx.AsyncClient | None = None,
) -> ImportSummary:
    """
    Import every deck file under `root` into a new game.

    Args:
        root: Directory to crawl
        game_name: Name of the game; defaults to the directory name
        description: Game description
        session_factory: Where to store the result
        client: HTTP client for remote images; one is created if omitted

    Returns:
        Counts of what was created
    """
    paths = discover_deck_files(root)
    logger.info("Found %d deck files under %s", len(paths), root)

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            headers={"User-Agent": "DeckBuilder/1.0"},
            follow_redirects=True,
            timeout=HTTP_TIMEOUT,
        )

    try:
        async with session_factory() as session:
            game = await create_game(session, name=game_name or root.name, description=description)
            summary = ImportSummary(game_id=game.id)

            for path in paths:
                deck_file = load_deck_file(path)

                name = collection_name(root, path)
                collection_id = name_to_id(name)
                if await get_collection(session, game.id, collection_id) is None:
                    await create_collection(session, game.id, name=name)
                    summary.collections += 1

                summary.cards += await import_deck(
                    session, game.id, collection_id, path, deck_file, client
                )
                summary.decks += 1

            await session.commit()
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        "Import complete: game=%s collections=%d decks=%d cards=%d",
        summary.game_id,
        summary.collections,
        summary.decks,
        summary.cards,
    )
    return summary


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import a directory of deck files")
    parser.add_argument("root", type=Path, help="Directory holding the deck files")
    parser.add_argument("--name", help="Game name (defaults to the directory name)")
    parser.add_argument("--description", default="", help="Game description")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    async def _run() -> None:
        await init_db()
        await run_import(args.root, args.name, args.description)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
