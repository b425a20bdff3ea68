"""
Database CRUD operations.

Provides async functions for creating, reading, listing, updating and
deleting games, collections, decks and cards.

Updates take None for "leave unchanged". Renaming re-derives the id, so
the entity moves to a new URL.
"""

import re
from typing import Any

from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from deckbuilder.config import MAX_FILENAME_LENGTH
from deckbuilder.models.content import CardInfo, CollectionInfo, DeckInfo, GameInfo
from deckbuilder.models.db import CardDB, CollectionDB, DeckDB, GameDB
from deckbuilder.models.failure import AlreadyExistsError, FailureKind, KnownError, NotFoundError

# Sort values accepted by every list operation
SORT_VALUES = frozenset({"", "name", "name_desc", "created", "created_desc"})

_NON_ID_CHARS = re.compile(r"[^a-z0-9]+")


def name_to_id(name: str) -> str:
    """
    Derive a stable identifier from a display name.

    "Base Game: DLC 2" -> "base_game_dlc_2"
    """
    slug = _NON_ID_CHARS.sub("_", name.strip().lower()).strip("_")
    return slug[:MAX_FILENAME_LENGTH]


def _require_id(name: str) -> str:
    entity_id = name_to_id(name)
    if not entity_id:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message=f"Name '{name}' does not produce a valid identifier",
            suggestion="Use at least one letter or digit in the name.",
        )
    return entity_id


def _apply_sort(stmt: Select[Any], model: Any, sort: str) -> Select[Any]:
    if sort not in SORT_VALUES:
        raise ValueError(f"Unknown sort value: {sort!r}")

    if sort == "name":
        return stmt.order_by(model.name, model.id)
    if sort == "name_desc":
        return stmt.order_by(model.name.desc(), model.id.desc())
    if sort == "created":
        return stmt.order_by(model.created_at, model.id)
    if sort == "created_desc":
        return stmt.order_by(model.created_at.desc(), model.id.desc())
    return stmt.order_by(model.id)


# --- Game Operations ---


async def get_game(session: AsyncSession, game_id: str) -> GameDB | None:
    """
    Get a game by id.

    Returns None if the game does not exist.
    """
    return await session.get(GameDB, game_id)


async def list_games(session: AsyncSession, sort: str = "") -> list[GameDB]:
    stmt = _apply_sort(select(GameDB), GameDB, sort)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_game(
    session: AsyncSession,
    name: str,
    description: str = "",
    image: str = "",
    image_data: bytes | None = None,
) -> GameDB:
    """
    Create a new game.

    Raises AlreadyExistsError if a game with the same id exists.
    """
    game_id = _require_id(name)
    if await get_game(session, game_id) is not None:
        raise AlreadyExistsError("game", game_id)

    game = GameDB(
        id=game_id,
        name=name,
        description=description,
        image=image,
        image_data=image_data,
    )
    session.add(game)
    await session.flush()
    return game


async def delete_game(session: AsyncSession, game_id: str) -> bool:
    """
    Delete a game and everything inside it.

    Returns True if deleted, False if not found.
    """
    game = await get_game(session, game_id)
    if game is None:
        return False

    collections = select(CollectionDB.id).where(CollectionDB.game_id == game_id)
    decks = select(DeckDB.id).where(DeckDB.collection_id.in_(collections))
    await session.execute(delete(CardDB).where(CardDB.deck_id.in_(decks)))
    await session.execute(delete(DeckDB).where(DeckDB.collection_id.in_(collections)))
    await session.execute(delete(CollectionDB).where(CollectionDB.game_id == game_id))
    await session.execute(delete(GameDB).where(GameDB.id == game_id))
    await session.flush()
    return True


async def update_game(
    session: AsyncSession,
    game_id: str,
    name: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_data: bytes | None = None,
) -> GameDB:
    """
    Update a game. A new name moves its collections to the new id.

    Raises:
        NotFoundError: If the game does not exist
        AlreadyExistsError: If the new name clashes with another game
    """
    game = await get_game(session, game_id)
    if game is None:
        raise NotFoundError("game", game_id)

    if name is not None:
        new_id = _require_id(name)
        if new_id != game_id:
            if await get_game(session, new_id) is not None:
                raise AlreadyExistsError("game", new_id)
            game = await _move_game(session, game, new_id)
        game.name = name
    if description is not None:
        game.description = description
    if image is not None:
        game.image = image
    if image_data is not None:
        game.image_data = image_data

    await session.flush()
    return game


async def _move_game(session: AsyncSession, game: GameDB, new_id: str) -> GameDB:
    # Game ids are primary keys; copy the row and repoint collections before dropping it
    moved = GameDB(
        id=new_id,
        name=game.name,
        description=game.description,
        image=game.image,
        image_data=game.image_data,
        created_at=game.created_at,
    )
    session.add(moved)
    await session.flush()

    old_id = game.id
    await session.execute(
        update(CollectionDB).where(CollectionDB.game_id == old_id).values(game_id=new_id)
    )
    await session.execute(delete(GameDB).where(GameDB.id == old_id))
    return moved


def game_to_model(game: GameDB) -> GameInfo:
    """Convert a database game to a domain model."""
    return GameInfo(
        id=game.id,
        name=game.name,
        description=game.description or "",
        image=game.image or "",
        created_at=game.created_at,
    )


# --- Collection Operations ---


async def get_collection(
    session: AsyncSession, game_id: str, collection_id: str
) -> CollectionDB | None:
    result = await session.execute(
        select(CollectionDB).where(
            CollectionDB.game_id == game_id,
            CollectionDB.slug == collection_id,
        )
    )
    return result.scalar_one_or_none()


async def _require_collection(
    session: AsyncSession, game_id: str, collection_id: str
) -> CollectionDB:
    if await get_game(session, game_id) is None:
        raise NotFoundError("game", game_id)
    collection = await get_collection(session, game_id, collection_id)
    if collection is None:
        raise NotFoundError("collection", collection_id)
    return collection


async def list_collections(
    session: AsyncSession, game_id: str, sort: str = ""
) -> list[CollectionDB]:
    """
    List collections of a game.

    Raises NotFoundError if the game does not exist.
    """
    if await get_game(session, game_id) is None:
        raise NotFoundError("game", game_id)

    stmt = _apply_sort(
        select(CollectionDB).where(CollectionDB.game_id == game_id), CollectionDB, sort
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_collection(
    session: AsyncSession,
    game_id: str,
    name: str,
    description: str = "",
    image: str = "",
    image_data: bytes | None = None,
) -> CollectionDB:
    if await get_game(session, game_id) is None:
        raise NotFoundError("game", game_id)

    collection_id = _require_id(name)
    if await get_collection(session, game_id, collection_id) is not None:
        raise AlreadyExistsError("collection", collection_id)

    collection = CollectionDB(
        game_id=game_id,
        slug=collection_id,
        name=name,
        description=description,
        image=image,
        image_data=image_data,
    )
    session.add(collection)
    await session.flush()
    return collection


async def delete_collection(session: AsyncSession, game_id: str, collection_id: str) -> bool:
    collection = await get_collection(session, game_id, collection_id)
    if collection is None:
        return False

    decks = select(DeckDB.id).where(DeckDB.collection_id == collection.id)
    await session.execute(delete(CardDB).where(CardDB.deck_id.in_(decks)))
    await session.execute(delete(DeckDB).where(DeckDB.collection_id == collection.id))
    await session.execute(delete(CollectionDB).where(CollectionDB.id == collection.id))
    await session.flush()
    return True


async def update_collection(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    name: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_data: bytes | None = None,
) -> CollectionDB:
    """
    Update a collection.

    Raises:
        NotFoundError: If the game or collection does not exist
        AlreadyExistsError: If the new name clashes inside the game
    """
    collection = await _require_collection(session, game_id, collection_id)

    if name is not None:
        new_id = _require_id(name)
        if new_id != collection.slug:
            if await get_collection(session, game_id, new_id) is not None:
                raise AlreadyExistsError("collection", new_id)
            collection.slug = new_id
        collection.name = name
    if description is not None:
        collection.description = description
    if image is not None:
        collection.image = image
    if image_data is not None:
        collection.image_data = image_data

    await session.flush()
    return collection


def collection_to_model(collection: CollectionDB) -> CollectionInfo:
    return CollectionInfo(
        id=collection.slug,
        game_id=collection.game_id,
        name=collection.name,
        description=collection.description or "",
        image=collection.image or "",
        created_at=collection.created_at,
    )


# --- Deck Operations ---


async def get_deck(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str
) -> DeckDB | None:
    result = await session.execute(
        select(DeckDB)
        .join(CollectionDB, DeckDB.collection_id == CollectionDB.id)
        .where(
            CollectionDB.game_id == game_id,
            CollectionDB.slug == collection_id,
            DeckDB.slug == deck_id,
        )
    )
    return result.scalar_one_or_none()


async def _require_deck(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str
) -> DeckDB:
    await _require_collection(session, game_id, collection_id)
    deck = await get_deck(session, game_id, collection_id, deck_id)
    if deck is None:
        raise NotFoundError("deck", deck_id)
    return deck


async def list_decks(
    session: AsyncSession, game_id: str, collection_id: str, sort: str = ""
) -> list[DeckDB]:
    """
    List decks of a collection.

    Raises NotFoundError if the game or collection does not exist.
    """
    collection = await _require_collection(session, game_id, collection_id)

    stmt = _apply_sort(select(DeckDB).where(DeckDB.collection_id == collection.id), DeckDB, sort)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_deck(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    name: str,
    description: str = "",
    image: str = "",
    image_data: bytes | None = None,
) -> DeckDB:
    collection = await _require_collection(session, game_id, collection_id)

    deck_id = _require_id(name)
    if await get_deck(session, game_id, collection_id, deck_id) is not None:
        raise AlreadyExistsError("deck", deck_id)

    deck = DeckDB(
        collection_id=collection.id,
        slug=deck_id,
        name=name,
        description=description,
        image=image,
        image_data=image_data,
    )
    session.add(deck)
    await session.flush()
    return deck


async def delete_deck(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str
) -> bool:
    deck = await get_deck(session, game_id, collection_id, deck_id)
    if deck is None:
        return False

    await session.execute(delete(CardDB).where(CardDB.deck_id == deck.id))
    await session.execute(delete(DeckDB).where(DeckDB.id == deck.id))
    await session.flush()
    return True


async def update_deck(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    deck_id: str,
    name: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_data: bytes | None = None,
) -> DeckDB:
    """
    Update a deck.

    Raises:
        NotFoundError: If the deck or a parent does not exist
        AlreadyExistsError: If the new name clashes inside the collection
    """
    deck = await _require_deck(session, game_id, collection_id, deck_id)

    if name is not None:
        new_id = _require_id(name)
        if new_id != deck.slug:
            if await get_deck(session, game_id, collection_id, new_id) is not None:
                raise AlreadyExistsError("deck", new_id)
            deck.slug = new_id
        deck.name = name
    if description is not None:
        deck.description = description
    if image is not None:
        deck.image = image
    if image_data is not None:
        deck.image_data = image_data

    await session.flush()
    return deck


def deck_to_model(deck: DeckDB, game_id: str, collection_id: str) -> DeckInfo:
    return DeckInfo(
        id=deck.slug,
        game_id=game_id,
        collection_id=collection_id,
        name=deck.name,
        description=deck.description or "",
        image=deck.image or "",
        created_at=deck.created_at,
    )


# --- Card Operations ---


async def get_card(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str, card_id: int
) -> CardDB | None:
    deck = await get_deck(session, game_id, collection_id, deck_id)
    if deck is None:
        return None

    result = await session.execute(
        select(CardDB).where(CardDB.deck_id == deck.id, CardDB.id == card_id)
    )
    return result.scalar_one_or_none()


async def list_cards(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str, sort: str = ""
) -> list[CardDB]:
    """
    List cards of a deck.

    Raises NotFoundError if any parent does not exist.
    """
    deck = await _require_deck(session, game_id, collection_id, deck_id)

    # Cards have a title rather than a name
    stmt = select(CardDB).where(CardDB.deck_id == deck.id)
    if sort == "name":
        stmt = stmt.order_by(CardDB.title, CardDB.id)
    elif sort == "name_desc":
        stmt = stmt.order_by(CardDB.title.desc(), CardDB.id.desc())
    else:
        stmt = _apply_sort(stmt, CardDB, sort)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_card(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    deck_id: str,
    title: str,
    description: str = "",
    image: str = "",
    image_data: bytes | None = None,
    variables: dict[str, str] | None = None,
    count: int = 1,
) -> CardDB:
    """
    Create a card inside a deck.

    A count below 1 is stored as 1.
    """
    deck = await _require_deck(session, game_id, collection_id, deck_id)

    card = CardDB(
        deck_id=deck.id,
        title=title,
        description=description,
        image=image,
        image_data=image_data,
        variables=dict(variables or {}),
        count=max(1, count),
    )
    session.add(card)
    await session.flush()
    return card


async def delete_card(
    session: AsyncSession, game_id: str, collection_id: str, deck_id: str, card_id: int
) -> bool:
    card = await get_card(session, game_id, collection_id, deck_id, card_id)
    if card is None:
        return False

    await session.execute(delete(CardDB).where(CardDB.id == card.id))
    await session.flush()
    return True


async def update_card(
    session: AsyncSession,
    game_id: str,
    collection_id: str,
    deck_id: str,
    card_id: int,
    title: str | None = None,
    description: str | None = None,
    image: str | None = None,
    image_data: bytes | None = None,
    variables: dict[str, str] | None = None,
    count: int | None = None,
) -> CardDB:
    """
    Update a card. New variables replace the old ones entirely.

    Raises NotFoundError if the card or a parent does not exist.
    """
    await _require_deck(session, game_id, collection_id, deck_id)
    card = await get_card(session, game_id, collection_id, deck_id, card_id)
    if card is None:
        raise NotFoundError("card", str(card_id))

    if title is not None:
        card.title = title
    if description is not None:
        card.description = description
    if image is not None:
        card.image = image
    if image_data is not None:
        card.image_data = image_data
    if variables is not None:
        card.variables = dict(variables)
    if count is not None:
        card.count = max(1, count)

    await session.flush()
    return card


def card_to_model(card: CardDB, game_id: str, collection_id: str, deck_id: str) -> CardInfo:
    return CardInfo(
        id=card.id,
        game_id=game_id,
        collection_id=collection_id,
        deck_id=deck_id,
        title=card.title,
        description=card.description or "",
        image=card.image or "",
        variables={str(k): str(v) for k, v in (card.variables or {}).items()},
        count=card.count,
        created_at=card.created_at,
    )
