"""
Content provider.

Read-only view of the game -> collection -> deck -> card tree used by the
generator. Each call opens its own session, so a provider can outlive the
request that started a generation run.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deckbuilder.db.operations import (
    card_to_model,
    collection_to_model,
    deck_to_model,
    game_to_model,
    get_card,
    get_deck,
    get_game,
    list_cards,
    list_collections,
    list_decks,
)
from deckbuilder.models.content import CardInfo, CollectionInfo, DeckInfo, GameInfo
from deckbuilder.models.failure import NotFoundError


class ContentProvider:
    """Async accessors over the content database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_game(self, game_id: str) -> GameInfo:
        async with self._session_factory() as session:
            game = await get_game(session, game_id)
            if game is None:
                raise NotFoundError("game", game_id)
            return game_to_model(game)

    async def list_collections(self, game_id: str, sort: str = "") -> list[CollectionInfo]:
        async with self._session_factory() as session:
            collections = await list_collections(session, game_id, sort)
            return [collection_to_model(c) for c in collections]

    async def list_decks(self, game_id: str, collection_id: str, sort: str = "") -> list[DeckInfo]:
        async with self._session_factory() as session:
            decks = await list_decks(session, game_id, collection_id, sort)
            return [deck_to_model(d, game_id, collection_id) for d in decks]

    async def list_cards(
        self, game_id: str, collection_id: str, deck_id: str, sort: str = ""
    ) -> list[CardInfo]:
        async with self._session_factory() as session:
            cards = await list_cards(session, game_id, collection_id, deck_id, sort)
            return [card_to_model(c, game_id, collection_id, deck_id) for c in cards]

    async def get_deck(self, game_id: str, collection_id: str, deck_id: str) -> DeckInfo:
        async with self._session_factory() as session:
            deck = await get_deck(session, game_id, collection_id, deck_id)
            if deck is None:
                raise NotFoundError("deck", deck_id)
            return deck_to_model(deck, game_id, collection_id)

    async def get_deck_image(self, game_id: str, collection_id: str, deck_id: str) -> bytes:
        """
        Raw bytes of the deck's back image.

        Raises:
            NotFoundError: If the deck or its image is missing
        """
        async with self._session_factory() as session:
            deck = await get_deck(session, game_id, collection_id, deck_id)
            if deck is None:
                raise NotFoundError("deck", deck_id)
            if not deck.image_data:
                raise NotFoundError("deck image", deck_id)
            return deck.image_data

    async def get_card(
        self, game_id: str, collection_id: str, deck_id: str, card_id: int
    ) -> CardInfo:
        async with self._session_factory() as session:
            card = await get_card(session, game_id, collection_id, deck_id, card_id)
            if card is None:
                raise NotFoundError("card", str(card_id))
            return card_to_model(card, game_id, collection_id, deck_id)

    async def get_card_image(
        self, game_id: str, collection_id: str, deck_id: str, card_id: int
    ) -> bytes:
        """
        Raw bytes of the card's face image.

        Raises:
            NotFoundError: If the card or its image is missing
        """
        async with self._session_factory() as session:
            card = await get_card(session, game_id, collection_id, deck_id, card_id)
            if card is None:
                raise NotFoundError("card", str(card_id))
            if not card.image_data:
                raise NotFoundError("card image", str(card_id))
            return card.image_data
