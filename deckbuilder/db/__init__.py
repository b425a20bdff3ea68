from deckbuilder.db.database import get_session, init_db
from deckbuilder.db.operations import (
    card_to_model,
    collection_to_model,
    create_card,
    create_collection,
    create_deck,
    create_game,
    deck_to_model,
    delete_card,
    delete_collection,
    delete_deck,
    delete_game,
    game_to_model,
    get_card,
    get_collection,
    get_deck,
    get_game,
    list_cards,
    list_collections,
    list_decks,
    list_games,
    name_to_id,
)

__all__ = [
    "card_to_model",
    "collection_to_model",
    "create_card",
    "create_collection",
    "create_deck",
    "create_game",
    "deck_to_model",
    "delete_card",
    "delete_collection",
    "delete_deck",
    "delete_game",
    "game_to_model",
    "get_card",
    "get_collection",
    "get_deck",
    "get_game",
    "get_session",
    "init_db",
    "list_cards",
    "list_collections",
    "list_decks",
    "list_games",
    "name_to_id",
]
