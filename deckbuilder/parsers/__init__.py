from deckbuilder.parsers.deck_file import (
    CardEntry,
    DeckBacking,
    DeckFile,
    DeckReference,
    InlineDeck,
    discover_deck_files,
    load_deck_file,
    parse_deck_file,
)

__all__ = [
    "CardEntry",
    "DeckBacking",
    "DeckFile",
    "DeckReference",
    "InlineDeck",
    "discover_deck_files",
    "load_deck_file",
    "parse_deck_file",
]
