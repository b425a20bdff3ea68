"""
Object graph assembly.

Builds the Bag -> Deck/Card structure of the saved-object document.

Each DeckGroup is accumulated into one `DeckAccumulator`. When the
group ends the accumulator is flushed through `collapse_deck`:
- no cards: nothing is added to the bag
- one card: the bare Card is added (the simulator has no one-card decks)
- more cards: the Deck is added

INVARIANT: DeckIDs and ContainedObjects always have the same length and
order; each card copy contributes exactly one entry to both.
"""

from enum import Enum

from deckbuilder.config import CARD_CODE_PAGE_MULTIPLIER
from deckbuilder.models.content import CardInfo
from deckbuilder.models.tts import Bag, Card, DeckDescription, DeckObject, RootObjects, Transform


def card_code(page_number: int, slot: int) -> int:
    """
    Card code linking a card entry to its cell on a page image.

    page_number is 1-based, slot is the 0-based row-major cell index.
    """
    return page_number * CARD_CODE_PAGE_MULTIPLIER + slot


def collapse_deck(deck: DeckObject) -> DeckObject | Card | None:
    """Reduce a finished deck to what belongs in the bag."""
    if not deck.contained_objects:
        return None
    if len(deck.contained_objects) == 1:
        return deck.contained_objects[0]
    return deck


class DeckState(str, Enum):
    ACCUMULATING = "accumulating"
    FLUSHED = "flushed"


class DeckAccumulator:
    """Collects the pages and card copies of one DeckGroup."""

    def __init__(self, nickname: str, description: str = ""):
        self.state = DeckState.ACCUMULATING
        self.deck = DeckObject(
            nickname=nickname,
            description=description,
            transform=Transform(),
        )

    def _check_open(self) -> None:
        if self.state is not DeckState.ACCUMULATING:
            raise RuntimeError(f"Deck '{self.deck.nickname}' was already flushed")

    def add_page(self, page_number: int, description: DeckDescription) -> None:
        """Register a page image under its 1-based page number."""
        self._check_open()
        self.deck.custom_deck[page_number] = description

    def add_card(self, card: CardInfo, page_number: int, slot: int) -> int:
        """
        Add every copy of `card` located at (page_number, slot).

        Returns:
            The card code used for the copies
        """
        self._check_open()
        description = self.deck.custom_deck.get(page_number)
        if description is None:
            raise RuntimeError(f"Page {page_number} was not registered before its cards")

        code = card_code(page_number, slot)
        for _ in range(card.count):
            self.deck.deck_ids.append(code)
            self.deck.contained_objects.append(
                Card(
                    nickname=card.title,
                    description=card.description,
                    card_id=code,
                    lua_script=card.variable_lines(),
                    custom_deck={page_number: description},
                    transform=Transform(),
                )
            )
        return code

    def flush(self) -> DeckObject | Card | None:
        """Close the accumulator and return what goes into the bag."""
        self._check_open()
        self.state = DeckState.FLUSHED
        return collapse_deck(self.deck)


class BagBuilder:
    """Accumulates flushed decks into the root bag."""

    def __init__(self, nickname: str, description: str = ""):
        self.bag = Bag(nickname=nickname, description=description, transform=Transform())
        self._current: DeckAccumulator | None = None

    def start_deck(self, nickname: str, description: str = "") -> DeckAccumulator:
        """Flush the current deck (if any) and open a new one."""
        self.flush()
        self._current = DeckAccumulator(nickname, description)
        return self._current

    def flush(self) -> None:
        if self._current is None:
            return
        obj = self._current.flush()
        if obj is not None:
            self.bag.contained_objects.append(obj)
        self._current = None

    def build(self) -> RootObjects:
        """Flush the last deck and wrap the bag in the document root."""
        self.flush()
        return RootObjects(object_states=[self.bag])
