"""
Deck aggregation.

Groups a flat stream of cards into DeckGroups (same deck, same back
image) and splits each group into pages of bounded size. Groups, pages
and slots keep insertion order, which fixes every card's grid position
and therefore its card code.
"""

from collections.abc import Iterator

from deckbuilder.config import GridBounds
from deckbuilder.models.layout import CardPlacement, DeckGroup, DeckKey


class DeckArray:
    """
    Builder for the DeckGroup -> pages -> placements structure.

    Usage:
        decks = DeckArray(capacity=69)
        decks.select_deck("loot", "https://example.com/loot_back.png")
        decks.add_card("base", "core", 1, count=1)
    """

    def __init__(self, capacity: int | None = None):
        if capacity is None:
            capacity = GridBounds().page_capacity()
        if capacity < 1:
            raise ValueError(f"Page capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._groups: dict[DeckKey, DeckGroup] = {}
        self._current: DeckGroup | None = None

    def select_deck(self, deck_id: str, back_image: str) -> DeckGroup:
        """Make (deck_id, back_image) the target of following add_card calls."""
        key = DeckKey(deck_id=deck_id, back_image=back_image)
        group = self._groups.get(key)
        if group is None:
            group = DeckGroup(key=key, pages=[[]])
            self._groups[key] = group
        self._current = group
        return group

    def add_card(self, game_id: str, collection_id: str, card_id: int, count: int = 1) -> None:
        """
        Append a card to the current group's last page.

        Opens a new page first when the last one is full.

        Raises:
            RuntimeError: If no deck has been selected
        """
        if self._current is None:
            raise RuntimeError("select_deck() must be called before add_card()")

        group = self._current
        if len(group.pages[-1]) >= self.capacity:
            group.pages.append([])

        group.pages[-1].append(
            CardPlacement(
                game_id=game_id,
                collection_id=collection_id,
                deck_id=group.key.deck_id,
                card_id=card_id,
                count=count,
            )
        )

    @property
    def groups(self) -> list[DeckGroup]:
        """DeckGroups in the order they were first selected."""
        return list(self._groups.values())

    def __iter__(self) -> Iterator[DeckGroup]:
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)

    def total_cards(self) -> int:
        """Number of placements across all groups."""
        return sum(group.card_count() for group in self._groups.values())

    def total_pages(self) -> int:
        """Number of non-empty pages across all groups."""
        return sum(1 for group in self._groups.values() for page in group.pages if page)
