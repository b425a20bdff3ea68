from dataclasses import dataclass, field


@dataclass(frozen=True)
class CardPlacement:
    """
    One distinct card face placed on a page.

    Attributes:
        game_id: Game the card belongs to
        collection_id: Collection the card belongs to
        deck_id: Deck the card belongs to
        card_id: Card identifier within the deck
        count: Replication count seen when the card was grouped
    """

    game_id: str
    collection_id: str
    deck_id: str
    card_id: int
    count: int = 1


@dataclass(frozen=True)
class DeckKey:
    """Identity of a DeckGroup: cards sharing a deck and a back image."""

    deck_id: str
    back_image: str


@dataclass
class DeckGroup:
    """Ordered pages of cards that share one DeckKey."""

    key: DeckKey
    pages: list[list[CardPlacement]] = field(default_factory=list)

    def card_count(self) -> int:
        """Number of placements across all pages."""
        return sum(len(page) for page in self.pages)


@dataclass(frozen=True)
class PageLayout:
    """Grid shape and pixel size of one page image."""

    columns: int
    rows: int
    width: int
    height: int
    count: int
    name: str

    @property
    def cells(self) -> int:
        return self.columns * self.rows
