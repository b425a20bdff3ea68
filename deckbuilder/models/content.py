from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class GameInfo:
    """A card game: the root of the content tree."""

    id: str
    name: str
    description: str = ""
    image: str = ""
    created_at: datetime | None = None


@dataclass
class CollectionInfo:
    """A collection of decks inside a game (e.g. "Base", "DLC")."""

    id: str
    game_id: str
    name: str
    description: str = ""
    image: str = ""
    created_at: datetime | None = None


@dataclass
class DeckInfo:
    """
    A deck inside a collection.

    Attributes:
        image: Reference to the back image (URL or path it was loaded from).
            Decks with the same id and back image are laid out together.
    """

    id: str
    game_id: str
    collection_id: str
    name: str
    description: str = ""
    image: str = ""
    created_at: datetime | None = None


@dataclass
class CardInfo:
    """
    A single card face.

    Attributes:
        title: Display name used as the card's nickname in the simulator
        variables: Key/value pairs exported as "key=value" script lines
        count: How many physical copies of the card belong in the game
    """

    id: int
    game_id: str
    collection_id: str
    deck_id: str
    title: str
    description: str = ""
    image: str = ""
    variables: dict[str, str] = field(default_factory=dict)
    count: int = 1
    created_at: datetime | None = None

    def variable_lines(self) -> str:
        """Variables serialized as newline-joined "key=value" lines."""
        return "\n".join(f"{key}={value}" for key, value in self.variables.items())
