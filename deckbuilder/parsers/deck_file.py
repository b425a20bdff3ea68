"""
Parser for on-disk deck files.

Older card sets were kept as one JSON file per deck:

    {
        "deck": "files/back.png",
        "cards": {
            "1": {"title": "Sword", "image": "files/sword.png", "count": 2}
        }
    }

The "deck" field is either a bare string (the back image reference) or an
object with name, description and image. Both shapes are normalised into
the `DeckBacking` union when the file is loaded.
"""

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from deckbuilder.models.failure import InvalidDeckFileError


class DeckReference(BaseModel):
    """Deck given only by its back image; the name comes from the file."""

    kind: Literal["reference"] = "reference"
    image: str = Field(..., min_length=1)


class InlineDeck(BaseModel):
    """Deck described in place."""

    kind: Literal["inline"] = "inline"
    name: str = ""
    description: str = ""
    image: str = ""


DeckBacking = Annotated[DeckReference | InlineDeck, Field(discriminator="kind")]


class CardEntry(BaseModel):
    title: str = ""
    description: str = ""
    image: str = ""
    variables: dict[str, str] = Field(default_factory=dict)
    count: int = 1

    @field_validator("variables", mode="before")
    @classmethod
    def _stringify_variables(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): "" if v is None else str(v) for k, v in value.items()}
        return value

    @field_validator("count", mode="before")
    @classmethod
    def _clamp_count(cls, value: Any) -> Any:
        if value is None:
            return 1
        if isinstance(value, int) and value < 1:
            return 1
        return value


class DeckFile(BaseModel):
    deck: DeckBacking
    cards: dict[int, CardEntry] = Field(default_factory=dict)

    @field_validator("deck", mode="before")
    @classmethod
    def _normalise_deck(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"kind": "reference", "image": value}
        if isinstance(value, dict):
            return value if "kind" in value else {"kind": "inline", **value}
        if isinstance(value, (DeckReference, InlineDeck)):
            return value
        raise ValueError(f"deck must be a string or an object, got {type(value).__name__}")

    @field_validator("cards", mode="before")
    @classmethod
    def _null_cards(cls, value: Any) -> Any:
        return {} if value is None else value

    def deck_name(self, fallback: str) -> str:
        """Display name of the deck, `fallback` when the file does not give one."""
        if isinstance(self.deck, InlineDeck) and self.deck.name:
            return self.deck.name
        return fallback

    def deck_description(self) -> str:
        return self.deck.description if isinstance(self.deck, InlineDeck) else ""

    def ordered_cards(self) -> list[tuple[int, CardEntry]]:
        """Cards sorted by their numeric key."""
        return sorted(self.cards.items())


def parse_deck_file(text: str, source: str = "deck file") -> DeckFile:
    """
    Parse the JSON text of a deck file.

    Raises:
        InvalidDeckFileError: If the text is not JSON or has the wrong shape
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidDeckFileError(source, detail=str(e)) from e

    if not isinstance(raw, dict):
        raise InvalidDeckFileError(source, detail="top level must be an object")
    if "deck" not in raw:
        raise InvalidDeckFileError(source, detail="missing 'deck' field")

    try:
        return DeckFile.model_validate(raw)
    except ValidationError as e:
        raise InvalidDeckFileError(source, detail=str(e)) from e


def load_deck_file(path: Path) -> DeckFile:
    """Read and parse a deck file from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidDeckFileError(str(path), detail=str(e)) from e
    return parse_deck_file(text, source=str(path))


def discover_deck_files(root: Path) -> list[Path]:
    """
    Every *.json file under `root`, depth first, in name order.

    Directories named "files" hold images and are skipped.
    """
    found: list[Path] = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            if entry.name == "files":
                continue
            found.extend(discover_deck_files(entry))
        elif entry.suffix == ".json":
            found.append(entry)
    return found
