"""
Tabletop Simulator object graph.

Field aliases match the saved-object JSON the simulator loads, so
`model_dump(by_alias=True)` produces the document directly.

Structure:
    RootObjects.ObjectStates -> [Bag]
    Bag.ContainedObjects -> [DeckObject | Card]
    DeckObject.CustomDeck -> {page_number: DeckDescription}
"""

from pydantic import BaseModel, ConfigDict, Field


class TTSModel(BaseModel):
    """Base for simulator objects: alias-based, constructible by field name."""

    model_config = ConfigDict(populate_by_name=True)


class Transform(TTSModel):
    pos_x: float = Field(default=0, alias="posX")
    pos_y: float = Field(default=0, alias="posY")
    pos_z: float = Field(default=0, alias="posZ")
    rot_x: float = Field(default=0, alias="rotX")
    rot_y: float = Field(default=0, alias="rotY")
    rot_z: float = Field(default=0, alias="rotZ")
    scale_x: float = Field(default=1, alias="scaleX")
    scale_y: float = Field(default=1, alias="scaleY")
    scale_z: float = Field(default=1, alias="scaleZ")


class DeckDescription(TTSModel):
    """One page image as seen by the simulator."""

    face_url: str = Field(alias="FaceURL")
    back_url: str = Field(alias="BackURL")
    num_width: int = Field(alias="NumWidth")
    num_height: int = Field(alias="NumHeight")


class Card(TTSModel):
    name: str = Field(default="Card", alias="Name")
    nickname: str | None = Field(default=None, alias="Nickname")
    description: str | None = Field(default=None, alias="Description")
    card_id: int = Field(alias="CardID")
    lua_script: str = Field(default="", alias="LuaScript")
    custom_deck: dict[int, DeckDescription] = Field(default_factory=dict, alias="CustomDeck")
    transform: Transform = Field(default_factory=Transform, alias="Transform")


class DeckObject(TTSModel):
    name: str = Field(default="Deck", alias="Name")
    nickname: str = Field(default="", alias="Nickname")
    description: str = Field(default="", alias="Description")
    deck_ids: list[int] = Field(default_factory=list, alias="DeckIDs")
    custom_deck: dict[int, DeckDescription] = Field(default_factory=dict, alias="CustomDeck")
    contained_objects: list[Card] = Field(default_factory=list, alias="ContainedObjects")
    transform: Transform = Field(default_factory=Transform, alias="Transform")


class Bag(TTSModel):
    name: str = Field(default="Bag", alias="Name")
    nickname: str = Field(default="", alias="Nickname")
    description: str = Field(default="", alias="Description")
    contained_objects: list[DeckObject | Card] = Field(
        default_factory=list, alias="ContainedObjects"
    )
    transform: Transform = Field(default_factory=Transform, alias="Transform")


class RootObjects(TTSModel):
    object_states: list[Bag] = Field(default_factory=list, alias="ObjectStates")

    def to_json(self) -> str:
        """Serialize to the simulator's saved-object document."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
