"""
Content API endpoints.

CRUD for the game -> collection -> deck -> card tree plus image download.
PATCH changes only the fields present in the body; a new name also
changes the id.
Images are uploaded base64-encoded in the JSON body.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import Base64Bytes, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from deckbuilder.api.generator import SortOrder
from deckbuilder.db import operations as ops
from deckbuilder.db.database import get_session
from deckbuilder.models.content import CardInfo, CollectionInfo, DeckInfo, GameInfo
from deckbuilder.models.failure import NotFoundError
from deckbuilder.services.compositor import image_mime_type

router = APIRouter(prefix="/api/games", tags=["games"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]


# --- Request / Response Models ---


class ContentCreateRequest(BaseModel):
    """Shared fields for creating a game, collection or deck."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    image: str = Field(default="", description="Where the image came from (URL or path)")
    image_file: Base64Bytes | None = Field(default=None, description="Base64-encoded image")


class CardCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    image: str = Field(default="", description="Where the image came from (URL or path)")
    image_file: Base64Bytes | None = Field(default=None, description="Base64-encoded image")
    variables: dict[str, str] = Field(
        default_factory=dict,
        examples=[{"power": "3", "cost": "1"}],
    )
    count: int = Field(default=1, ge=1, description="Copies of this card in the game")


class ContentUpdateRequest(BaseModel):
    """Fields to change on a game, collection or deck. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    image: str | None = None
    image_file: Base64Bytes | None = None


class CardUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    image: str | None = None
    image_file: Base64Bytes | None = None
    variables: dict[str, str] | None = None
    count: int | None = Field(default=None, ge=1)


class GameResponse(BaseModel):
    id: str
    name: str
    description: str
    image: str
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, game: GameInfo) -> "GameResponse":
        return cls(
            id=game.id,
            name=game.name,
            description=game.description,
            image=game.image,
            created_at=game.created_at,
        )


class CollectionResponse(GameResponse):
    game_id: str

    @classmethod
    def from_collection(cls, collection: CollectionInfo) -> "CollectionResponse":
        return cls(
            id=collection.id,
            game_id=collection.game_id,
            name=collection.name,
            description=collection.description,
            image=collection.image,
            created_at=collection.created_at,
        )


class DeckResponse(CollectionResponse):
    collection_id: str

    @classmethod
    def from_deck(cls, deck: DeckInfo) -> "DeckResponse":
        return cls(
            id=deck.id,
            game_id=deck.game_id,
            collection_id=deck.collection_id,
            name=deck.name,
            description=deck.description,
            image=deck.image,
            created_at=deck.created_at,
        )


class CardResponse(BaseModel):
    id: int
    game_id: str
    collection_id: str
    deck_id: str
    title: str
    description: str
    image: str
    variables: dict[str, str] = Field(default_factory=dict)
    count: int
    created_at: datetime | None = None

    @classmethod
    def from_card(cls, card: CardInfo) -> "CardResponse":
        return cls(
            id=card.id,
            game_id=card.game_id,
            collection_id=card.collection_id,
            deck_id=card.deck_id,
            title=card.title,
            description=card.description,
            image=card.image,
            variables=card.variables,
            count=card.count,
            created_at=card.created_at,
        )


class DeleteResponse(BaseModel):
    deleted: bool


def _image_response(data: bytes | None, entity: str, identifier: str) -> Response:
    if not data:
        raise NotFoundError(f"{entity} image", identifier)
    return Response(content=data, media_type=image_mime_type(data))


def _validated_image(data: bytes | None, source: str) -> bytes | None:
    if data:
        # Reject undecodable uploads up front
        image_mime_type(data, source)
    return data


# --- Games ---


@router.get("", response_model=list[GameResponse])
async def list_games(session: SessionDep, sort: SortOrder = "") -> list[GameResponse]:
    games = await ops.list_games(session, sort)
    return [GameResponse.from_model(ops.game_to_model(g)) for g in games]


@router.post("", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game(request: ContentCreateRequest, session: SessionDep) -> GameResponse:
    """Create a game. The id is derived from the name."""
    game = await ops.create_game(
        session,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "game image"),
    )
    return GameResponse.from_model(ops.game_to_model(game))


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(game_id: str, session: SessionDep) -> GameResponse:
    game = await ops.get_game(session, game_id)
    if game is None:
        raise NotFoundError("game", game_id)
    return GameResponse.from_model(ops.game_to_model(game))


@router.patch("/{game_id}", response_model=GameResponse)
async def update_game(
    game_id: str, request: ContentUpdateRequest, session: SessionDep
) -> GameResponse:
    game = await ops.update_game(
        session,
        game_id,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "game image"),
    )
    return GameResponse.from_model(ops.game_to_model(game))


@router.delete("/{game_id}", response_model=DeleteResponse)
async def delete_game(game_id: str, session: SessionDep) -> DeleteResponse:
    return DeleteResponse(deleted=await ops.delete_game(session, game_id))


@router.get("/{game_id}/image")
async def get_game_image(game_id: str, session: SessionDep) -> Response:
    game = await ops.get_game(session, game_id)
    if game is None:
        raise NotFoundError("game", game_id)
    return _image_response(game.image_data, "game", game_id)


# --- Collections ---


@router.get("/{game_id}/collections", response_model=list[CollectionResponse])
async def list_collections(
    game_id: str, session: SessionDep, sort: SortOrder = ""
) -> list[CollectionResponse]:
    collections = await ops.list_collections(session, game_id, sort)
    return [CollectionResponse.from_collection(ops.collection_to_model(c)) for c in collections]


@router.post(
    "/{game_id}/collections",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_collection(
    game_id: str, request: ContentCreateRequest, session: SessionDep
) -> CollectionResponse:
    collection = await ops.create_collection(
        session,
        game_id,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "collection image"),
    )
    return CollectionResponse.from_collection(ops.collection_to_model(collection))


@router.get("/{game_id}/collections/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    game_id: str, collection_id: str, session: SessionDep
) -> CollectionResponse:
    collection = await ops.get_collection(session, game_id, collection_id)
    if collection is None:
        raise NotFoundError("collection", collection_id)
    return CollectionResponse.from_collection(ops.collection_to_model(collection))


@router.patch("/{game_id}/collections/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    game_id: str, collection_id: str, request: ContentUpdateRequest, session: SessionDep
) -> CollectionResponse:
    collection = await ops.update_collection(
        session,
        game_id,
        collection_id,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "collection image"),
    )
    return CollectionResponse.from_collection(ops.collection_to_model(collection))


@router.delete("/{game_id}/collections/{collection_id}", response_model=DeleteResponse)
async def delete_collection(
    game_id: str, collection_id: str, session: SessionDep
) -> DeleteResponse:
    return DeleteResponse(deleted=await ops.delete_collection(session, game_id, collection_id))


@router.get("/{game_id}/collections/{collection_id}/image")
async def get_collection_image(game_id: str, collection_id: str, session: SessionDep) -> Response:
    collection = await ops.get_collection(session, game_id, collection_id)
    if collection is None:
        raise NotFoundError("collection", collection_id)
    return _image_response(collection.image_data, "collection", collection_id)


# --- Decks ---


@router.get("/{game_id}/collections/{collection_id}/decks", response_model=list[DeckResponse])
async def list_decks(
    game_id: str, collection_id: str, session: SessionDep, sort: SortOrder = ""
) -> list[DeckResponse]:
    decks = await ops.list_decks(session, game_id, collection_id, sort)
    return [DeckResponse.from_deck(ops.deck_to_model(d, game_id, collection_id)) for d in decks]


@router.post(
    "/{game_id}/collections/{collection_id}/decks",
    response_model=DeckResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_deck(
    game_id: str, collection_id: str, request: ContentCreateRequest, session: SessionDep
) -> DeckResponse:
    """Create a deck. Its image is the card back for every card in it."""
    deck = await ops.create_deck(
        session,
        game_id,
        collection_id,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "deck image"),
    )
    return DeckResponse.from_deck(ops.deck_to_model(deck, game_id, collection_id))


@router.get("/{game_id}/collections/{collection_id}/decks/{deck_id}", response_model=DeckResponse)
async def get_deck(
    game_id: str, collection_id: str, deck_id: str, session: SessionDep
) -> DeckResponse:
    deck = await ops.get_deck(session, game_id, collection_id, deck_id)
    if deck is None:
        raise NotFoundError("deck", deck_id)
    return DeckResponse.from_deck(ops.deck_to_model(deck, game_id, collection_id))


@router.patch(
    "/{game_id}/collections/{collection_id}/decks/{deck_id}", response_model=DeckResponse
)
async def update_deck(
    game_id: str,
    collection_id: str,
    deck_id: str,
    request: ContentUpdateRequest,
    session: SessionDep,
) -> DeckResponse:
    deck = await ops.update_deck(
        session,
        game_id,
        collection_id,
        deck_id,
        name=request.name,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "deck image"),
    )
    return DeckResponse.from_deck(ops.deck_to_model(deck, game_id, collection_id))


@router.delete(
    "/{game_id}/collections/{collection_id}/decks/{deck_id}", response_model=DeleteResponse
)
async def delete_deck(
    game_id: str, collection_id: str, deck_id: str, session: SessionDep
) -> DeleteResponse:
    return DeleteResponse(
        deleted=await ops.delete_deck(session, game_id, collection_id, deck_id)
    )


@router.get("/{game_id}/collections/{collection_id}/decks/{deck_id}/image")
async def get_deck_image(
    game_id: str, collection_id: str, deck_id: str, session: SessionDep
) -> Response:
    deck = await ops.get_deck(session, game_id, collection_id, deck_id)
    if deck is None:
        raise NotFoundError("deck", deck_id)
    return _image_response(deck.image_data, "deck", deck_id)


# --- Cards ---

CARDS_PATH = "/{game_id}/collections/{collection_id}/decks/{deck_id}/cards"


@router.get(CARDS_PATH, response_model=list[CardResponse])
async def list_cards(
    game_id: str,
    collection_id: str,
    deck_id: str,
    session: SessionDep,
    sort: SortOrder = "",
) -> list[CardResponse]:
    cards = await ops.list_cards(session, game_id, collection_id, deck_id, sort)
    return [
        CardResponse.from_card(ops.card_to_model(c, game_id, collection_id, deck_id))
        for c in cards
    ]


@router.post(CARDS_PATH, response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    game_id: str,
    collection_id: str,
    deck_id: str,
    request: CardCreateRequest,
    session: SessionDep,
) -> CardResponse:
    card = await ops.create_card(
        session,
        game_id,
        collection_id,
        deck_id,
        title=request.title,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "card image"),
        variables=request.variables,
        count=request.count,
    )
    return CardResponse.from_card(ops.card_to_model(card, game_id, collection_id, deck_id))


@router.get(CARDS_PATH + "/{card_id}", response_model=CardResponse)
async def get_card(
    game_id: str, collection_id: str, deck_id: str, card_id: int, session: SessionDep
) -> CardResponse:
    card = await ops.get_card(session, game_id, collection_id, deck_id, card_id)
    if card is None:
        raise NotFoundError("card", str(card_id))
    return CardResponse.from_card(ops.card_to_model(card, game_id, collection_id, deck_id))


@router.patch(CARDS_PATH + "/{card_id}", response_model=CardResponse)
async def update_card(
    game_id: str,
    collection_id: str,
    deck_id: str,
    card_id: int,
    request: CardUpdateRequest,
    session: SessionDep,
) -> CardResponse:
    card = await ops.update_card(
        session,
        game_id,
        collection_id,
        deck_id,
        card_id,
        title=request.title,
        description=request.description,
        image=request.image,
        image_data=_validated_image(request.image_file, "card image"),
        variables=request.variables,
        count=request.count,
    )
    return CardResponse.from_card(ops.card_to_model(card, game_id, collection_id, deck_id))


@router.delete(CARDS_PATH + "/{card_id}", response_model=DeleteResponse)
async def delete_card(
    game_id: str, collection_id: str, deck_id: str, card_id: int, session: SessionDep
) -> DeleteResponse:
    return DeleteResponse(
        deleted=await ops.delete_card(session, game_id, collection_id, deck_id, card_id)
    )


@router.get(CARDS_PATH + "/{card_id}/image")
async def get_card_image(
    game_id: str, collection_id: str, deck_id: str, card_id: int, session: SessionDep
) -> Response:
    card = await ops.get_card(session, game_id, collection_id, deck_id, card_id)
    if card is None:
        raise NotFoundError("card", str(card_id))
    return _image_response(card.image_data, "card", str(card_id))
