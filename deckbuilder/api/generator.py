"""
Generator API endpoints.

Starts bundle generation for a game and exposes its progress.
Generation runs in the background; clients poll the status endpoint.
"""

from functools import lru_cache
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from deckbuilder.config import GridBounds, settings
from deckbuilder.db.database import async_session_factory
from deckbuilder.models.progress import ProgressSnapshot
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.generator import GeneratorService
from deckbuilder.services.output import OutputSink

router = APIRouter(prefix="/api", tags=["generator"])

SortOrder = Literal["", "name", "name_desc", "created", "created_desc"]


@lru_cache(maxsize=1)
def get_generator_service() -> GeneratorService:
    """
    Process-wide generator service.

    Cached after first use so every request sees the same current run.
    """
    return GeneratorService(
        provider=ContentProvider(async_session_factory),
        sink=OutputSink(settings.result_dir),
        bounds=GridBounds.from_settings(settings),
        brightness=settings.backside_brightness,
    )


GeneratorDep = Annotated[GeneratorService, Depends(get_generator_service)]


class GenerateRequest(BaseModel):
    """Request model for starting generation."""

    sort_order: SortOrder | None = Field(
        default=None,
        description="Order in which collections, decks and cards are laid out",
    )


class StatusResponse(BaseModel):
    """Progress of the current (or last) generation run."""

    phase: str
    status: str
    message: str
    percent: float

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> "StatusResponse":
        return cls(
            phase=snapshot.phase,
            status=snapshot.status.value,
            message=snapshot.message,
            percent=snapshot.percent,
        )


class CancelResponse(BaseModel):
    cancelled: bool


@router.post(
    "/games/{game_id}/generate",
    response_model=StatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate_game(
    game_id: str,
    service: GeneratorDep,
    request: GenerateRequest | None = None,
) -> StatusResponse:
    """
    Start generating the bundle for a game.

    Returns as soon as setup succeeds. Fails with 404 if the game does not
    exist and 409 if another generation is still running.
    """
    sort_order = settings.default_sort
    if request is not None and request.sort_order is not None:
        sort_order = request.sort_order
    run = await service.start(game_id, sort_order)
    return StatusResponse.from_snapshot(run.progress.snapshot())


@router.get("/generator/status", response_model=StatusResponse)
async def generation_status(service: GeneratorDep) -> StatusResponse:
    """Progress of the most recent generation run."""
    return StatusResponse.from_snapshot(service.status())


@router.post("/generator/cancel", response_model=CancelResponse)
async def cancel_generation(service: GeneratorDep) -> CancelResponse:
    """Cancel the running generation, if any."""
    return CancelResponse(cancelled=service.cancel())
