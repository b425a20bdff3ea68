"""
Health check endpoints.

Liveness and readiness probes. Readiness covers the content database and
the directory generated bundles are written to.
"""

import os
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from deckbuilder.api.generator import GeneratorDep
from deckbuilder.db.database import get_session

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    storage: str | None = None
    generator: str | None = None


def _writable(root: Path) -> bool:
    """True if `root`, or its nearest existing parent, is a writable directory."""
    candidate = root.resolve()
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return candidate.is_dir() and os.access(candidate, os.W_OK)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    service: GeneratorDep,
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unreachable or the output directory
    cannot be written. Also reports the status of the latest generation run.
    """
    try:
        await session.execute(text("SELECT 1"))
        database = "connected"
    except Exception:
        database = "disconnected"

    storage = "writable" if _writable(service.sink.root) else "unavailable"
    generator = service.status().status.value

    if database != "connected" or storage != "writable":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not ready", database=database, storage=storage, generator=generator
        )
    return HealthResponse(status="ready", database=database, storage=storage, generator=generator)
