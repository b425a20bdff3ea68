import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deckbuilder.api import games_router, generator_router, health_router
from deckbuilder.api.generator import get_generator_service
from deckbuilder.config import settings
from deckbuilder.db.database import init_db
from deckbuilder.models.failure import FailureDetail, FailureKind, KnownError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables on startup; stop a running generation on shutdown."""
    await init_db()
    yield

    service = get_generator_service()
    run = service.current_run
    if run is not None and run.running:
        run.cancel()
        await run.wait()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("deckbuilder"),
    lifespan=lifespan,
)

app.include_router(games_router)
app.include_router(generator_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render a known failure as its FailureDetail body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_detail().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("UNHANDLED_ERROR", extra={"path": request.url.path})
    detail = FailureDetail(
        kind=FailureKind.UNKNOWN,
        message="An unexpected error occurred",
        detail=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content=detail.model_dump(mode="json"))
