from deckbuilder.api.games import router as games_router
from deckbuilder.api.generator import router as generator_router
from deckbuilder.api.health import router as health_router

__all__ = [
    "games_router",
    "generator_router",
    "health_router",
]
