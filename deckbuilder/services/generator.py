"""
Generation orchestration.

`GeneratorService.start()` validates the request synchronously, then hands
the page pipeline to a background asyncio task and returns immediately.
Callers poll `status()` (or await `GenerationRun.wait()`).

Run lifecycle:
    Idle -> Running -> Done | Error

INVARIANTS:
- At most one run is active; a second start() is rejected
- A missing game fails before any state changes (previous status kept)
- Done is reported only after the document is fully written
- Cancellation is checked between pages and ends the run in Error
"""

import asyncio
import logging
from dataclasses import dataclass, field

from deckbuilder.config import CARD_CODE_PAGE_MULTIPLIER, GridBounds
from deckbuilder.models.content import GameInfo
from deckbuilder.models.failure import (
    ConfigurationError,
    GenerationCancelledError,
    GenerationInProgressError,
)
from deckbuilder.models.progress import GenerationStatus, ProgressReporter, ProgressSnapshot
from deckbuilder.services.bundle import (
    DEFAULT_BACKSIDE_BRIGHTNESS,
    BundleBuilder,
    document_file_name,
)
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.deck_aggregator import DeckArray
from deckbuilder.services.output import OutputSink

logger = logging.getLogger(__name__)

GENERATION_PHASE = "Image generation"


@dataclass
class GenerationRun:
    """Handle to one generation run."""

    game_id: str
    progress: ProgressReporter = field(default_factory=ProgressReporter)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()

    def cancel(self) -> None:
        """Ask the run to stop before its next page."""
        self.cancel_event.set()

    async def wait(self) -> ProgressSnapshot:
        """Wait for the run to finish and return its final status."""
        if self.task is not None:
            await asyncio.shield(self.task)
        return self.progress.snapshot()


class GeneratorService:
    """Owns the current generation run."""

    def __init__(
        self,
        provider: ContentProvider,
        sink: OutputSink,
        bounds: GridBounds | None = None,
        brightness: float = DEFAULT_BACKSIDE_BRIGHTNESS,
    ):
        self.provider = provider
        self.sink = sink
        self.bounds = bounds or GridBounds()
        self.brightness = brightness
        self.current_run: GenerationRun | None = None
        self._start_lock = asyncio.Lock()

    def status(self) -> ProgressSnapshot:
        """Progress of the most recent run, or an idle snapshot."""
        if self.current_run is None:
            return ProgressSnapshot()
        return self.current_run.progress.snapshot()

    def cancel(self) -> bool:
        """
        Cancel the active run.

        Returns True if a run was running, False otherwise.
        """
        run = self.current_run
        if run is None or not run.running:
            return False
        run.cancel()
        logger.info("GENERATION_CANCEL_REQUESTED", extra={"game_id": run.game_id})
        return True

    def _check_bounds(self) -> None:
        capacity = self.bounds.page_capacity()
        if capacity < 1:
            raise ConfigurationError(
                "Grid bounds leave no room for cards",
                detail=f"max={self.bounds.max_width}x{self.bounds.max_height}",
            )
        if capacity >= CARD_CODE_PAGE_MULTIPLIER:
            raise ConfigurationError(
                f"Page capacity {capacity} overflows card codes",
                detail=f"Card codes allow at most {CARD_CODE_PAGE_MULTIPLIER - 1} cards per page",
            )

    async def start(self, game_id: str, sort_order: str = "") -> GenerationRun:
        """
        Validate and launch a generation run.

        Raises:
            GenerationInProgressError: If a run is still active
            NotFoundError: If the game (or part of its tree) does not exist
            ConfigurationError: If the grid bounds are unusable
        """
        async with self._start_lock:
            if self.current_run is not None and self.current_run.running:
                raise GenerationInProgressError(self.current_run.game_id)

            self._check_bounds()

            game = await self.provider.get_game(game_id)
            decks = await self.collect_cards(game.id, sort_order)

            # Destructive: any previous bundle is removed
            self.sink.reset()

            run = GenerationRun(game_id=game.id)
            run.progress.set_phase(GENERATION_PHASE)
            run.progress.set_status(GenerationStatus.IN_PROGRESS)
            run.task = asyncio.create_task(self._run(run, game, decks))
            self.current_run = run

        logger.info(
            "GENERATION_STARTED",
            extra={
                "game_id": game.id,
                "decks": len(decks),
                "cards": decks.total_cards(),
                "pages": decks.total_pages(),
            },
        )
        return run

    async def collect_cards(self, game_id: str, sort_order: str = "") -> DeckArray:
        """Flatten the game's collections, decks and cards into a DeckArray."""
        decks = DeckArray(capacity=self.bounds.page_capacity())

        for collection in await self.provider.list_collections(game_id, sort_order):
            for deck in await self.provider.list_decks(game_id, collection.id, sort_order):
                decks.select_deck(deck.id, deck.image)
                cards = await self.provider.list_cards(game_id, collection.id, deck.id, sort_order)
                for card in cards:
                    decks.add_card(game_id, collection.id, card.id, card.count)

        return decks

    async def _run(self, run: GenerationRun, game: GameInfo, decks: DeckArray) -> None:
        progress = run.progress
        progress.set_message("Reading a list of cards from the disk...")

        builder = BundleBuilder(
            provider=self.provider,
            sink=self.sink,
            bounds=self.bounds,
            progress=progress,
            cancel_event=run.cancel_event,
            brightness=self.brightness,
        )

        try:
            root = await builder.build(game, decks)

            progress.set_message("Saving the object graph...")
            document = root.to_json().encode("utf-8")
            self.sink.write_file(document_file_name(game.id), document)
        except GenerationCancelledError as e:
            progress.set_message(e.message)
            progress.set_status(GenerationStatus.ERROR)
            logger.warning("GENERATION_CANCELLED", extra={"game_id": game.id})
            return
        except asyncio.CancelledError:
            progress.set_message("Generation task was stopped")
            progress.set_status(GenerationStatus.ERROR)
            raise
        except Exception as e:
            progress.set_message(str(e))
            progress.set_status(GenerationStatus.ERROR)
            logger.exception("GENERATION_FAILED", extra={"game_id": game.id})
            return

        progress.set_percent(100)
        progress.set_message("All image pages were successfully generated!")
        progress.set_status(GenerationStatus.DONE)
        logger.info("GENERATION_DONE", extra={"game_id": game.id})
