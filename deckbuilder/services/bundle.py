"""
Bundle building.

Turns an aggregated DeckArray into page images and the object graph:

    for each DeckGroup (first-seen order):
        resolve the darkened backside once
        for each page (1-based):
            size the grid, composite faces + backside, write the PNG
            register the page and every card copy in the deck accumulator
        flush the deck into the bag

Pages are processed strictly in order; card codes depend on position.
Pillow work runs in a worker thread so the event loop keeps serving
status requests.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass

from PIL import Image

from deckbuilder.config import GridBounds
from deckbuilder.models.content import DeckInfo, GameInfo
from deckbuilder.models.failure import GenerationCancelledError
from deckbuilder.models.layout import CardPlacement, PageLayout
from deckbuilder.models.progress import ProgressReporter
from deckbuilder.models.tts import DeckDescription, RootObjects
from deckbuilder.services.compositor import composite, darken, encode_png, image_from_bytes
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.deck_aggregator import DeckArray
from deckbuilder.services.grid_sizer import calculate_grid_size
from deckbuilder.services.object_graph import BagBuilder, DeckAccumulator
from deckbuilder.services.output import OutputSink

logger = logging.getLogger(__name__)

DEFAULT_BACKSIDE_BRIGHTNESS = -30


def page_file_name(deck_id: str, page_number: int, count: int, columns: int, rows: int) -> str:
    return f"{deck_id}_{page_number}_{count}_{columns}x{rows}.png"


def backside_file_name(deck_id: str, deck_name: str) -> str:
    digest = hashlib.md5(deck_name.encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"backside_{deck_id}_{digest[:6]}.png"


def document_file_name(game_id: str) -> str:
    return f"{game_id}.json"


def plan_page(
    deck_id: str,
    page_number: int,
    count: int,
    cell_size: tuple[int, int],
    bounds: GridBounds,
) -> PageLayout:
    """Layout for a page holding `count` cards plus the backside cell."""
    columns, rows = calculate_grid_size(count + 1, bounds)
    cell_width, cell_height = cell_size
    return PageLayout(
        columns=columns,
        rows=rows,
        width=cell_width * columns,
        height=cell_height * rows,
        count=count,
        name=page_file_name(deck_id, page_number, count, columns, rows),
    )


@dataclass
class Backside:
    """Darkened back image shared by every page of a DeckGroup."""

    image: Image.Image
    name: str


class BundleBuilder:
    """Renders pages and assembles the object graph for one run."""

    def __init__(
        self,
        provider: ContentProvider,
        sink: OutputSink,
        bounds: GridBounds | None = None,
        progress: ProgressReporter | None = None,
        cancel_event: asyncio.Event | None = None,
        brightness: float = DEFAULT_BACKSIDE_BRIGHTNESS,
    ):
        self.provider = provider
        self.sink = sink
        self.bounds = bounds or GridBounds()
        self.progress = progress or ProgressReporter()
        self.cancel_event = cancel_event
        self.brightness = brightness

        self._total = 0
        self._processed = 0

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise GenerationCancelledError()

    async def build(self, game: GameInfo, decks: DeckArray) -> RootObjects:
        """
        Render every page and return the document root.

        Raises:
            KnownError subclasses: on missing content, unreadable images,
                failed writes or cancellation. Nothing is swallowed.
        """
        self._total = decks.total_cards()
        self._processed = 0

        bag = BagBuilder(nickname=game.name, description=game.description)

        self.progress.set_message("Generating the resulting image pages...")
        self.progress.set_percent(0)

        for group in decks:
            pages = [page for page in group.pages if page]
            if not pages:
                continue

            first = pages[0][0]
            deck = await self.provider.get_deck(first.game_id, first.collection_id, group.key.deck_id)
            accumulator = bag.start_deck(deck.name, deck.description)

            backside: Backside | None = None
            for page_number, page in enumerate(pages, start=1):
                self._check_cancelled()
                if backside is None:
                    backside = await self._prepare_backside(first, deck)
                await self._render_page(deck, page_number, page, backside, accumulator)

        self._check_cancelled()
        return bag.build()

    async def _prepare_backside(self, placement: CardPlacement, deck: DeckInfo) -> Backside:
        """Load, darken and write the deck's back image."""
        data = await self.provider.get_deck_image(placement.game_id, placement.collection_id, deck.id)
        source = await asyncio.to_thread(image_from_bytes, data, f"deck {deck.id} back image")
        darker = await asyncio.to_thread(darken, source, self.brightness)

        name = backside_file_name(deck.id, deck.name)
        encoded = await asyncio.to_thread(encode_png, darker, name)
        self.sink.write_file(name, encoded)
        logger.info("BACKSIDE_WRITTEN", extra={"deck_id": deck.id, "file": name})
        return Backside(image=darker, name=name)

    async def _render_page(
        self,
        deck: DeckInfo,
        page_number: int,
        page: list[CardPlacement],
        backside: Backside,
        accumulator: DeckAccumulator,
    ) -> None:
        self.progress.set_message("Drawing cards on the resulting page...")

        faces: list[Image.Image] = []
        for placement in page:
            data = await self.provider.get_card_image(
                placement.game_id, placement.collection_id, placement.deck_id, placement.card_id
            )
            face = await asyncio.to_thread(
                image_from_bytes, data, f"card {placement.deck_id}/{placement.card_id}"
            )
            faces.append(face)

        layout = plan_page(deck.id, page_number, len(page), faces[0].size, self.bounds)
        accumulator.add_page(
            page_number,
            DeckDescription(
                face_url=self.sink.url_for(layout.name),
                back_url=self.sink.url_for(backside.name),
                num_width=layout.columns,
                num_height=layout.rows,
            ),
        )

        for slot, placement in enumerate(page):
            card = await self.provider.get_card(
                placement.game_id, placement.collection_id, placement.deck_id, placement.card_id
            )
            if card.count != placement.count:
                # Card metadata wins; the grouping-time count is informational
                logger.warning(
                    "REPLICATION_COUNT_MISMATCH",
                    extra={
                        "deck_id": placement.deck_id,
                        "card_id": placement.card_id,
                        "grouped_count": placement.count,
                        "card_count": card.count,
                    },
                )
            accumulator.add_card(card, page_number, slot)

            self._processed += 1
            self.progress.set_percent(self._processed / self._total * 100)

        self.progress.set_message("Drawing backside image on the resulting page...")
        image = await asyncio.to_thread(
            composite, faces, layout.columns, layout.rows, backside.image
        )

        self.progress.set_message("Saving the resulting page to disk...")
        encoded = await asyncio.to_thread(encode_png, image, layout.name)
        self.sink.write_file(layout.name, encoded)
        logger.info(
            "PAGE_WRITTEN",
            extra={
                "deck_id": deck.id,
                "page": page_number,
                "cards": layout.count,
                "grid": f"{layout.columns}x{layout.rows}",
            },
        )
