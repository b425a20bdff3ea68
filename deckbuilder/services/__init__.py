"""
DeckBuilder services.

Page layout, image compositing and object graph assembly for bundle generation.
"""

from deckbuilder.services.bundle import BundleBuilder
from deckbuilder.services.compositor import composite, darken, encode_png, image_from_bytes
from deckbuilder.services.content import ContentProvider
from deckbuilder.services.deck_aggregator import DeckArray
from deckbuilder.services.generator import GenerationRun, GeneratorService
from deckbuilder.services.grid_sizer import calculate_grid_size
from deckbuilder.services.object_graph import BagBuilder, DeckAccumulator, card_code, collapse_deck
from deckbuilder.services.output import OutputSink

__all__ = [
    "BagBuilder",
    "BundleBuilder",
    "ContentProvider",
    "DeckAccumulator",
    "DeckArray",
    "GenerationRun",
    "GeneratorService",
    "OutputSink",
    "calculate_grid_size",
    "card_code",
    "collapse_deck",
    "composite",
    "darken",
    "encode_png",
    "image_from_bytes",
]
