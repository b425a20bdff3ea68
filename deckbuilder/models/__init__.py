from deckbuilder.models.content import CardInfo, CollectionInfo, DeckInfo, GameInfo
from deckbuilder.models.failure import (
    AlreadyExistsError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    FailureDetail,
    FailureKind,
    GenerationCancelledError,
    GenerationInProgressError,
    ImageFetchError,
    InvalidDeckFileError,
    KnownError,
    NotFoundError,
)
from deckbuilder.models.layout import CardPlacement, DeckGroup, DeckKey, PageLayout
from deckbuilder.models.progress import GenerationStatus, ProgressReporter, ProgressSnapshot
from deckbuilder.models.tts import (
    Bag,
    Card,
    DeckDescription,
    DeckObject,
    RootObjects,
    Transform,
)

__all__ = [
    "AlreadyExistsError",
    "Bag",
    "Card",
    "CardInfo",
    "CardPlacement",
    "CollectionInfo",
    "ConfigurationError",
    "DecodeError",
    "DeckDescription",
    "DeckGroup",
    "DeckInfo",
    "DeckKey",
    "DeckObject",
    "EncodeError",
    "FailureDetail",
    "FailureKind",
    "GameInfo",
    "GenerationCancelledError",
    "GenerationInProgressError",
    "GenerationStatus",
    "ImageFetchError",
    "InvalidDeckFileError",
    "KnownError",
    "NotFoundError",
    "PageLayout",
    "ProgressReporter",
    "ProgressSnapshot",
    "RootObjects",
    "Transform",
]
