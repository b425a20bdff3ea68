"""
Failure classification for DeckBuilder.

Every failure the service knows how to explain is raised as a subclass of
`KnownError`. The API layer renders these as a `FailureDetail` body with
the error's HTTP status code. Anything else is an unknown failure.

Failure kinds:
- NOT_FOUND: referenced game/collection/deck/card (or its image) is missing
- DECODE_FAILURE: a source image cannot be read
- ENCODE_FAILURE: a page or document cannot be encoded or written
- CONFIGURATION_VIOLATION: grid bounds cannot hold the required cells
- GENERATION_IN_PROGRESS: a generation run is already active
- CANCELLED: a generation run was cancelled
- INVALID_INPUT: a request or an imported deck file is malformed
- FETCH_FAILURE: an imported image could not be read from disk or the network
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    ALREADY_EXISTS = "already_exists"

    # Resource failures
    NOT_FOUND = "not_found"

    # Image pipeline failures
    DECODE_FAILURE = "decode_failure"
    FETCH_FAILURE = "fetch_failure"
    ENCODE_FAILURE = "encode_failure"

    # Internal errors
    CONFIGURATION_VIOLATION = "configuration_violation"

    # Generation lifecycle
    GENERATION_IN_PROGRESS = "generation_in_progress"
    CANCELLED = "cancelled"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail body."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class NotFoundError(KnownError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{entity.capitalize()} '{identifier}' not found",
            status_code=404,
        )


class AlreadyExistsError(KnownError):
    """An entity with the same identifier already exists."""

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            kind=FailureKind.ALREADY_EXISTS,
            message=f"{entity.capitalize()} '{identifier}' already exists",
            suggestion="Choose a different name.",
            status_code=409,
        )


class DecodeError(KnownError):
    """A source image could not be decoded."""

    def __init__(self, source: str, detail: str | None = None):
        self.source = source
        super().__init__(
            kind=FailureKind.DECODE_FAILURE,
            message=f"Unable to decode image: {source}",
            detail=detail,
            suggestion="Upload the image again in PNG or JPEG format.",
            status_code=422,
        )


class EncodeError(KnownError):
    """A page image or document could not be encoded or written."""

    def __init__(self, target: str, detail: str | None = None):
        self.target = target
        super().__init__(
            kind=FailureKind.ENCODE_FAILURE,
            message=f"Unable to write {target}",
            detail=detail,
            status_code=500,
        )


class ConfigurationError(KnownError):
    """
    Grid bounds cannot satisfy the requested layout.

    Page capacity is derived from the bounds, so this signals a bug or a
    misconfigured deployment rather than bad input.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.CONFIGURATION_VIOLATION,
            message=message,
            detail=detail,
            suggestion="Check the grid width/height settings.",
            status_code=500,
        )


class GenerationInProgressError(KnownError):
    """A second generation was requested while one is still running."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(
            kind=FailureKind.GENERATION_IN_PROGRESS,
            message="A generation run is already in progress",
            detail=f"Running game: {game_id}",
            suggestion="Poll /api/generator/status and retry once it finishes.",
            status_code=409,
        )


class GenerationCancelledError(KnownError):
    """The running generation was cancelled by the caller."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.CANCELLED,
            message="Generation cancelled",
            status_code=409,
        )


class InvalidDeckFileError(KnownError):
    """A deck file on disk does not match the expected layout."""

    def __init__(self, source: str, detail: str | None = None):
        self.source = source
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Invalid deck file: {source}",
            detail=detail,
            suggestion='Expected {"deck": ..., "cards": {...}}.',
            status_code=422,
        )


class ImageFetchError(KnownError):
    """An image referenced by an imported deck file could not be fetched."""

    def __init__(self, reference: str, detail: str | None = None):
        self.reference = reference
        super().__init__(
            kind=FailureKind.FETCH_FAILURE,
            message=f"Unable to fetch image: {reference}",
            detail=detail,
            status_code=502,
        )
