from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DECKBUILDER_")

    app_name: str = "DeckBuilder"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./data/deckbuilder.db"

    # Generated bundle (page images + object graph) is written here.
    # The directory is wiped at the start of every generation run.
    data_dir: Path = Path("data")
    result_dir: Path = Path("data/result")

    # Grid bounds for a single page image
    min_grid_width: int = 2
    min_grid_height: int = 2
    max_grid_width: int = 10
    max_grid_height: int = 7

    # Brightness shift applied to the deck back image, in percent (-100..100)
    backside_brightness: float = -30

    # Sort order used when listing content for generation
    # Values: "", name, name_desc, created, created_desc
    default_sort: str = ""


settings = Settings()


# =============================================================================
# LAYOUT CONSTANTS
# =============================================================================

MAX_FILENAME_LENGTH = 200

# Card code = page_number * CARD_CODE_PAGE_MULTIPLIER + slot
CARD_CODE_PAGE_MULTIPLIER = 100


@dataclass(frozen=True)
class GridBounds:
    """Allowed grid shape for a page image."""

    min_width: int = 2
    min_height: int = 2
    max_width: int = 10
    max_height: int = 7

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "GridBounds":
        source = source or settings
        return cls(
            min_width=source.min_grid_width,
            min_height=source.min_grid_height,
            max_width=source.max_grid_width,
            max_height=source.max_grid_height,
        )

    def max_cells(self) -> int:
        """Total number of cells on the largest allowed page."""
        return self.max_width * self.max_height

    def page_capacity(self) -> int:
        """Number of card slots on a page. One cell is kept for the backside."""
        return self.max_cells() - 1
