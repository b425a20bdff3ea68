"""
Grid sizing for page images.

Chooses the (columns, rows) shape for a page holding `count` cells
(cards plus the reserved backside cell).

Policy, in priority order:
1. Least wasted cells (columns * rows - count)
2. Closest to square (smallest |columns - rows|)
3. Fewer columns
"""

from deckbuilder.config import GridBounds
from deckbuilder.models.failure import ConfigurationError


def calculate_grid_size(count: int, bounds: GridBounds | None = None) -> tuple[int, int]:
    """
    Calculate the grid shape for a page.

    Args:
        count: Cells needed, including the backside cell
        bounds: Allowed width/height range. Defaults to 2x2..10x7

    Returns:
        (columns, rows) with columns * rows >= count

    Raises:
        ConfigurationError: If no shape within bounds can hold `count` cells
    """
    bounds = bounds or GridBounds()

    if bounds.min_width < 1 or bounds.min_height < 1:
        raise ConfigurationError(
            "Grid bounds must be at least 1x1",
            detail=f"min={bounds.min_width}x{bounds.min_height}",
        )
    if count < 1:
        raise ConfigurationError(f"Cannot size a grid for {count} cells")

    best: tuple[int, int, int] | None = None
    best_shape: tuple[int, int] | None = None

    for columns in range(bounds.min_width, bounds.max_width + 1):
        for rows in range(bounds.min_height, bounds.max_height + 1):
            cells = columns * rows
            if cells < count:
                continue
            rank = (cells - count, abs(columns - rows), columns)
            if best is None or rank < best:
                best = rank
                best_shape = (columns, rows)

    if best_shape is None:
        raise ConfigurationError(
            f"No grid within bounds can hold {count} cells",
            detail=(
                f"bounds={bounds.min_width}x{bounds.min_height}.."
                f"{bounds.max_width}x{bounds.max_height}"
            ),
        )

    return best_shape
