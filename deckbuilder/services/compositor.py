"""
Page compositing.

Draws card faces onto a page canvas in row-major order and places the
deck backside in the bottom-right cell. All faces on a page are assumed
to share the size of the first one; mismatched sizes are pasted as-is.
"""

import io
from collections.abc import Sequence

from PIL import Image, UnidentifiedImageError

from deckbuilder.models.failure import DecodeError, EncodeError


def image_from_bytes(data: bytes, source: str = "image") -> Image.Image:
    """
    Decode raw bytes into an RGBA image.

    Raises:
        DecodeError: If the bytes are not a readable image
    """
    if not data:
        raise DecodeError(source, detail="empty image data")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(source, detail=str(e)) from e
    return img.convert("RGBA")


def image_mime_type(data: bytes, source: str = "image") -> str:
    """
    Identify the image format without decoding the pixel data.

    Raises:
        DecodeError: If the bytes are not a recognised image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(source, detail=str(e)) from e
    return Image.MIME.get(fmt or "", "application/octet-stream")


def card_to_page_coordinates(index: int, columns: int) -> tuple[int, int]:
    """Slot index -> (column, row), row-major."""
    return index % columns, index // columns


def create_page(width: int, height: int) -> Image.Image:
    """Blank transparent canvas."""
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def draw(
    page: Image.Image,
    column: int,
    row: int,
    img: Image.Image,
    cell_size: tuple[int, int] | None = None,
) -> None:
    """Paste `img` at grid cell (column, row). Cell size defaults to the image size."""
    cell_width, cell_height = cell_size or img.size
    page.paste(img, (column * cell_width, row * cell_height))


def composite(
    images: Sequence[Image.Image],
    columns: int,
    rows: int,
    backside: Image.Image,
) -> Image.Image:
    """
    Build a page image.

    Args:
        images: Card faces in slot order
        columns: Grid width in cells
        rows: Grid height in cells
        backside: Back image drawn in the last cell

    Returns:
        Canvas of columns * cell_width by rows * cell_height
    """
    cell_size = images[0].size if images else backside.size
    cell_width, cell_height = cell_size

    page = create_page(columns * cell_width, rows * cell_height)
    for index, img in enumerate(images):
        column, row = card_to_page_coordinates(index, columns)
        draw(page, column, row, img, cell_size)

    # Bottom-right cell always shows the backside
    draw(page, columns - 1, rows - 1, backside, cell_size)
    return page


def darken(img: Image.Image, percentage: float) -> Image.Image:
    """
    Shift brightness of the color channels by `percentage` of full scale.

    -30 subtracts 76.5 from every R, G and B value (clamped to 0..255).
    Alpha is left untouched.
    """
    shift = 255.0 * max(-100.0, min(100.0, percentage)) / 100.0
    table = [min(255, max(0, round(value + shift))) for value in range(256)]

    rgba = img.convert("RGBA")
    red, green, blue, alpha = rgba.split()
    return Image.merge(
        "RGBA",
        (red.point(table), green.point(table), blue.point(table), alpha),
    )


def encode_png(img: Image.Image, target: str = "page") -> bytes:
    """
    Encode an image as PNG bytes.

    Raises:
        EncodeError: If Pillow cannot encode the image
    """
    buffer = io.BytesIO()
    try:
        img.save(buffer, "PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(target, detail=str(e)) from e
    return buffer.getvalue()
