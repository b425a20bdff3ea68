import io
from collections.abc import Callable

import pytest
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from deckbuilder.models.db import Base

PngFactory = Callable[..., bytes]


def _png(
    width: int = 10,
    height: int = 15,
    color: tuple[int, int, int, int] = (200, 40, 40, 255),
) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png() -> PngFactory:
    """Factory for small solid-colour PNG images."""
    return _png


@pytest.fixture
def png_bytes() -> bytes:
    """A 10x15 card face."""
    return _png()


@pytest.fixture
async def async_engine(tmp_path):
    """
    SQLite engine backed by a file in tmp_path.

    A file (rather than :memory:) lets the generator's background task
    and the test hold separate connections to the same data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session
