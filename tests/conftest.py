# ABOUTME: Shared pytest fixtures for Maibuk tests.
# ABOUTME: Provides a schema-initialized native store, repositories, a clock, and model builders.

import asyncio
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.native import NativeDatabaseAdapter, connect_native
from maibuk.db.schema import initialize_schema
from maibuk.models.types import Book, Chapter
from tests.fixtures.clock import FIXED_TIME, FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    """A clock fixed at 2024-03-01 12:00 UTC."""
    return FakeClock()


@pytest.fixture()
def adapter(tmp_path: Path) -> Iterator[NativeDatabaseAdapter]:
    """A native adapter over a temporary database file with the schema applied."""
    native = NativeDatabaseAdapter(connect_native(tmp_path / "test.db"))
    asyncio.run(initialize_schema(native))
    yield native
    asyncio.run(native.close())


@pytest.fixture()
def books(adapter: NativeDatabaseAdapter, clock: FakeClock) -> BookRepository:
    """BookRepository on the temporary store."""
    return BookRepository(adapter, clock=clock)


@pytest.fixture()
def chapters(
    adapter: NativeDatabaseAdapter, books: BookRepository, clock: FakeClock
) -> ChapterRepository:
    """ChapterRepository sharing the books repository and clock."""
    return ChapterRepository(adapter, books, clock=clock)


@pytest.fixture()
def make_book() -> Callable[..., Book]:
    """Build an in-memory Book without touching storage."""

    def build(**overrides: Any) -> Book:
        fields: dict[str, Any] = {
            "id": "book-1",
            "title": "The Lighthouse Keeper",
            "author_name": "Ada Marsh",
            "created_at": FIXED_TIME,
            "updated_at": FIXED_TIME,
        }
        fields.update(overrides)
        return Book(**fields)

    return build


@pytest.fixture()
def make_chapter() -> Callable[..., Chapter]:
    """Build an in-memory Chapter; ids default to chapter-<order>."""

    def build(title: str, order: int, **overrides: Any) -> Chapter:
        fields: dict[str, Any] = {
            "id": f"chapter-{order}",
            "book_id": "book-1",
            "title": title,
            "order": order,
            "created_at": FIXED_TIME,
            "updated_at": FIXED_TIME,
            "content": f"<p>{title} begins here.</p>",
        }
        fields.update(overrides)
        return Chapter(**fields)

    return build
