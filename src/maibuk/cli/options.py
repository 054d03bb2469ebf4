# ABOUTME: Shared Click options and store helpers for Maibuk CLI commands.
# ABOUTME: Provides --db/--backend decorators and resolves book and chapter references.

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.books import BookRepository
from maibuk.db.connection import BACKENDS, DEFAULT_DB_PATH, Backend, open_database
from maibuk.db.errors import BookNotFoundError, ChapterNotFoundError, NotFoundError
from maibuk.export.types import ExportError
from maibuk.models.types import Book, Chapter

T = TypeVar("T")

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to the book database (default: {DEFAULT_DB_PATH})",
)

backend_option = click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default="native",
    show_default=True,
    help="Storage backend: a database file, or an in-memory image snapshotted next to it.",
)


@asynccontextmanager
async def open_store(db_path: Path | None, backend: Backend) -> AsyncIterator[DatabaseAdapter]:
    """Open the database for one command and close it afterwards."""
    database = open_database(db_path or DEFAULT_DB_PATH, backend=backend)
    try:
        yield await database.get_adapter()
    finally:
        await database.close()


def run(console: Console, coro: Coroutine[Any, Any, T]) -> T:
    """Run a command's coroutine, turning lookup, export and validation failures into exit 1."""
    try:
        return asyncio.run(coro)
    except (NotFoundError, ExportError, ValueError) as exc:
        console.print(f"[red]{exc}.[/red]")
        raise SystemExit(1) from exc


async def resolve_book(books: BookRepository, ref: str) -> Book:
    """Find a book by its id or a unique id prefix.

    Raises:
        BookNotFoundError: If no book, or more than one, matches.
    """
    matches = [book for book in await books.list_books() if book.id.startswith(ref)]
    if len(matches) != 1:
        raise BookNotFoundError(ref)
    return matches[0]


def chapter_at(chapters: list[Chapter], position: int) -> Chapter:
    """Pick a chapter by its 1-based position in the book.

    Raises:
        ChapterNotFoundError: If the position is out of range.
    """
    if not 1 <= position <= len(chapters):
        raise ChapterNotFoundError(f"#{position}")
    return chapters[position - 1]
