# ABOUTME: The `maibuk info` command for displaying a book's details.
# ABOUTME: Shows the book's fields along with word progress and chapter count.

from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from maibuk.cli.options import backend_option, db_option, open_store, resolve_book, run
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.connection import Backend
from maibuk.models.types import Book, Chapter

console = Console()


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value is not None else "never"


@click.command("info")
@click.argument("book_ref")
@db_option
@backend_option
def info(book_ref: str, db_path: Path | None, backend: Backend) -> None:
    """Show details for a book by ID (or unique ID prefix)."""

    async def load() -> tuple[Book, list[Chapter]]:
        async with open_store(db_path, backend) as adapter:
            book = await resolve_book(BookRepository(adapter), book_ref)
            chapters = await ChapterRepository(adapter).list_chapters(book.id)
            return book, chapters

    book, chapters = run(console, load())

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=14)
    table.add_column("Value")

    table.add_row("ID", book.id)
    table.add_row("Title", book.title)
    if book.subtitle:
        table.add_row("Subtitle", book.subtitle)
    table.add_row("Author", book.author_name or "unknown")
    if book.genre:
        table.add_row("Genre", book.genre)
    table.add_row("Language", book.language)
    table.add_row("Status", book.status)
    if book.description:
        table.add_row("Description", book.description)
    words = f"{book.word_count:,}"
    if book.target_word_count:
        words += f" of {book.target_word_count:,}"
    table.add_row("Words", words)
    table.add_row("Chapters", str(len(chapters)))
    if book.cover_image_path:
        table.add_row("Cover", book.cover_image_path[:60])
    table.add_row("Created", _format_time(book.created_at))
    table.add_row("Updated", _format_time(book.updated_at))
    table.add_row("Last opened", _format_time(book.last_opened_at))

    console.print(table)
