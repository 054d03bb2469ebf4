# ABOUTME: The `maibuk ls` command for listing books.
# ABOUTME: Displays a Rich table of books, most recently opened first.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from maibuk.cli.options import backend_option, db_option, open_store, run
from maibuk.db.books import BookRepository
from maibuk.db.connection import Backend
from maibuk.models.types import Book

console = Console()


@click.command("ls")
@db_option
@backend_option
@click.option(
    "--status",
    "status_filter",
    default=None,
    help="Only show books with this status (draft, in-progress, completed).",
)
def ls(db_path: Path | None, backend: Backend, status_filter: str | None) -> None:
    """List all books."""

    async def list_books() -> list[Book]:
        async with open_store(db_path, backend) as adapter:
            return await BookRepository(adapter).list_books()

    books = run(console, list_books())
    if status_filter:
        books = [book for book in books if book.status == status_filter]

    if not books:
        console.print("[yellow]No books yet.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=8)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Status")
    table.add_column("Words", justify="right")

    for book in books:
        words = f"{book.word_count:,}"
        if book.target_word_count:
            words += f" / {book.target_word_count:,}"
        table.add_row(
            book.id[:8],
            book.title,
            book.author_name or "[dim]unknown[/dim]",
            book.status,
            words,
        )

    console.print(table)
    console.print(f"\n[dim]{len(books)} book(s)[/dim]")
